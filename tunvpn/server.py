"""Multi-client tunnel server and its command-line entry point."""

import argparse
import asyncio
import logging

from tunvpn.client_manager import ClientManager
from tunvpn.handlers import _open_udp_endpoint, handle_tun, handle_udp
from tunvpn.tun_device import TunDevice, create_server_tun

log = logging.getLogger(__name__)

QUEUE_SIZE = 3072
VERSION = "0.0.4"


class Server:
    """Relays packets between a UDP endpoint and a TUN device."""

    def __init__(self, endpoint, tun_device: TunDevice, client_manager: ClientManager | None = None) -> None:
        self.endpoint = endpoint
        self.tun_device = tun_device
        self.client_manager = client_manager if client_manager is not None else ClientManager()

    async def run(self) -> None:
        """Run both packet pumps until both finish."""
        log.info("VPN server (build %s) is running...", VERSION)
        queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        await asyncio.gather(
            handle_udp(self.endpoint, self.client_manager, queue),
            handle_tun(self.tun_device, self.client_manager, queue),
        )


async def create_server(server_addr: tuple[str, int]) -> Server:
    """Bind the UDP socket and create the TUN device."""
    endpoint = await _open_udp_endpoint(server_addr)
    log.info("UDP socket bound to %s:%s", *server_addr)
    try:
        tun = create_server_tun()
    except BaseException:
        endpoint.close()
        raise
    return Server(endpoint, tun)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tunvpn-server", description="Tunnel server")
    parser.add_argument("-p", "--port", required=True, help="UDP port")
    return parser.parse_args(argv)


def _server_address(port: str) -> tuple[str, int]:
    try:
        number = int(port)
    except ValueError:
        raise SystemExit("Invalid server port") from None
    if not 0 <= number <= 65535:
        raise SystemExit("Invalid server port")
    return "0.0.0.0", number


async def _serve(server_addr: tuple[str, int]) -> None:
    server = await create_server(server_addr)
    await server.run()


def main(argv=None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = parse_args(argv)
    server_addr = _server_address(args.port)
    try:
        asyncio.run(_serve(server_addr))
    except Exception as exc:
        raise SystemExit(f"Failed to start the server: {exc}") from exc