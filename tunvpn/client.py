"""Tunnel client: routes all traffic through the TUN device to the server."""

import argparse
import asyncio
import contextlib
import subprocess
import sys

from tunvpn.handlers import _events, _open_udp_endpoint
from tunvpn.protocol import decrypt, encrypt
from tunvpn.tun_device import TunDevice, open_tun, run_command

TUN_NAME = "tun0"
CLIENT_ADDRESS = "10.8.0.2"
GATEWAY = "10.8.0.1"
DEFAULT_SERVER = "192.168.0.103:44444"


def add_default_route(gateway: str, device: str) -> bool:
    """Route all traffic via ``gateway`` on ``device``; report failure on stderr."""
    result = subprocess.run(
        ["ip", "route", "add", "0.0.0.0/0", "via", gateway, "dev", device],
        capture_output=True,
    )
    if result.returncode != 0:
        message = result.stderr.decode(errors="replace")
        print(f"Failed to set route: {message}", file=sys.stderr)
        return False
    return True


def _configure_tun(name: str) -> None:
    run_command(
        ["ip", "addr", "add", CLIENT_ADDRESS, "peer", f"{GATEWAY}/24", "dev", name],
        f"failed to assign an address to {name}",
    )
    run_command(["ip", "link", "set", "dev", name, "mtu", "1500", "up"], f"failed to bring up {name}")


async def _relay(endpoint, server_addr, tun: TunDevice) -> None:
    async with contextlib.aclosing(_events(tun, endpoint)) as events:
        async for source, value in events:
            if source == "tun":
                if not value:
                    print("TUN interface closed")
                    return
                endpoint.send_to(encrypt(value), server_addr)
            else:
                data, _ = value
                if not data:
                    print("Server closed the connection")
                    return
                packet = decrypt(data)
                print("Received and decrypted a packet from the server")
                tun.write_packet(packet)
                print("Decrypted server packet written to TUN")


async def run_client(server_addr: tuple[str, int], tun_device: TunDevice) -> None:
    """Relay packets between ``tun_device`` and the server until either closes."""
    endpoint = await _open_udp_endpoint(("0.0.0.0", 0))
    try:
        await _relay(endpoint, server_addr, tun_device)
    finally:
        endpoint.close()


def _parse_server(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit() or int(port) > 65535:
        raise argparse.ArgumentTypeError(f"invalid server address: {value}")
    return host, int(port)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="tunvpn-client", description="Tunnel client")
    parser.add_argument("-s", "--server", type=_parse_server, default=_parse_server(DEFAULT_SERVER))
    args = parser.parse_args(argv)
    with open_tun(TUN_NAME) as tun:
        _configure_tun(tun.name)
        print(f"TUN interface created: {tun.name}")
        add_default_route(GATEWAY, tun.name)
        asyncio.run(run_client(args.server, tun))