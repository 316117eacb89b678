"""Single-client tunnel server."""

import contextlib

from tunvpn import tun_device
from tunvpn.handlers import _events, _open_udp_endpoint
from tunvpn.protocol import decrypt, encrypt
from tunvpn.tun_device import TunDevice, open_tun

DEFAULT_PORT = 3000


def setup_tun_interface(name: str) -> None:
    """Configure the interface and system networking, then report it."""
    tun_device.setup_tun_interface(name)
    print("TUN interface configured")


async def _serve(endpoint, tun: TunDevice) -> None:
    client_addr = None
    async with contextlib.aclosing(_events(tun, endpoint)) as events:
        async for source, value in events:
            if source == "udp":
                data, addr = value
                packet = decrypt(data)
                client_addr = addr
                print(f"Received and decrypted a packet from client: {addr}")
                try:
                    tun.write_packet(packet)
                except OSError as exc:
                    print(f"TUN write error: {exc!r}")
                else:
                    print("Client packet written to TUN")
            else:
                if not value:
                    print()
                    return
                sealed = encrypt(value)
                print("Received and encrypted a packet from TUN")
                if client_addr is not None:
                    endpoint.send_to(sealed, client_addr)
                    print("Packet sent to client")


async def run(port: int = DEFAULT_PORT) -> None:
    """Serve one client at a time on ``port`` until the TUN device closes."""
    with open_tun("tun0") as tun:
        print(f"TUN interface created: {tun.name}")
        setup_tun_interface(tun.name)
        endpoint = await _open_udp_endpoint(("0.0.0.0", port))
        print(f"VPN server running on 0.0.0.0:{port}")
        try:
            await _serve(endpoint, tun)
        finally:
            endpoint.close()