"""Linux TUN device access and system networking setup."""

import fcntl
import logging
import os
import struct
import subprocess
from collections.abc import Sequence

from tunvpn.errors import TunConfigError

log = logging.getLogger(__name__)

TUN_CLONE_DEVICE = "/dev/net/tun"
SERVER_TUN_NAME = "tun0"
READ_SIZE = 3072

_TUNSETIFF = 0x400454CA
_IFF_TUN = 0x0001
_IFF_NO_PI = 0x1000


class TunDevice:
    """A non-blocking file descriptor carrying raw IP packets."""

    def __init__(self, fd: int, name: str = "tun") -> None:
        self._fd: int | None = fd
        self.name = name
        os.set_blocking(fd, False)

    def fileno(self) -> int:
        """Return the underlying descriptor."""
        if self._fd is None:
            raise ValueError("TUN device is closed")
        return self._fd

    def read_packet(self) -> bytes:
        """Read one packet; an empty result means the device was closed."""
        return os.read(self.fileno(), READ_SIZE)

    def write_packet(self, packet: bytes) -> None:
        """Write one whole packet."""
        written = os.write(self.fileno(), packet)
        if written != len(packet):
            raise OSError(f"short write to TUN: {written} of {len(packet)} bytes")

    def close(self) -> None:
        """Close the descriptor; closing twice is harmless."""
        if self._fd is not None:
            fd, self._fd = self._fd, None
            os.close(fd)

    def __enter__(self) -> "TunDevice":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_tun(name: str) -> TunDevice:
    """Create (or attach to) the TUN interface ``name`` without packet info."""
    try:
        fd = os.open(TUN_CLONE_DEVICE, os.O_RDWR)
    except OSError as exc:
        raise TunConfigError(f"cannot open {TUN_CLONE_DEVICE}: {exc}") from exc
    try:
        request = struct.pack("16sH", name.encode(), _IFF_TUN | _IFF_NO_PI)
        reply = fcntl.ioctl(fd, _TUNSETIFF, request)
    except OSError as exc:
        os.close(fd)
        raise TunConfigError(f"cannot create TUN interface {name}: {exc}") from exc
    actual = reply[:16].rstrip(b"\0").decode()
    return TunDevice(fd, actual)


def run_command(args: Sequence[str], failure_message: str) -> subprocess.CompletedProcess:
    """Run a system command, raising TunConfigError if it exits unsuccessfully."""
    result = subprocess.run(list(args), capture_output=True)
    if result.returncode != 0:
        raise TunConfigError(f"{failure_message}: {result!r}")
    return result


def setup_tun_interface(name: str) -> None:
    """Bring the interface up, address it, enable forwarding and NAT."""
    run_command(["ip", "link", "set", "dev", name, "up"], f"failed to bring up {name}")
    run_command(
        ["ip", "addr", "add", "10.8.0.1/24", "dev", name],
        f"failed to assign an address to {name}",
    )
    run_command(["sysctl", "-w", "net.ipv4.ip_forward=1"], "failed to enable ip_forward")
    run_command(
        ["iptables", "-t", "nat", "-A", "POSTROUTING", "-s", "10.8.0.0/24", "-j", "MASQUERADE"],
        "failed to configure NAT",
    )


def create_server_tun() -> TunDevice:
    """Create and configure the server's TUN interface."""
    tun = open_tun(SERVER_TUN_NAME)
    try:
        run_command(
            ["ip", "addr", "add", "10.0.0.1", "peer", "10.0.0.2/24", "dev", tun.name],
            f"failed to assign the point-to-point address to {tun.name}",
        )
        setup_tun_interface(tun.name)
    except BaseException:
        tun.close()
        raise
    log.info("TUN %s interface created and configured", tun.name)
    return tun