"""Packet pumps between the UDP socket and the TUN device."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from tunvpn.client_manager import ClientManager
from tunvpn.errors import TunnelError
from tunvpn.protocol import decrypt, encrypt
from tunvpn.tun_device import TunDevice

log = logging.getLogger(__name__)


class _DatagramEndpoint(asyncio.DatagramProtocol):
    """An asyncio UDP socket with awaitable receive."""

    def __init__(self) -> None:
        self._incoming: asyncio.Queue = asyncio.Queue()
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self._incoming.put_nowait((data, addr))

    def error_received(self, exc: Exception) -> None:
        self._incoming.put_nowait(exc)

    async def recv_from(self) -> tuple[bytes, Any]:
        item = await self._incoming.get()
        if isinstance(item, Exception):
            raise item
        return item

    def send_to(self, data: bytes, addr: Any) -> None:
        if self.transport is None:
            raise OSError("socket is not open")
        self.transport.sendto(data, addr)

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()


async def _open_udp_endpoint(local_addr: tuple[str, int]) -> _DatagramEndpoint:
    loop = asyncio.get_running_loop()
    _, endpoint = await loop.create_datagram_endpoint(_DatagramEndpoint, local_addr=local_addr)
    return endpoint


async def _read_tun(tun: TunDevice) -> bytes:
    """Wait until the device is readable and read one packet."""
    loop = asyncio.get_running_loop()
    future = loop.create_future()
    fd = tun.fileno()

    def ready() -> None:
        if future.done():
            return
        try:
            data = tun.read_packet()
        except BlockingIOError:
            return
        except OSError as exc:
            future.set_exception(exc)
        else:
            future.set_result(data)

    loop.add_reader(fd, ready)
    try:
        return await future
    finally:
        loop.remove_reader(fd)


async def _events(tun: TunDevice, endpoint) -> AsyncIterator[tuple[str, Any]]:
    """Yield ("tun", packet) and ("udp", (data, addr)) in arrival order."""
    tun_task: asyncio.Task | None = None
    udp_task: asyncio.Task | None = None
    try:
        while True:
            if tun_task is None:
                tun_task = asyncio.ensure_future(_read_tun(tun))
            if udp_task is None:
                udp_task = asyncio.ensure_future(endpoint.recv_from())
            done, _ = await asyncio.wait({tun_task, udp_task}, return_when=asyncio.FIRST_COMPLETED)
            if tun_task in done:
                task, tun_task = tun_task, None
                yield "tun", task.result()
            if udp_task in done:
                task, udp_task = udp_task, None
                yield "udp", task.result()
    finally:
        for task in (tun_task, udp_task):
            if task is not None:
                task.cancel()


async def handle_udp(endpoint, client_manager: ClientManager, queue: asyncio.Queue) -> None:
    """Register senders, decrypt their datagrams and queue them for the TUN device."""
    while True:
        try:
            data, addr = await endpoint.recv_from()
        except OSError as exc:
            log.error("Error receiving from UDP socket: %s", exc)
            continue
        if all(known != addr for known, _ in client_manager.get_clients()):
            log.info("New client connected: %s", addr)
            client_manager.add_client(addr, endpoint)
        try:
            packet = decrypt(data)
        except TunnelError as exc:
            log.error("Failed to decrypt packet for: %s, %s", addr, exc)
            continue
        await queue.put(packet)


async def handle_tun(tun_device: TunDevice, client_manager: ClientManager, queue: asyncio.Queue) -> None:
    """Write queued packets to the device and broadcast its packets to all clients."""

    async def writer() -> None:
        while True:
            packet = await queue.get()
            try:
                tun_device.write_packet(packet)
            except OSError as exc:
                log.error("TUN write error: %s", exc)

    write_task = asyncio.ensure_future(writer())
    try:
        while True:
            try:
                packet = await _read_tun(tun_device)
            except OSError as exc:
                log.error("Read error with TUN: %s", exc)
                break
            if not packet:
                log.error("TUN interface closed")
                break
            try:
                sealed = encrypt(packet)
            except TunnelError as exc:
                log.error("Failed to encrypt packet from TUN: %s", exc)
                continue
            for addr, endpoint in client_manager.get_clients():
                try:
                    endpoint.send_to(sealed, addr)
                except OSError as exc:
                    log.error("Failed to send packet to %s: %s", addr, exc)
                    client_manager.remove_client(addr)
    finally:
        write_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await write_task