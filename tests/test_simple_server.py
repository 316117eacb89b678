import asyncio
import socket
import subprocess
from unittest import mock

import pytest

from tunvpn.errors import ProtocolError, TunConfigError
from tunvpn.protocol import decrypt, encrypt
from tunvpn.simple_server import _serve, setup_tun_interface
from tunvpn.tun_device import TunDevice


class FakeEndpoint:
    def __init__(self):
        self.incoming = asyncio.Queue()
        self.sent = []

    async def recv_from(self):
        return await self.incoming.get()

    def send_to(self, data, addr):
        self.sent.append((data, addr))


@pytest.fixture
def tun_pair():
    a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_SEQPACKET)
    b.setblocking(False)
    tun = TunDevice(a.detach(), "test0")
    yield tun, b
    tun.close()
    b.close()


@pytest.mark.asyncio
async def test_serve_relays_both_ways(tun_pair):
    tun, peer = tun_pair
    loop = asyncio.get_running_loop()
    endpoint = FakeEndpoint()
    addr = ("10.8.0.2", 4000)
    task = asyncio.ensure_future(_serve(endpoint, tun))
    endpoint.incoming.put_nowait((encrypt(b"from-client"), addr))
    assert await asyncio.wait_for(loop.sock_recv(peer, 100), 2) == b"from-client"
    peer.send(b"reply")
    for _ in range(200):
        if endpoint.sent:
            break
        await asyncio.sleep(0.01)
    data, sent_to = endpoint.sent[0]
    assert sent_to == addr
    assert decrypt(data) == b"reply"
    peer.close()
    assert await asyncio.wait_for(task, 2) is None


@pytest.mark.asyncio
async def test_serve_without_client_sends_nothing(tun_pair):
    tun, peer = tun_pair
    endpoint = FakeEndpoint()
    task = asyncio.ensure_future(_serve(endpoint, tun))
    peer.send(b"orphan")
    await asyncio.sleep(0.1)
    peer.close()
    await asyncio.wait_for(task, 2)
    assert endpoint.sent == []


@pytest.mark.asyncio
async def test_serve_raises_on_bad_packet(tun_pair):
    tun, _ = tun_pair
    endpoint = FakeEndpoint()
    endpoint.incoming.put_nowait((b"junk", ("10.8.0.2", 1)))
    with pytest.raises(ProtocolError):
        await asyncio.wait_for(_serve(endpoint, tun), 2)


def test_setup_reports_success(capsys):
    ok = subprocess.CompletedProcess([], 0, b"", b"")
    with mock.patch("tunvpn.tun_device.subprocess.run", return_value=ok) as run:
        setup_tun_interface("tun0")
    assert run.call_count == 4
    assert "configured" in capsys.readouterr().out


def test_setup_failure_raises():
    bad = subprocess.CompletedProcess([], 1, b"", b"no")
    with mock.patch("tunvpn.tun_device.subprocess.run", return_value=bad):
        with pytest.raises(TunConfigError):
            setup_tun_interface("tun0")