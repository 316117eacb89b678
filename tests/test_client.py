import asyncio
import socket
import subprocess
from unittest import mock

import pytest

from tunvpn.client import _parse_server, _relay, add_default_route
from tunvpn.protocol import decrypt, encrypt
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


def test_add_default_route_success():
    ok = subprocess.CompletedProcess([], 0, b"", b"")
    with mock.patch("tunvpn.client.subprocess.run", return_value=ok) as run:
        assert add_default_route("10.8.0.1", "tun0") is True
    assert run.call_args.args[0] == ["ip", "route", "add", "0.0.0.0/0", "via", "10.8.0.1", "dev", "tun0"]


def test_add_default_route_failure_reports(capsys):
    bad = subprocess.CompletedProcess([], 2, b"", b"RTNETLINK answers: File exists")
    with mock.patch("tunvpn.client.subprocess.run", return_value=bad):
        assert add_default_route("10.8.0.1", "tun0") is False
    assert "Failed to set route: RTNETLINK answers: File exists" in capsys.readouterr().err


def test_parse_server():
    assert _parse_server("192.168.0.103:44444") == ("192.168.0.103", 44444)
    with pytest.raises(Exception):
        _parse_server("no-port")


@pytest.mark.asyncio
async def test_relay_both_directions(tun_pair):
    tun, peer = tun_pair
    loop = asyncio.get_running_loop()
    endpoint = FakeEndpoint()
    server = ("192.168.0.103", 44444)
    task = asyncio.ensure_future(_relay(endpoint, server, tun))
    peer.send(b"outgoing")
    for _ in range(200):
        if endpoint.sent:
            break
        await asyncio.sleep(0.01)
    data, addr = endpoint.sent[0]
    assert addr == server
    assert decrypt(data) == b"outgoing"
    endpoint.incoming.put_nowait((encrypt(b"incoming"), server))
    assert await asyncio.wait_for(loop.sock_recv(peer, 100), 2) == b"incoming"
    peer.close()
    assert await asyncio.wait_for(task, 2) is None


@pytest.mark.asyncio
async def test_relay_stops_on_empty_datagram(tun_pair):
    tun, _ = tun_pair
    endpoint = FakeEndpoint()
    endpoint.incoming.put_nowait((b"", ("192.168.0.103", 44444)))
    assert await asyncio.wait_for(_relay(endpoint, ("192.168.0.103", 44444), tun), 2) is None
    assert endpoint.sent == []