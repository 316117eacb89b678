# tunvpn

A small VPN for Linux built on asyncio. Each side owns a TUN interface named
`tun0`. IP packets read from it are encrypted with AES-256-GCM under a fresh
random 12-byte nonce, framed together with that nonce, and sent over UDP.
Datagrams that arrive over UDP are decrypted and written to the TUN interface.

Both commands create TUN devices and change addresses, routes, forwarding and
NAT rules with `ip`, `sysctl` and `iptables`, so they must be run as root.

## Install

```
pip install .
```

## Server

```
sudo tunvpn-server --port 44444
```

`-p/--port` is required. The server:

- binds a UDP socket to `0.0.0.0:<port>`;
- creates `tun0`, gives it the point-to-point address `10.0.0.1` with peer
  `10.0.0.2/24`, brings it up, assigns `10.8.0.1/24`, enables IPv4
  forwarding and appends an `iptables` NAT `POSTROUTING` MASQUERADE rule for
  `10.8.0.0/24`;
- registers every address that sends it a datagram, decrypts the datagram and
  writes the packet to `tun0`; datagrams that fail to decrypt are logged and
  dropped;
- encrypts every packet read from `tun0` and sends it to all registered
  clients. A client whose send fails is forgotten.

If the port is not a number from 0 to 65535, or setup fails, the command exits
with an error message.

## Client

```
sudo tunvpn-client --server 203.0.113.10:44444
```

`-s/--server` takes `host:port` (default `192.168.0.103:44444`). The client
creates `tun0`, assigns `10.8.0.2` with peer `10.8.0.1/24`, sets an MTU of
1500 and brings it up, then adds a route for `0.0.0.0/0` via `10.8.0.1` on
`tun0` (a failure there is reported on stderr and the client carries on). It
relays packets between the interface and the server until the interface
closes or an empty datagram arrives.

## Library use

The wire format can be used on its own:

```python
from tunvpn.protocol import encrypt, decrypt

datagram = encrypt(b"hello world")
assert decrypt(datagram) == b"hello world"
```

- `tunvpn.crypt`: `encrypt_aes256gcm(key, plaintext)` returns
  `(ciphertext, nonce)`; `decrypt_aes256gcm(key, ciphertext, nonce)` returns
  the plaintext. Keys must be 32 bytes, nonces 12.
- `tunvpn.packet`: `Packet(nonce, data)` with `encode()` and
  `Packet.decode(data)`. Each field is written as a little-endian 64-bit
  length followed by its bytes; trailing bytes after the second field are
  ignored on decode.
- `tunvpn.client_manager`: `ClientManager`, a thread-safe map of client
  addresses to sockets (`add_client`, `remove_client`, `get_clients`).
- `tunvpn.tun_device`: `TunDevice`, `open_tun`, `create_server_tun`,
  `setup_tun_interface` and `run_command`.
- `tunvpn.handlers`: the server's packet pumps, `handle_udp` and `handle_tun`.
- `tunvpn.server`: `Server`, `create_server`, `parse_args`, `main`.
- `tunvpn.client`: `add_default_route`, `run_client`, `main`.
- `tunvpn.simple_server`: `run(port=3000)`, a coroutine that serves a single
  client (the most recent sender) over `tun0`. It has no command of its own.

Failures raise subclasses of `tunvpn.errors.TunnelError`: `ProtocolError` for
bad key or nonce lengths, tampered data and malformed packets, and
`TunConfigError` when opening or configuring the interface fails.

## Limitations

- The key is a fixed built-in test key shared by client and server and cannot
  be configured; it offers no real secrecy.
- The server does not authenticate clients: any address that sends a datagram
  is registered, and clients are only forgotten when a send to them fails.
- Routes, addresses and NAT rules are not removed on exit.

## Tests

```
pip install ".[test]"
pytest
```