"""Wire framing of an encrypted packet: nonce and ciphertext."""

import struct
from dataclasses import dataclass

from tunvpn.errors import ProtocolError

_LENGTH = struct.Struct("<Q")


def _read_field(view: memoryview, offset: int) -> tuple[bytes, int]:
    header_end = offset + _LENGTH.size
    if header_end > len(view):
        raise ProtocolError("unexpected end of input while reading length")
    (length,) = _LENGTH.unpack_from(view, offset)
    end = header_end + length
    if end > len(view):
        raise ProtocolError("unexpected end of input while reading bytes")
    return bytes(view[header_end:end]), end


@dataclass(frozen=True)
class Packet:
    """An encrypted payload together with the nonce it was sealed with."""

    nonce: bytes
    data: bytes

    def encode(self) -> bytes:
        """Serialize as two length-prefixed fields (u64 little-endian lengths)."""
        return b"".join(
            (
                _LENGTH.pack(len(self.nonce)),
                bytes(self.nonce),
                _LENGTH.pack(len(self.data)),
                bytes(self.data),
            )
        )

    @classmethod
    def decode(cls, data: bytes) -> "Packet":
        """Parse a packet; trailing bytes after the second field are ignored."""
        view = memoryview(bytes(data))
        nonce, offset = _read_field(view, 0)
        payload, _ = _read_field(view, offset)
        return cls(nonce=nonce, data=payload)