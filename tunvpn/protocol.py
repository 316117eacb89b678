"""Sealing and opening of tunnel packets."""

from tunvpn.crypt import TEST_KEY, decrypt_aes256gcm, encrypt_aes256gcm
from tunvpn.packet import Packet


def encrypt(data: bytes) -> bytes:
    """Encrypt ``data`` and frame it for sending over the wire."""
    ciphertext, nonce = encrypt_aes256gcm(TEST_KEY, data)
    return Packet(nonce=nonce, data=ciphertext).encode()


def decrypt(data: bytes) -> bytes:
    """Parse a framed packet from the wire and decrypt its payload."""
    packet = Packet.decode(data)
    return decrypt_aes256gcm(TEST_KEY, packet.data, packet.nonce)