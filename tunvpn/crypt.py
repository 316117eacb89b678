"""AES-256-GCM encryption of tunnel payloads."""

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from tunvpn.errors import ProtocolError

TEST_KEY = b"32_byte_secret_key_for_aes256gcm"
KEY_SIZE = 32
NONCE_SIZE = 12


def _cipher(key: bytes) -> AESGCM:
    if len(key) != KEY_SIZE:
        raise ProtocolError("Invalid Length")
    return AESGCM(bytes(key))


def encrypt_aes256gcm(key: bytes, plaintext: bytes) -> tuple[bytes, bytes]:
    """Encrypt ``plaintext`` with a fresh random nonce; return (ciphertext, nonce)."""
    cipher = _cipher(key)
    nonce = os.urandom(NONCE_SIZE)
    return cipher.encrypt(nonce, bytes(plaintext), None), nonce


def decrypt_aes256gcm(key: bytes, ciphertext: bytes, nonce: bytes) -> bytes:
    """Decrypt and authenticate ``ciphertext`` produced with ``nonce``."""
    cipher = _cipher(key)
    if len(nonce) != NONCE_SIZE:
        raise ProtocolError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    try:
        return cipher.decrypt(bytes(nonce), bytes(ciphertext), None)
    except InvalidTag:
        raise ProtocolError("aead::Error") from None