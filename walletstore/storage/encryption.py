"""Record encryption with ChaCha20-Poly1305.

A sealed record is the URL-safe base64 text of ``nonce || ciphertext || tag``
with a fresh random 12-byte nonce per record. The record key is bound as
associated data, so a ciphertext moved to another key fails authentication.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from .exceptions import DecryptionError

KEY_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16


def generate_key() -> bytes:
    """Generate a random record encryption key."""
    return ChaCha20Poly1305.generate_key()


def check_key(key: bytes) -> bytes:
    """Validate key length, returning the key as bytes."""
    key = bytes(key)
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Encryption key must be {KEY_LENGTH} bytes, got {len(key)}")
    return key


def encrypt_record(key: bytes, record_key: str, plaintext: str) -> str:
    """Seal a plaintext record."""
    nonce = os.urandom(NONCE_LENGTH)
    sealed = ChaCha20Poly1305(key).encrypt(
        nonce, plaintext.encode("utf-8"), record_key.encode("utf-8")
    )
    return base64.urlsafe_b64encode(nonce + sealed).decode("ascii")


def decrypt_record(key: bytes, record_key: str, sealed: str) -> str:
    """Open a sealed record, raising DecryptionError on any failure."""
    try:
        raw = base64.urlsafe_b64decode(sealed.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError):
        raise DecryptionError(record_key) from None

    if len(raw) < NONCE_LENGTH + TAG_LENGTH:
        raise DecryptionError(record_key)

    nonce, ciphertext = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:]
    try:
        plaintext = ChaCha20Poly1305(key).decrypt(
            nonce, ciphertext, record_key.encode("utf-8")
        )
    except InvalidTag:
        raise DecryptionError(record_key) from None

    return plaintext.decode("utf-8")
