# app/services/cipher.py
# Layout: [nonce 12B][ciphertext + GCM tag 16B]. Never log keys or plaintext.
import base64
import os
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 12
TAG_SIZE = 16


class DecryptionFailed(Exception):
    """Wrong key, tampered data or truncated ciphertext."""


class Cipher:
    def generate_key(self) -> bytes:
        return AESGCM.generate_key(bit_length=KEY_LENGTH * 8)

    def encrypt(self, plaintext: bytes, key: bytes) -> bytes:
        nonce = os.urandom(NONCE_SIZE)
        return nonce + AESGCM(key).encrypt(nonce, plaintext, None)

    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        if len(key) != KEY_LENGTH:
            raise DecryptionFailed("key has wrong length")
        if len(ciphertext) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionFailed("ciphertext too short")
        nonce = ciphertext[:NONCE_SIZE]
        try:
            return AESGCM(key).decrypt(nonce, ciphertext[NONCE_SIZE:], None)
        except InvalidTag as exc:
            raise DecryptionFailed("authentication failed") from exc


def encode_key(key: bytes) -> str:
    return base64.urlsafe_b64encode(key).decode("ascii")


def decode_key(encoded: str) -> bytes | None:
    """Decode a client-supplied key; None if it cannot be a valid key."""
    try:
        key = base64.urlsafe_b64decode(encoded.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return None
    if len(key) != KEY_LENGTH:
        return None
    return key
