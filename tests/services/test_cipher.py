import base64

import pytest

from app.services.cipher import Cipher, DecryptionFailed, NONCE_SIZE, decode_key, encode_key


@pytest.fixture
def cipher():
    return Cipher()


def test_generate_key_is_random_256_bit(cipher):
    a, b = cipher.generate_key(), cipher.generate_key()
    assert len(a) == 32
    assert a != b


def test_decrypt_returns_original_plaintext(cipher):
    key = cipher.generate_key()
    assert cipher.decrypt(cipher.encrypt(b"hello", key), key) == b"hello"


def test_decrypt_empty_plaintext(cipher):
    key = cipher.generate_key()
    assert cipher.decrypt(cipher.encrypt(b"", key), key) == b""


def test_decrypt_with_wrong_key_fails(cipher):
    key = cipher.generate_key()
    ciphertext = cipher.encrypt(b"hello", key)
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(ciphertext, cipher.generate_key())


@pytest.mark.parametrize("position", [0, NONCE_SIZE, -1])
def test_decrypt_tampered_ciphertext_fails(cipher, position):
    key = cipher.generate_key()
    data = bytearray(cipher.encrypt(b"hello world", key))
    data[position] ^= 0x01
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(bytes(data), key)


def test_decrypt_truncated_ciphertext_fails(cipher):
    key = cipher.generate_key()
    with pytest.raises(DecryptionFailed):
        cipher.decrypt(cipher.encrypt(b"hello", key)[:20], key)


def test_same_key_uses_independent_nonces(cipher):
    key = cipher.generate_key()
    first = cipher.encrypt(b"same", key)
    second = cipher.encrypt(b"same", key)
    assert first[:NONCE_SIZE] != second[:NONCE_SIZE]
    assert first != second


def test_encode_key_is_url_safe_base64(cipher):
    key = cipher.generate_key()
    encoded = encode_key(key)
    assert "+" not in encoded and "/" not in encoded
    assert base64.urlsafe_b64decode(encoded) == key
    assert decode_key(encoded) == key


@pytest.mark.parametrize("encoded", ["", "not base64!!", "é", base64.urlsafe_b64encode(b"short").decode()])
def test_decode_key_rejects_invalid_input(encoded):
    assert decode_key(encoded) is None
