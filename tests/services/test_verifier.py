import base64
import os

import pytest

from app.services.verifier import KeyVerifier


@pytest.fixture
def verifier():
    return KeyVerifier(cost=4)


def test_verify_accepts_original_key(verifier):
    key = os.urandom(32)
    assert verifier.verify(key, verifier.derive_verifier(key))


@pytest.mark.parametrize("bit", [0, 7, 128, 255])
def test_verify_rejects_single_bit_mutation(verifier, bit):
    key = os.urandom(32)
    digest = verifier.derive_verifier(key)
    mutated = bytearray(key)
    mutated[bit // 8] ^= 1 << (bit % 8)
    assert not verifier.verify(bytes(mutated), digest)


def test_digest_is_salted_and_does_not_contain_key(verifier):
    key = os.urandom(32)
    first = verifier.derive_verifier(key)
    second = verifier.derive_verifier(key)
    assert first != second
    assert base64.urlsafe_b64encode(key).decode() not in first
    assert verifier.verify(key, second)


def test_digest_records_its_cost(verifier):
    key = os.urandom(32)
    digest = verifier.derive_verifier(key)
    assert digest.startswith("scrypt$4$")
    # a verifier configured with a different cost still checks old digests
    assert KeyVerifier(cost=5).verify(key, digest)


@pytest.mark.parametrize("digest", ["", "bcrypt$1$2$3$4$5", "scrypt$4$8$1$salt"])
def test_verify_rejects_malformed_digest(verifier, digest):
    with pytest.raises(ValueError):
        verifier.verify(b"k" * 32, digest)
