# Digest format: scrypt$<log2 n>$<r>$<p>$<salt b64>$<hash b64>
import base64
import os
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

SCHEME = "scrypt"
SALT_SIZE = 16
HASH_LENGTH = 32
BLOCK_SIZE = 8
PARALLELISM = 1


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii")


class KeyVerifier:
    def __init__(self, cost: int = 15):
        self.cost = cost

    def derive_verifier(self, key: bytes) -> str:
        salt = os.urandom(SALT_SIZE)
        kdf = self._kdf(salt, self.cost, BLOCK_SIZE, PARALLELISM)
        digest = kdf.derive(key)
        return "$".join(
            [SCHEME, str(self.cost), str(BLOCK_SIZE), str(PARALLELISM), _b64(salt), _b64(digest)]
        )

    def verify(self, key: bytes, digest: str) -> bool:
        """Recompute the verifier for ``key`` and compare in constant time.

        Raises ValueError if ``digest`` was not produced by ``derive_verifier``.
        """
        scheme, cost, block_size, parallelism, salt, expected = self._parse(digest)
        kdf = self._kdf(salt, cost, block_size, parallelism)
        try:
            kdf.verify(key, expected)
        except InvalidKey:
            return False
        return True

    @staticmethod
    def _kdf(salt: bytes, cost: int, block_size: int, parallelism: int) -> Scrypt:
        return Scrypt(salt=salt, length=HASH_LENGTH, n=2**cost, r=block_size, p=parallelism)

    @staticmethod
    def _parse(digest: str):
        parts = digest.split("$")
        if len(parts) != 6 or parts[0] != SCHEME:
            raise ValueError("unrecognised verifier digest")
        _, cost, block_size, parallelism, salt, expected = parts
        return (
            SCHEME,
            int(cost),
            int(block_size),
            int(parallelism),
            base64.urlsafe_b64decode(salt),
            base64.urlsafe_b64decode(expected),
        )
