"""Password hashing with scrypt.

Each password gets its own random salt. Salt and derived key are stored hex
encoded in separate columns. Parameters are fixed for the whole deployment:
32-byte salt, 64-byte key, N=2**14, r=8, p=1.
"""

import binascii
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass

from auth.exceptions import PasswordHashingError

logger = logging.getLogger(__name__)

SALT_BYTES = 32
KEY_LENGTH = 64
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


@dataclass(frozen=True)
class HashedPassword:
    """Hex-encoded salt and derived key."""

    salt: str
    hash: str


class PasswordHasher:
    """Derives and verifies scrypt password hashes.

    Both operations are CPU bound (tens of milliseconds). Call them from a
    worker thread when serving requests.
    """

    def __init__(
        self,
        salt_bytes: int = SALT_BYTES,
        key_length: int = KEY_LENGTH,
        n: int = SCRYPT_N,
        r: int = SCRYPT_R,
        p: int = SCRYPT_P,
    ):
        if salt_bytes < 16:
            raise ValueError("salt_bytes must be at least 16")
        if key_length < 64:
            raise ValueError("key_length must be at least 64")
        self._salt_bytes = salt_bytes
        self._key_length = key_length
        self._n = n
        self._r = r
        self._p = p
        # scrypt needs 128 * N * r bytes; leave headroom over OpenSSL's 32MB default
        self._maxmem = 256 * n * r

    def _derive(self, password: str, salt: str) -> bytes:
        try:
            return hashlib.scrypt(
                password.encode("utf-8"),
                salt=salt.encode("utf-8"),
                n=self._n,
                r=self._r,
                p=self._p,
                maxmem=self._maxmem,
                dklen=self._key_length,
            )
        except (ValueError, MemoryError) as e:
            logger.error(f"scrypt derivation failed: {e}")
            raise PasswordHashingError("Password hashing failed") from e

    def hash(self, password: str) -> HashedPassword:
        """Hash a new password with a fresh random salt."""
        salt = secrets.token_bytes(self._salt_bytes).hex()
        derived = self._derive(password, salt)
        return HashedPassword(salt=salt, hash=derived.hex())

    def verify(self, password: str, salt: str, expected_hash: str) -> bool:
        """Check a candidate password against a stored salt and hash.

        Returns False for a stored hash that is not valid hex or has the
        wrong length. The byte comparison itself is constant time.
        """
        derived = self._derive(password, salt)

        try:
            expected = binascii.unhexlify(expected_hash)
        except (binascii.Error, ValueError):
            return False

        if len(expected) != len(derived):
            return False

        return hmac.compare_digest(derived, expected)
