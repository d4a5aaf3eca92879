"""
bcrypt password hashing.

Isolated from the token code so the cost factor (or the algorithm) can be
changed without touching the auth flows.

Example:
    hasher = PasswordHasher(rounds=10)
    digest = hasher.hash("Passw0rd!")
    assert hasher.verify("Passw0rd!", digest)
"""

import base64
import hashlib
import logging
from typing import Optional

import bcrypt as bcrypt_lib

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Slow adaptive password hashing backed by bcrypt."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        """
        Args:
            rounds: bcrypt work factor (log2 of the iteration count)
        """
        self.rounds = rounds

    @staticmethod
    def _prehash_password(password: str) -> bytes:
        """
        Pre-hash password with SHA-256 before bcrypt.

        bcrypt only accepts 72 bytes; the base64 digest is always 44.
        """
        sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(sha256_hash)

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt with SHA-256 pre-hashing."""
        salt = bcrypt_lib.gensalt(rounds=self.rounds)
        return bcrypt_lib.hashpw(self._prehash_password(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: Optional[str]) -> bool:
        """
        Verify a password against its hash.

        Accounts created by the signup OTP step have no password yet, so a
        missing digest simply fails verification.
        """
        if not hashed:
            return False

        try:
            return bcrypt_lib.checkpw(self._prehash_password(password), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Password verification failed on an unreadable hash")
            return False
