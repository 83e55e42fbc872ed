"""
Witter API — Password Hashing Service
======================================

What:  Hashes and verifies account passwords with bcrypt.
How:   passlib's CryptContext, with the cost factor taken from
       settings.bcrypt_work_factor (11 by default, 4 in tests).
Who:   UserService (register, authenticate, update) and the old-password
       validator.
"""

import logging

from passlib.context import CryptContext

from witter.config import settings

logger = logging.getLogger(__name__)


class PasswordService:
    """Thin wrapper around a bcrypt CryptContext."""

    def __init__(self, rounds: int = settings.bcrypt_work_factor):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        """
        True when `password` matches `hashed`.

        A stored value that is not a recognizable bcrypt hash counts as a
        mismatch rather than an error.
        """
        if not password or not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            logger.warning("Stored password hash could not be parsed")
            return False


password_service = PasswordService()
