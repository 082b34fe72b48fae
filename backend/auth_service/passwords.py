"""
Password hashing built on Argon2.

Plain functions over strings; nothing here knows about users or the database.
"""

import argon2
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError

from backend.errors import HashingError

DEFAULT_COST = 10


class PasswordHasher:
    """
    Salted one-way password hashing.

    Args:
        cost (int): Work factor, used as Argon2's time cost. Higher is slower.
    """

    def __init__(self, cost: int = DEFAULT_COST):
        self.cost = cost
        self._hasher = argon2.PasswordHasher(time_cost=cost)

    def hash(self, plaintext: str) -> str:
        """
        Hash a password with a fresh random salt.

        Raises:
            HashingError: If the underlying library fails.
        """
        try:
            return self._hasher.hash(plaintext)
        except (Argon2HashingError, UnicodeError) as e:
            raise HashingError() from e

    def verify(self, plaintext: str, hashed: str) -> bool:
        """
        Check a password against a stored hash.

        Returns False instead of raising for a mismatch, a malformed hash
        (including non-ASCII text), or a password that cannot be encoded.
        """
        if not isinstance(plaintext, str) or not isinstance(hashed, str):
            return False
        try:
            return self._hasher.verify(hashed, plaintext)
        except (VerificationError, InvalidHashError, UnicodeError):
            return False
