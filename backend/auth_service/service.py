"""
Authentication use cases: register, login and the profile update paths.

The service works on plain dict rows from the credential store and never
returns or logs a password hash.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from backend.auth_service.passwords import PasswordHasher
from backend.auth_service.store import UserStore, normalize_email
from backend.auth_service.tokens import TokenPair, TokenService
from backend.errors import ConflictError, InvalidCredentialsError, NotFoundError


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def public_user(row: Dict[str, Any]) -> Dict[str, Any]:
    """Project a user row onto the fields that may leave the server."""
    return {
        "id": row["user_id"],
        "name": row["name"],
        "email": row["email"],
        "createdAt": _iso(row.get("created_at")),
        "updatedAt": _iso(row.get("updated_at")),
    }


@dataclass(frozen=True)
class AuthResult:
    user: Dict[str, Any]
    tokens: TokenPair

    def to_dict(self) -> Dict[str, Any]:
        return {"user": self.user, "tokens": self.tokens.to_dict()}


class AuthService:
    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        logger: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self._log = logger or logging.getLogger(__name__)
        self._dummy_hash: Optional[str] = None

    def register(self, name: str, email: str, password: str) -> AuthResult:
        """
        Create an account and sign the new user in.

        The lookup below only gives a friendly early error; the unique index
        in the store decides the race between concurrent registrations.

        Raises:
            ConflictError: If the email is already registered.
            HashingError: If the password cannot be hashed.
        """
        email = normalize_email(email)
        if self._store.find_by_email(email) is not None:
            self._log.info("Registration rejected: email already registered")
            raise ConflictError()

        password_hash = self._hasher.hash(password)
        user = self._store.create(name=name, email=email, password_hash=password_hash)

        self._log.info("Registered user %s", user["user_id"])
        return AuthResult(user=public_user(user), tokens=self._tokens.issue_token_pair(user["user_id"]))

    def login(self, email: str, password: str) -> AuthResult:
        """
        Check credentials and issue a new token pair.

        Raises:
            InvalidCredentialsError: Same error whether the email is unknown
                or the password is wrong.
        """
        user = self._store.find_by_email(email)

        if user is None:
            # Burn the same hashing work as a real check so timing does not
            # reveal whether the email exists.
            self._hasher.verify(password, self._get_dummy_hash())
            self._log.info("Login failed")
            raise InvalidCredentialsError()

        if not self._hasher.verify(password, user["password_hash"]):
            self._log.info("Login failed")
            raise InvalidCredentialsError()

        self._log.info("User %s logged in", user["user_id"])
        return AuthResult(user=public_user(user), tokens=self._tokens.issue_token_pair(user["user_id"]))

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        user = self._store.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return public_user(user)

    def update_profile(self, user_id: str, name: str) -> Dict[str, Any]:
        user = self._store.update_name(user_id, name)
        if user is None:
            raise NotFoundError("User not found")
        self._log.info("Updated profile for user %s", user_id)
        return public_user(user)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """
        Replace a user's password after re-checking the current one.

        Raises:
            NotFoundError: If the user no longer exists.
            InvalidCredentialsError: If `current_password` is wrong.
        """
        user = self._store.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if not self._hasher.verify(current_password, user["password_hash"]):
            self._log.info("Password change rejected for user %s", user_id)
            raise InvalidCredentialsError("Current password is incorrect")

        if self._store.update_password_hash(user_id, self._hasher.hash(new_password)) is None:
            raise NotFoundError("User not found")
        self._log.info("Password changed for user %s", user_id)

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self._hasher.hash(secrets.token_urlsafe(16))
        return self._dummy_hash
