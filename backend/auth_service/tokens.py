"""
JWT issuance and verification.

Tokens are stateless: verification needs only the token and the shared
secret, so there is no server-side session and no revocation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from backend.config import AppConfig
from backend.errors import InvalidTokenError

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    def to_dict(self) -> Dict[str, str]:
        return {"accessToken": self.access_token, "refreshToken": self.refresh_token}


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Who is making the current request. Lives only as long as the request."""

    user_id: str


class TokenService:
    def __init__(self, config: AppConfig):
        self._secret = config.jwt_secret
        self._algorithm = config.jwt_algorithm
        self._access_ttl = config.access_token_ttl
        self._refresh_ttl = config.refresh_token_ttl

    def _encode(self, user_id: str, token_type: str, ttl: timedelta, now: datetime) -> str:
        payload = {
            "sub": str(user_id),
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_token_pair(self, user_id: str, now: Optional[datetime] = None) -> TokenPair:
        """
        Issue a fresh access/refresh pair for a user.

        Args:
            user_id (str): Subject of both tokens.
            now (datetime, optional): Issue time. Defaults to the current UTC time.

        Returns:
            TokenPair: The signed tokens.
        """
        now = now or datetime.now(timezone.utc)
        return TokenPair(
            access_token=self._encode(user_id, ACCESS, self._access_ttl, now),
            refresh_token=self._encode(user_id, REFRESH, self._refresh_ttl, now),
        )

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry and return the raw claims.

        Raises:
            InvalidTokenError: With reason "expired" or "invalid".
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError(reason="expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(reason="invalid") from e

    def verify(self, token: str, expected_type: Optional[str] = ACCESS) -> AuthenticatedIdentity:
        """
        Verify a token and return the identity it proves.

        Args:
            token (str): Encoded JWT.
            expected_type (str, optional): "access" or "refresh". Pass None to
                accept either.

        Raises:
            InvalidTokenError: If the token is malformed, tampered with,
                expired, or of the wrong type.
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError(reason="invalid")

        claims = self.decode(token)

        if expected_type is not None and claims.get("type") != expected_type:
            raise InvalidTokenError(reason="invalid")

        user_id = claims.get("sub")
        if not user_id:
            raise InvalidTokenError(reason="invalid")

        return AuthenticatedIdentity(user_id=str(user_id))
