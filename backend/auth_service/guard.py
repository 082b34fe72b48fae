"""
Authentication guard for protected routes.

Finds a token on the request (cookie first, then `Authorization: Bearer`),
verifies it, and exposes the caller as `flask.g.identity`. It never touches
the database.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import current_app, g, Request, request

from backend.auth_service.tokens import AuthenticatedIdentity, TokenService
from backend.errors import InvalidTokenError, UnauthorizedError

TOKEN_COOKIE = "token"


def extract_token(req: Request) -> Optional[str]:
    """
    Return the raw token carried by a request, or None.

    The `token` cookie wins over the Authorization header.
    """
    token = req.cookies.get(TOKEN_COOKIE)
    if token:
        return token

    auth = req.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        token = auth.split(" ", 1)[1].strip()
        return token or None

    return None


class AuthGuard:
    def __init__(self, tokens: TokenService, logger: Optional[logging.Logger] = None):
        self._tokens = tokens
        self._log = logger or logging.getLogger(__name__)

    def authenticate(self, req: Request) -> AuthenticatedIdentity:
        """
        Resolve the identity behind a request.

        Raises:
            UnauthorizedError: reason "missing" when there is no token, or the
                verification reason ("invalid"/"expired") when there is one.
                Clients only ever see "Unauthorized".
        """
        token = extract_token(req)
        if token is None:
            self._log.warning("Authentication failed: no token provided (%s %s)", req.method, req.path)
            raise UnauthorizedError(reason="missing")

        try:
            identity = self._tokens.verify(token)
        except InvalidTokenError as e:
            self._log.warning("Authentication failed: %s token (%s %s)", e.reason, req.method, req.path)
            raise UnauthorizedError(reason=e.reason) from e

        return identity

    def try_authenticate(self, req: Request) -> Optional[AuthenticatedIdentity]:
        """Like `authenticate`, but an absent or bad token just means anonymous."""
        if extract_token(req) is None:
            return None
        try:
            return self.authenticate(req)
        except UnauthorizedError:
            return None


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator for views that need an authenticated caller.

    The view only runs once `g.identity` is set.
    """

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        guard: AuthGuard = current_app.extensions["auth_guard"]
        g.identity = guard.authenticate(request)
        return view(*args, **kwargs)

    return wrapper


def current_identity() -> AuthenticatedIdentity:
    return g.identity


def optional_identity() -> Optional[AuthenticatedIdentity]:
    """Identity for routes that also serve anonymous callers."""
    guard: AuthGuard = current_app.extensions["auth_guard"]
    return guard.try_authenticate(request)
