"""
Error taxonomy and the JSON error boundary.

Services raise these typed errors; `register_error_handlers` turns them into
`{"error": ...}` responses so no service ever builds an HTTP response itself.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.details:
            body["details"] = self.details
        return body


class ConflictError(AppError):
    status_code = 409
    default_message = "Email already registered"


class InvalidCredentialsError(AppError):
    status_code = 401
    default_message = "Invalid email or password"


class InvalidTokenError(AppError):
    """
    A token failed verification.

    `reason` ("expired" or "invalid") is for logs only; the message stays
    generic.
    """

    status_code = 401
    default_message = "Invalid token"

    def __init__(self, reason: str = "invalid", message: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class UnauthorizedError(AppError):
    """
    The request carried no usable credential.

    `reason` is one of "missing", "invalid" or "expired" and is never sent to
    the client.
    """

    status_code = 401
    default_message = "Unauthorized"

    def __init__(self, reason: str = "missing", message: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Permission denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class HashingError(AppError):
    status_code = 500
    default_message = "Password hashing failed"


class InternalError(AppError):
    status_code = 500


def register_error_handlers(app: Flask, logger: Optional[logging.Logger] = None) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Args:
        app (Flask): The application.
        logger (logging.Logger, optional): Where unexpected failures are logged.
    """
    log = logger or logging.getLogger(__name__)

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError) -> Tuple[Response, int]:
        if error.status_code >= 500:
            log.error("%s: %s", type(error).__name__, error.message)
        else:
            log.info("Request rejected with %s (%s)", error.status_code, type(error).__name__)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Tuple[Response, int]:
        return jsonify({"error": error.description or error.name}), error.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception) -> Tuple[Response, int]:
        log.exception("Unhandled error while processing request")
        return jsonify({"error": InternalError.default_message}), 500
