"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login
- Logout (clears the token cookie)
- Profile retrieval (/me)
- Profile update (/me PUT)
- Password change (/me/password PUT)

Business rules live in `AuthService`; these handlers validate input, call the
service and shape the response. Errors propagate to the app's error handlers.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from backend.auth_service.guard import TOKEN_COOKIE, current_identity, login_required
from backend.auth_service.service import AuthResult, AuthService
from backend.config import AppConfig
from backend.validation import (
    validate_login,
    validate_password_change,
    validate_profile_update,
    validate_register,
)

auth_bp = Blueprint("auth", __name__)
logger = logging.getLogger(__name__)


def _service() -> AuthService:
    return current_app.extensions["auth_service"]


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _auth_response(result: AuthResult, status: int) -> Tuple[Response, int]:
    """Build the `{user, tokens}` body and mirror the access token into a cookie."""
    config: AppConfig = current_app.extensions["config"]
    response = jsonify(result.to_dict())
    response.set_cookie(
        TOKEN_COOKIE,
        result.tokens.access_token,
        max_age=int(config.access_token_ttl.total_seconds()),
        httponly=True,
        secure=config.is_production,
        samesite="Lax",
    )
    return response, status


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    # Headers are not logged: they carry bearer tokens and cookies.
    logger.info("[Auth] Incoming %s %s", request.method, request.path)


@auth_bp.after_request
def after_request(response: Response) -> Response:
    logger.info("[Auth] Response %s", response.status)
    return response


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user.

    Expects a JSON body with:
    - name (str): At least 2 characters.
    - email (str): Valid, unique (case-insensitive) address.
    - password (str): Minimum 8 characters.

    Returns:
        201: {user, tokens}.
        400: Invalid input.
        409: Email already registered.
    """
    data = validate_register(_body())
    result = _service().register(data["name"], data["email"], data["password"])
    return _auth_response(result, 201)


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and issue a new token pair.

    Returns:
        200: {user, tokens}.
        400: Invalid input.
        401: Invalid email or password.
    """
    data = validate_login(_body())
    result = _service().login(data["email"], data["password"])
    return _auth_response(result, 200)


# --- LOGOUT ---
@auth_bp.route("/logout", methods=["POST"])
def logout() -> Tuple[Response, int]:
    """
    Clear the token cookie.

    Tokens are stateless, so a bearer-token client logs out by discarding
    its tokens.
    """
    config: AppConfig = current_app.extensions["config"]
    response = jsonify({"message": "Logged out successfully"})
    response.delete_cookie(TOKEN_COOKIE, httponly=True, secure=config.is_production, samesite="Lax")
    return response, 200


# --- GET CURRENT USER ---
@auth_bp.route("/me", methods=["GET"])
@login_required
def get_current_user() -> Tuple[Response, int]:
    return jsonify(_service().get_profile(current_identity().user_id)), 200


# --- UPDATE CURRENT USER ---
@auth_bp.route("/me", methods=["PUT"])
@login_required
def update_current_user() -> Tuple[Response, int]:
    """
    Update the caller's display name.

    Returns:
        200: Updated public user.
        400: Invalid name.
        401: Authentication failure.
    """
    data = validate_profile_update(_body())
    return jsonify(_service().update_profile(current_identity().user_id, data["name"])), 200


# --- CHANGE PASSWORD ---
@auth_bp.route("/me/password", methods=["PUT"])
@login_required
def change_password() -> Tuple[Response, int]:
    data = validate_password_change(_body())
    _service().change_password(
        current_identity().user_id,
        data["current_password"],
        data["new_password"],
    )
    return jsonify({"message": "Password updated"}), 200
