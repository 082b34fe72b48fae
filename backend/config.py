"""
Application configuration.

Reads settings from the environment (and a .env file via python-dotenv) once at
startup and freezes them into an `AppConfig`. The config object is passed to
the components that need it; nothing reads `os.environ` after startup.
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

VALID_ENVIRONMENTS = ("development", "production", "test")
VALID_ALGORITHMS = ("HS256", "HS384", "HS512")
MIN_SECRET_LENGTH = 32
# HMAC keys should be at least as long as the hash output.
MIN_SECRET_LENGTH_BY_ALGORITHM = {"HS256": 32, "HS384": 48, "HS512": 64}

EXPIRY_PATTERN = re.compile(r"^(\d+)([hdwmy])$")
EXPIRY_UNITS = {
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
    "y": timedelta(days=365),
}


class ConfigError(Exception):
    """Raised when the environment does not describe a valid configuration."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


def parse_expiry(value: str) -> timedelta:
    """
    Convert an expiry string such as "1d" or "12h" into a timedelta.

    Supported units: m (minutes), h (hours), d (days), w (weeks), y (365 days).

    Raises:
        ConfigError: If the string does not match `<integer><unit>`.
    """
    match = EXPIRY_PATTERN.match((value or "").strip())
    if not match:
        raise ConfigError([f"Invalid expiry '{value}', expected <integer><h|d|w|m|y>"])
    amount = int(match.group(1))
    if amount <= 0:
        raise ConfigError([f"Invalid expiry '{value}', amount must be positive"])
    return EXPIRY_UNITS[match.group(2)] * amount


@dataclass(frozen=True)
class AppConfig:
    database_url: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expires_in: str = "1d"
    jwt_refresh_expires_in: str = "7d"
    app_env: str = "development"
    port: int = 5050
    cors_origins: Tuple[str, ...] = ("*",)
    password_hash_cost: int = 10
    log_level: str = "INFO"

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_expiry(self.jwt_expires_in)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_expiry(self.jwt_refresh_expires_in)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def __repr__(self) -> str:
        # Keep the signing secret and DB credentials out of logs and tracebacks.
        return (
            f"AppConfig(app_env={self.app_env!r}, port={self.port}, "
            f"jwt_algorithm={self.jwt_algorithm!r}, "
            f"jwt_expires_in={self.jwt_expires_in!r}, "
            f"jwt_refresh_expires_in={self.jwt_refresh_expires_in!r})"
        )


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build and validate an `AppConfig`.

    Args:
        environ: Mapping to read from. Defaults to `os.environ` after loading
            a local .env file.

    Returns:
        AppConfig: The validated, immutable configuration.

    Raises:
        ConfigError: Listing every problem found. The secret value is never
            included in the message.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    problems: List[str] = []
    values: Dict[str, object] = {}

    app_env = environ.get("APP_ENV", "development")
    if app_env not in VALID_ENVIRONMENTS:
        problems.append(f"APP_ENV must be one of {', '.join(VALID_ENVIRONMENTS)}")
    values["app_env"] = app_env

    database_url = environ.get("DATABASE_URL", "")
    if not database_url:
        problems.append("DATABASE_URL is not set")
    values["database_url"] = database_url

    algorithm = environ.get("JWT_ALGORITHM", "HS256")
    if algorithm not in VALID_ALGORITHMS:
        problems.append(f"JWT_ALGORITHM must be one of {', '.join(VALID_ALGORITHMS)}")
    values["jwt_algorithm"] = algorithm

    secret = environ.get("JWT_SECRET", "")
    min_length = MIN_SECRET_LENGTH_BY_ALGORITHM.get(algorithm, MIN_SECRET_LENGTH)
    if not secret:
        problems.append("JWT_SECRET is missing")
    elif len(secret) < min_length:
        problems.append(f"JWT_SECRET must be at least {min_length} characters long for {algorithm}")
    values["jwt_secret"] = secret

    for key, field_name, default in (
        ("JWT_EXPIRES_IN", "jwt_expires_in", "1d"),
        ("JWT_REFRESH_EXPIRES_IN", "jwt_refresh_expires_in", "7d"),
    ):
        raw = environ.get(key, default)
        try:
            parse_expiry(raw)
        except ConfigError:
            problems.append(f"{key} must look like <integer><h|d|w|m|y>")
        values[field_name] = raw

    for key, field_name, default, minimum in (
        ("PORT", "port", "5050", 1),
        ("PASSWORD_HASH_COST", "password_hash_cost", "10", 1),
    ):
        raw = environ.get(key, default)
        try:
            number = int(raw)
        except (TypeError, ValueError):
            problems.append(f"{key} must be an integer")
            continue
        if number < minimum:
            problems.append(f"{key} must be at least {minimum}")
        values[field_name] = number

    origins = environ.get("CORS_ORIGIN", "*")
    values["cors_origins"] = tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",)

    log_level = environ.get("LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        problems.append("LOG_LEVEL must be a logging level name")
    values["log_level"] = log_level

    if problems:
        raise ConfigError(problems)

    return AppConfig(**values)
