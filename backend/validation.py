"""
Request body validation helpers.

Each helper takes the decoded JSON body and either returns cleaned values or
raises `ValidationError` with per-field details.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backend.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[\w-]+(\.[\w-]+)*@([\w-]+\.)+[a-zA-Z]{2,7}$")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
VALID_CATEGORIES = ("conference", "workshop", "social", "other")
VALID_STATUSES = ("draft", "published", "cancelled")


def _raise_if(errors: Dict[str, str]) -> None:
    if errors:
        raise ValidationError("Invalid input", details=errors)


def _string(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def _check_password(value: Any, key: str, errors: Dict[str, str]) -> None:
    if not isinstance(value, str) or len(value) < PASSWORD_MIN_LENGTH:
        errors[key] = f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        return
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates survive JSON decoding but cannot be hashed.
        errors[key] = "Password contains invalid characters"


def _check_name(name: str, errors: Dict[str, str]) -> None:
    if len(name) < NAME_MIN_LENGTH:
        errors["name"] = f"Name must be at least {NAME_MIN_LENGTH} characters long"
    elif len(name) > NAME_MAX_LENGTH:
        errors["name"] = f"Name cannot be more than {NAME_MAX_LENGTH} characters"


def validate_login(data: Dict[str, Any]) -> Dict[str, str]:
    email = _string(data, "email").lower()
    password = data.get("password")

    errors: Dict[str, str] = {}
    if not EMAIL_PATTERN.match(email):
        errors["email"] = "Invalid email address"
    _check_password(password, "password", errors)
    _raise_if(errors)

    return {"email": email, "password": password}


def validate_register(data: Dict[str, Any]) -> Dict[str, str]:
    name = _string(data, "name")

    errors: Dict[str, str] = {}
    try:
        cleaned = validate_login(data)
    except ValidationError as e:
        errors.update(e.details)
        cleaned = {}
    _check_name(name, errors)
    _raise_if(errors)

    return {"name": name, **cleaned}


def validate_profile_update(data: Dict[str, Any]) -> Dict[str, str]:
    name = _string(data, "name")
    errors: Dict[str, str] = {}
    _check_name(name, errors)
    _raise_if(errors)
    return {"name": name}


def validate_password_change(data: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    current = data.get("current_password")
    if not isinstance(current, str) or not current:
        errors["current_password"] = "Current password is required"
    _check_password(data.get("new_password"), "new_password", errors)
    _raise_if(errors)
    return {"current_password": current, "new_password": data["new_password"]}


def parse_dt(val: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (a trailing 'Z' is accepted) to an aware datetime.

    Naive values are taken as UTC. Returns None if the value is not parseable.
    """
    if not isinstance(val, str) or not val:
        return None
    if val.endswith("Z"):
        val = val[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(val)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_event(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate an event body.

    Args:
        data (dict): Decoded JSON body.
        partial (bool): Update mode. Only the keys present are checked, and
            at least one must be present.

    Returns:
        dict: Store-ready fields (`event_date` instead of `date`,
        `max_attendees` instead of `maxAttendees`).
    """
    errors: Dict[str, str] = {}
    fields: Dict[str, Any] = {}

    def wanted(key: str) -> bool:
        return not partial or key in data

    if wanted("title"):
        title = _string(data, "title")
        if not title or len(title) > TITLE_MAX_LENGTH:
            errors["title"] = f"Title must be 1-{TITLE_MAX_LENGTH} characters"
        fields["title"] = title

    if wanted("description"):
        description = _string(data, "description")
        if not description or len(description) > DESCRIPTION_MAX_LENGTH:
            errors["description"] = f"Description must be 1-{DESCRIPTION_MAX_LENGTH} characters"
        fields["description"] = description

    if wanted("date"):
        event_date = parse_dt(data.get("date"))
        if event_date is None:
            errors["date"] = "Invalid date format"
        elif event_date <= datetime.now(timezone.utc):
            errors["date"] = "Event date must be in the future"
        fields["event_date"] = event_date

    if wanted("location"):
        location = _string(data, "location")
        if not location:
            errors["location"] = "Location is required"
        fields["location"] = location

    if wanted("category"):
        category = data.get("category")
        if category not in VALID_CATEGORIES:
            errors["category"] = f"Category must be one of {', '.join(VALID_CATEGORIES)}"
        fields["category"] = category

    if "maxAttendees" in data:
        max_attendees = data.get("maxAttendees")
        if max_attendees is not None and (
            isinstance(max_attendees, bool) or not isinstance(max_attendees, int) or max_attendees < 1
        ):
            errors["maxAttendees"] = "Maximum attendees must be at least 1"
        fields["max_attendees"] = max_attendees

    # Only updates may move an event between draft, published and cancelled.
    if partial and "status" in data:
        status = data.get("status")
        if status not in VALID_STATUSES:
            errors["status"] = f"Status must be one of {', '.join(VALID_STATUSES)}"
        fields["status"] = status

    if partial and not fields and not errors:
        errors["body"] = "No valid fields to update"

    _raise_if(errors)
    return fields
