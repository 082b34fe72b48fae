from datetime import datetime

import psycopg2
import psycopg2.errors
import pytest

from backend.auth_service.store import UserStore
from backend.errors import ConflictError, InternalError

ROW = {
    "user_id": "7f1c3a52-3d4e-4e0f-9a55-1a2b3c4d5e6f",
    "name": "Jo Lee",
    "email": "jo@x.com",
    "password_hash": "$argon2id$hash",
    "created_at": datetime(2025, 1, 1, 10, 0, 0),
    "updated_at": datetime(2025, 1, 1, 10, 0, 0),
}


def test_find_by_email_normalizes(mock_db):
    connect, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = ROW

    user = UserStore(connect).find_by_email("  JO@X.com ")

    assert user == ROW
    args, _ = mock_cursor.execute.call_args
    assert "lower(email) = %s" in args[0]
    assert args[1] == ("jo@x.com",)


def test_find_by_email_missing_returns_none(mock_db):
    connect, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    assert UserStore(connect).find_by_email("ghost@x.com") is None


def test_create_inserts_normalized_row(mock_db):
    connect, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = ROW

    user = UserStore(connect).create(name=" Jo Lee ", email="Jo@X.com", password_hash="$argon2id$hash")

    assert user["user_id"] == ROW["user_id"]
    args, _ = mock_cursor.execute.call_args
    assert args[0].strip().startswith("INSERT INTO users")
    generated_id, name, email, password_hash = args[1]
    assert len(generated_id) == 36
    assert (name, email, password_hash) == ("Jo Lee", "jo@x.com", "$argon2id$hash")


def test_create_duplicate_email_raises_conflict(mock_db):
    connect, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.errors.UniqueViolation("duplicate key value")

    with pytest.raises(ConflictError):
        UserStore(connect).create(name="Jo Lee", email="jo@x.com", password_hash="h")


def test_driver_error_becomes_internal_error(mock_db):
    connect, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")

    with pytest.raises(InternalError):
        UserStore(connect).find_by_id(ROW["user_id"])


def test_update_name_returns_row(mock_db):
    connect, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {**ROW, "name": "Jo Q. Lee"}

    user = UserStore(connect).update_name(ROW["user_id"], "Jo Q. Lee")

    assert user["name"] == "Jo Q. Lee"
    args, _ = mock_cursor.execute.call_args
    assert "updated_at = CURRENT_TIMESTAMP" in args[0]
    assert args[1] == ("Jo Q. Lee", ROW["user_id"])
