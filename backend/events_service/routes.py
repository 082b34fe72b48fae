"""
Events service routes: create, read, update and delete events.

Reads are public (drafts only show up for their organizer). Every write goes
through `login_required`, and updates/deletes are limited to the event's
organizer by `EventService`.
"""

import logging
import uuid
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from backend.auth_service.guard import current_identity, login_required, optional_identity
from backend.errors import ValidationError
from backend.events_service.service import EventService
from backend.validation import validate_event

events_bp = Blueprint("events", __name__)
logger = logging.getLogger(__name__)


def _service() -> EventService:
    return current_app.extensions["event_service"]


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _event_id(raw: str) -> str:
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        raise ValidationError("Invalid event ID format") from None


@events_bp.before_request
def before_request() -> None:
    logger.info("[Events] Incoming %s %s", request.method, request.path)


@events_bp.route("/", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all published events, soonest first.

    Returns:
        200: List of event objects.
    """
    return jsonify(_service().list_events()), 200


@events_bp.route("/<event_id>", methods=["GET"])
def get_event(event_id: str) -> Tuple[Response, int]:
    """
    Return one event.

    Returns:
        200: Event object.
        400: Malformed event id.
        404: Event not found (or a draft the caller does not organize).
    """
    return jsonify(_service().get_event(_event_id(event_id), optional_identity())), 200


@events_bp.route("/", methods=["POST"])
@login_required
def create_event() -> Tuple[Response, int]:
    """
    Create an event organized by the caller. New events start as drafts.

    Expects JSON with title, description, date (ISO-8601, in the future),
    location, category and optionally maxAttendees.

    Returns:
        201: The created event.
        400: Invalid input.
        401: Authentication failure.
    """
    fields = validate_event(_body())
    return jsonify(_service().create_event(current_identity(), fields)), 201


@events_bp.route("/<event_id>", methods=["PUT"])
@login_required
def update_event(event_id: str) -> Tuple[Response, int]:
    """
    Update an event. Only its organizer may do this.

    Returns:
        200: The updated event.
        400: Invalid input.
        401: Authentication failure.
        403: Caller is not the organizer.
        404: Event not found.
    """
    event_id = _event_id(event_id)
    fields = validate_event(_body(), partial=True)
    return jsonify(_service().update_event(event_id, current_identity(), fields)), 200


@events_bp.route("/<event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id: str) -> Tuple[Response, int]:
    """
    Delete an event if the caller is its organizer.
    """
    _service().delete_event(_event_id(event_id), current_identity())
    return jsonify({"status": "deleted"}), 200
