"""
Event use cases, including the ownership rule: only an event's organizer may
update or delete it.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from backend.auth_service.tokens import AuthenticatedIdentity
from backend.errors import ForbiddenError, InternalError, NotFoundError
from backend.events_service.store import EventStore


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def public_event(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["event_id"],
        "title": row["title"],
        "description": row["description"],
        "date": _iso(row["event_date"]),
        "location": row["location"],
        "category": row["category"],
        "maxAttendees": row.get("max_attendees"),
        "status": row["status"],
        "organizer": row["organizer_id"],
        "createdAt": _iso(row.get("created_at")),
        "updatedAt": _iso(row.get("updated_at")),
    }


def check_owner(event: Dict[str, Any], identity: AuthenticatedIdentity) -> None:
    """
    Raise ForbiddenError unless the caller organizes `event`.

    A mismatch always reads as 403, whether the event is a draft or published.
    """
    if event["organizer_id"] != identity.user_id:
        raise ForbiddenError()


class EventService:
    def __init__(self, store: EventStore, logger: Optional[logging.Logger] = None):
        self._store = store
        self._log = logger or logging.getLogger(__name__)

    def create_event(self, identity: AuthenticatedIdentity, fields: Dict[str, Any]) -> Dict[str, Any]:
        event = self._store.create(identity.user_id, fields)
        if event is None:
            raise InternalError("Error creating event")
        self._log.info("User %s created event %s", identity.user_id, event["event_id"])
        return public_event(event)

    def list_events(self) -> List[Dict[str, Any]]:
        return [public_event(row) for row in self._store.list_published()]

    def get_event(self, event_id: str, identity: Optional[AuthenticatedIdentity] = None) -> Dict[str, Any]:
        """
        Fetch one event.

        Unpublished events are only visible to their organizer; everyone else
        gets NotFoundError.
        """
        event = self._store.find_by_id(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if event["status"] != "published" and (identity is None or identity.user_id != event["organizer_id"]):
            raise NotFoundError("Event not found")
        return public_event(event)

    def update_event(
        self, event_id: str, identity: AuthenticatedIdentity, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: No such event, or it vanished before the write.
            ForbiddenError: The caller is not the organizer.
        """
        event = self._store.find_by_id(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        try:
            check_owner(event, identity)
        except ForbiddenError:
            self._log.warning("User %s may not update event %s", identity.user_id, event_id)
            raise

        updated = self._store.update_owned(event_id, identity.user_id, fields)
        if updated is None:
            raise NotFoundError("Event not found")

        self._log.info("Event %s updated", event_id)
        return public_event(updated)

    def delete_event(self, event_id: str, identity: AuthenticatedIdentity) -> None:
        event = self._store.find_by_id(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        try:
            check_owner(event, identity)
        except ForbiddenError:
            self._log.warning("User %s may not delete event %s", identity.user_id, event_id)
            raise

        if not self._store.delete_owned(event_id, identity.user_id):
            raise NotFoundError("Event not found or already deleted")

        self._log.info("Event %s deleted", event_id)
