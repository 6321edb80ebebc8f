"""
Event persistence for PlannerSmart.

Two backends share the EventStore interface: an in-memory store (default,
used by tests and local runs) and a PostgreSQL store built on the asyncpg
pool in storage.db. Inserting an id that already exists is rejected with
DuplicateEventError and never overwrites the stored row.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

import asyncpg

from planner_smart.models import CalendarEvent
from storage import db

logger = logging.getLogger(__name__)


class EventStoreError(RuntimeError):
    """The store could not complete the operation."""


class DuplicateEventError(EventStoreError):
    """An event with this id already exists."""


class EventNotFoundError(EventStoreError):
    """No matching event for this user (or it is already completed)."""


class EventStore(ABC):
    @abstractmethod
    async def list_events(self, user_id: int) -> Tuple[List[CalendarEvent], List[CalendarEvent]]:
        """Return (active, completed) events ordered by start time."""
        raise NotImplementedError

    @abstractmethod
    async def add_event(self, user_id: int, event: CalendarEvent) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_event(self, user_id: int, event_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def complete_event(self, user_id: int, event_id: str) -> None:
        raise NotImplementedError


class InMemoryEventStore(EventStore):
    def __init__(self):
        # event id -> (owner, event)
        self._events: Dict[str, Tuple[int, CalendarEvent]] = {}

    async def list_events(self, user_id: int) -> Tuple[List[CalendarEvent], List[CalendarEvent]]:
        owned = sorted(
            (e for owner, e in self._events.values() if owner == user_id),
            key=lambda e: e.start_time,
        )
        active = [e.model_copy() for e in owned if not e.is_completed]
        completed = [e.model_copy() for e in owned if e.is_completed]
        return active, completed

    async def add_event(self, user_id: int, event: CalendarEvent) -> None:
        if event.id in self._events:
            raise DuplicateEventError(f"Event with id {event.id} already exists")
        self._events[event.id] = (user_id, event.model_copy(update={"is_completed": False}))

    async def delete_event(self, user_id: int, event_id: str) -> None:
        entry = self._events.get(event_id)
        if entry is None or entry[0] != user_id:
            raise EventNotFoundError(f"Event {event_id} not found")
        del self._events[event_id]

    async def complete_event(self, user_id: int, event_id: str) -> None:
        entry = self._events.get(event_id)
        if entry is None or entry[0] != user_id or entry[1].is_completed:
            raise EventNotFoundError(f"Event {event_id} not found or already completed")
        self._events[event_id] = (user_id, entry[1].model_copy(update={"is_completed": True}))


class PostgresEventStore(EventStore):
    """Event rows in PostgreSQL. Requires storage.db.init_db_pool() at startup."""

    @staticmethod
    def _from_record(record) -> CalendarEvent:
        return CalendarEvent(
            id=record["id"],
            title=record["title"],
            description=record["description"] or "",
            start_time=record["start_time"],
            end_time=record["end_time"],
            color=record["color"],
            is_completed=record["is_completed"],
        )

    async def list_events(self, user_id: int) -> Tuple[List[CalendarEvent], List[CalendarEvent]]:
        rows = await db.fetch(
            """
            SELECT id, title, description, start_time, end_time, color, is_completed
            FROM events WHERE user_id = $1 ORDER BY start_time ASC
            """,
            user_id,
        )
        events = [self._from_record(r) for r in rows]
        return (
            [e for e in events if not e.is_completed],
            [e for e in events if e.is_completed],
        )

    async def add_event(self, user_id: int, event: CalendarEvent) -> None:
        try:
            await db.execute(
                """
                INSERT INTO events (id, user_id, title, description, start_time, end_time, color, is_completed)
                VALUES ($1, $2, $3, $4, $5, $6, $7, FALSE)
                """,
                event.id,
                user_id,
                event.title,
                event.description,
                event.start_time,
                event.end_time,
                event.color,
            )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateEventError(f"Event with id {event.id} already exists") from e
        except asyncpg.PostgresError as e:
            logger.error(f"Error adding event {event.id}: {e}")
            raise EventStoreError("Error adding event") from e

    async def delete_event(self, user_id: int, event_id: str) -> None:
        status = await db.execute(
            "DELETE FROM events WHERE id = $1 AND user_id = $2", event_id, user_id
        )
        if status.endswith(" 0"):
            raise EventNotFoundError(f"Event {event_id} not found")

    async def complete_event(self, user_id: int, event_id: str) -> None:
        status = await db.execute(
            """
            UPDATE events SET is_completed = TRUE
            WHERE id = $1 AND user_id = $2 AND is_completed = FALSE
            """,
            event_id,
            user_id,
        )
        if status.endswith(" 0"):
            raise EventNotFoundError(f"Event {event_id} not found or already completed")
