from __future__ import annotations

import logging
from typing import List

from planner_smart.models import CalendarEvent
from storage.event_store import EventNotFoundError, EventStore

logger = logging.getLogger(__name__)


class EventCollection:
    """Local view of one user's events, kept in step with an EventStore.

    Adds are confirmed by the store before the local list changes. Delete and
    complete are optimistic: the local list changes first and the previous
    state is put back if the store call fails.
    """

    def __init__(self, store: EventStore, user_id: int):
        self.store = store
        self.user_id = user_id
        self.events: List[CalendarEvent] = []
        self.completed_events: List[CalendarEvent] = []

    async def refresh(self) -> None:
        self.events, self.completed_events = await self.store.list_events(self.user_id)

    def get(self, event_id: str) -> CalendarEvent | None:
        return next((e for e in self.events if e.id == event_id), None)

    def _sort(self) -> None:
        self.events.sort(key=lambda e: e.start_time)
        self.completed_events.sort(key=lambda e: e.start_time)

    async def add(self, event: CalendarEvent) -> CalendarEvent:
        await self.store.add_event(self.user_id, event)
        # a refresh while the store call was pending may already have it
        if not any(e.id == event.id for e in self.events):
            self.events.append(event)
            self._sort()
        return event

    async def remove(self, event_id: str) -> None:
        removed_active = [e for e in self.events if e.id == event_id]
        removed_completed = [e for e in self.completed_events if e.id == event_id]
        self.events = [e for e in self.events if e.id != event_id]
        self.completed_events = [e for e in self.completed_events if e.id != event_id]
        try:
            await self.store.delete_event(self.user_id, event_id)
        except Exception:
            logger.warning(f"Failed to delete event {event_id}, restoring local state")
            # undo only this removal; other changes made meanwhile stay
            self.events.extend(removed_active)
            self.completed_events.extend(removed_completed)
            self._sort()
            raise

    async def complete(self, event_id: str) -> CalendarEvent:
        event = self.get(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found among active events")

        done = event.model_copy(update={"is_completed": True})
        self.events = [e for e in self.events if e.id != event_id]
        self.completed_events.append(done)
        try:
            await self.store.complete_event(self.user_id, event_id)
        except Exception:
            logger.warning(f"Failed to complete event {event_id}, restoring local state")
            self.completed_events = [e for e in self.completed_events if e.id != event_id]
            self.events.append(event)
            self._sort()
            raise
        return done
