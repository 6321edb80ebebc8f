"""
Reconciliation of generated tasks into calendar events.

Tasks are identified by their position in the batch the model returned, so
two tasks with the same title and start time are still tracked separately.
Every index goes through the tracker before any conversion or store call,
which is what makes repeated add_one/add_all calls safe.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, List, Optional, Set

from planner_smart.models import (
    DEFAULT_EVENT_COLOR,
    CalendarEvent,
    GeneratedTask,
    parse_iso,
    to_iso,
)
from reconciliation.events import EventCollection

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(hours=1)


class TaskConversionError(ValueError):
    """The task cannot become an event (its start time is unreadable)."""


def parse_duration(duration: str) -> timedelta:
    """'HH:MM' to a timedelta; anything unreadable or non-positive becomes one hour."""
    parts = (duration or "").strip().split(":")
    if len(parts) < 2:
        logger.warning(f"Invalid or missing duration format: {duration!r}. Defaulting to 1 hour.")
        return DEFAULT_DURATION

    hours, minutes = parts[0].strip(), parts[1].strip()
    if not (hours.isdigit() and minutes.isdigit()):
        logger.warning(f"Invalid duration format: {duration!r}. Defaulting to 1 hour.")
        return DEFAULT_DURATION

    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if delta <= timedelta(0):
        logger.warning(f"Zero duration {duration!r}. Defaulting to 1 hour.")
        return DEFAULT_DURATION
    return delta


def to_event(task: GeneratedTask) -> CalendarEvent:
    try:
        start = parse_iso(task.start_time)
    except ValueError as e:
        raise TaskConversionError(
            f"Invalid start time format for task {task.title!r}: {task.start_time!r}"
        ) from e

    end = start + parse_duration(task.duration)
    return CalendarEvent(
        id=str(uuid.uuid4()),
        title=task.title,
        description=task.description or "",
        start_time=to_iso(start),
        end_time=to_iso(end),
        color=task.color or DEFAULT_EVENT_COLOR,
    )


class ReconciliationTracker:
    """Which batch positions already became events, plus those being added right now."""

    def __init__(self):
        self.added: Set[int] = set()
        self.in_flight: Set[int] = set()

    def is_added(self, index: int) -> bool:
        return index in self.added

    def is_available(self, index: int) -> bool:
        return index not in self.added and index not in self.in_flight

    def remaining(self, batch_size: int) -> List[int]:
        return [i for i in range(batch_size) if self.is_available(i)]

    def mark_added(self, indices: Iterable[int]) -> None:
        self.added |= set(indices)

    def all_added(self, batch_size: int) -> bool:
        return all(i in self.added for i in range(batch_size))


@dataclass
class AddOutcome:
    index: int
    success: bool
    event: Optional[CalendarEvent] = None
    error: Optional[str] = None
    already_added: bool = False


@dataclass
class BulkAddResult:
    added: int = 0
    failed: int = 0
    nothing_to_do: bool = False
    outcomes: List[AddOutcome] = field(default_factory=list)


class ReconciliationEngine:
    def __init__(self, events: EventCollection, tracker: Optional[ReconciliationTracker] = None):
        self.events = events
        self.tracker = tracker or ReconciliationTracker()

    async def _attempt(self, task: GeneratedTask, index: int) -> AddOutcome:
        """Convert and submit one task. Never raises; leaves the tracker to the caller."""
        try:
            event = to_event(task)
            await self.events.add(event)
        except Exception as e:
            logger.warning(f"Error adding task {task.title!r} (index {index}): {e}")
            return AddOutcome(index=index, success=False, error=str(e))
        return AddOutcome(index=index, success=True, event=event)

    async def add_one(self, task: GeneratedTask, index: int) -> AddOutcome:
        if not self.tracker.is_available(index):
            logger.info(f"Task at index {index} already added, skipping")
            return AddOutcome(index=index, success=False, already_added=True)

        self.tracker.in_flight.add(index)
        try:
            outcome = await self._attempt(task, index)
        finally:
            self.tracker.in_flight.discard(index)

        if outcome.success:
            self.tracker.mark_added([index])
            logger.info(f"Task {task.title!r} added to calendar")
        return outcome

    async def add_all(self, batch: List[GeneratedTask]) -> BulkAddResult:
        pending = self.tracker.remaining(len(batch))
        if not pending:
            logger.info("All generated tasks have already been added")
            return BulkAddResult(nothing_to_do=True)

        self.tracker.in_flight.update(pending)
        try:
            outcomes = await asyncio.gather(
                *(self._attempt(batch[i], i) for i in pending)
            )
        finally:
            self.tracker.in_flight.difference_update(pending)

        succeeded = [o.index for o in outcomes if o.success]
        # one tracker update once every submission has settled
        self.tracker.mark_added(succeeded)

        result = BulkAddResult(
            added=len(succeeded),
            failed=len(outcomes) - len(succeeded),
            outcomes=list(outcomes),
        )
        logger.info(f"Add all: {result.added} added, {result.failed} failed")
        return result
