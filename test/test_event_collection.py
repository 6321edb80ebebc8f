import asyncio

import pytest

from planner_smart.models import CalendarEvent
from reconciliation.events import EventCollection
from storage.event_store import (
    DuplicateEventError,
    EventNotFoundError,
    EventStoreError,
    InMemoryEventStore,
)


def _event(event_id="e1", start="2025-06-01T09:00:00.000Z"):
    return CalendarEvent(
        id=event_id,
        title=f"Event {event_id}",
        start_time=start,
        end_time="2025-06-01T23:00:00.000Z",
    )


class FlakyStore(InMemoryEventStore):
    def __init__(self):
        super().__init__()
        self.fail = False

    async def delete_event(self, user_id, event_id):
        if self.fail:
            raise EventStoreError("store unavailable")
        await super().delete_event(user_id, event_id)

    async def complete_event(self, user_id, event_id):
        if self.fail:
            raise EventStoreError("store unavailable")
        await super().complete_event(user_id, event_id)


def test_add_then_refresh_sorted_by_start():
    store = InMemoryEventStore()
    collection = EventCollection(store, user_id=1)

    async def _run():
        await collection.add(_event("late", "2025-06-02T09:00:00.000Z"))
        await collection.add(_event("early", "2025-06-01T09:00:00.000Z"))
        fresh = EventCollection(store, user_id=1)
        await fresh.refresh()
        return fresh

    fresh = asyncio.run(_run())
    assert [e.id for e in collection.events] == ["early", "late"]
    assert [e.id for e in fresh.events] == ["early", "late"]


def test_duplicate_add_leaves_local_state_alone():
    collection = EventCollection(InMemoryEventStore(), user_id=1)

    async def _run():
        await collection.add(_event())
        with pytest.raises(DuplicateEventError):
            await collection.add(_event())

    asyncio.run(_run())
    assert len(collection.events) == 1


def test_complete_moves_event():
    collection = EventCollection(InMemoryEventStore(), user_id=1)

    async def _run():
        await collection.add(_event())
        await collection.complete("e1")
        await collection.refresh()

    asyncio.run(_run())
    assert collection.events == []
    assert [e.id for e in collection.completed_events] == ["e1"]
    assert collection.completed_events[0].is_completed


def test_complete_rolls_back_on_store_failure():
    store = FlakyStore()
    collection = EventCollection(store, user_id=1)

    async def _run():
        await collection.add(_event())
        store.fail = True
        with pytest.raises(EventStoreError):
            await collection.complete("e1")

    asyncio.run(_run())
    assert [e.id for e in collection.events] == ["e1"]
    assert collection.completed_events == []


def test_remove_rolls_back_on_store_failure():
    store = FlakyStore()
    collection = EventCollection(store, user_id=1)

    async def _run():
        await collection.add(_event())
        store.fail = True
        with pytest.raises(EventStoreError):
            await collection.remove("e1")

    asyncio.run(_run())
    assert [e.id for e in collection.events] == ["e1"]


def test_remove_unknown_event():
    collection = EventCollection(InMemoryEventStore(), user_id=1)
    with pytest.raises(EventNotFoundError):
        asyncio.run(collection.remove("missing"))


def test_complete_unknown_event():
    collection = EventCollection(InMemoryEventStore(), user_id=1)
    with pytest.raises(EventNotFoundError):
        asyncio.run(collection.complete("missing"))


class SlowStore(InMemoryEventStore):
    """Store calls yield to the loop before completing, so other calls interleave."""

    def __init__(self, fail_deletes=False):
        super().__init__()
        self.fail_deletes = fail_deletes

    async def add_event(self, user_id, event):
        await super().add_event(user_id, event)
        await asyncio.sleep(0.01)

    async def delete_event(self, user_id, event_id):
        await asyncio.sleep(0.01)
        if self.fail_deletes:
            raise EventStoreError("store unavailable")
        await super().delete_event(user_id, event_id)


def test_failed_remove_keeps_events_added_meanwhile():
    store = SlowStore(fail_deletes=True)
    collection = EventCollection(store, user_id=1)

    async def _run():
        await collection.add(_event("old", "2025-06-02T09:00:00.000Z"))
        results = await asyncio.gather(
            collection.remove("old"),
            collection.add(_event("new", "2025-06-01T09:00:00.000Z")),
            return_exceptions=True,
        )
        active, _ = await store.list_events(1)
        return results, active

    results, active = asyncio.run(_run())
    assert isinstance(results[0], EventStoreError)
    assert [e.id for e in active] == ["new", "old"]
    assert [e.id for e in collection.events] == ["new", "old"]


def test_failed_remove_restores_completed_event():
    store = FlakyStore()
    collection = EventCollection(store, user_id=1)

    async def _run():
        await collection.add(_event())
        await collection.complete("e1")
        store.fail = True
        with pytest.raises(EventStoreError):
            await collection.remove("e1")

    asyncio.run(_run())
    assert collection.events == []
    assert [e.id for e in collection.completed_events] == ["e1"]


def test_refresh_during_add_does_not_duplicate():
    collection = EventCollection(SlowStore(), user_id=1)

    async def _run():
        # the row is stored before add() resumes, so the refresh sees it
        await asyncio.gather(collection.add(_event("e1")), collection.refresh())

    asyncio.run(_run())
    assert [e.id for e in collection.events] == ["e1"]
