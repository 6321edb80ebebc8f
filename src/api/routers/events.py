import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from api.dependencies import get_event_collection
from planner_smart.models import CalendarEvent, CamelModel
from reconciliation.events import EventCollection
from storage.event_store import DuplicateEventError, EventNotFoundError, EventStoreError

router = APIRouter(prefix="/events")
logger = logging.getLogger(__name__)


class EventIn(CamelModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = ""
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    color: Optional[str] = None


def _dump(event: CalendarEvent) -> dict:
    return event.model_dump(by_alias=True)


@router.get("")
async def list_events(collection: EventCollection = Depends(get_event_collection)) -> dict:
    try:
        await collection.refresh()
    except EventStoreError as e:
        logger.error(f"Error fetching events: {e}")
        raise HTTPException(status_code=500, detail="Error fetching events.")
    return {
        "activeEvents": [_dump(e) for e in collection.events],
        "completedEvents": [_dump(e) for e in collection.completed_events],
    }


@router.post("", status_code=201)
async def add_event(
    payload: EventIn,
    collection: EventCollection = Depends(get_event_collection),
) -> dict:
    if not (payload.id and payload.title and payload.start_time and payload.end_time):
        raise HTTPException(
            status_code=400,
            detail="Missing required event fields (id, title, startTime, endTime).",
        )
    try:
        event = CalendarEvent(
            id=payload.id,
            title=payload.title,
            description=payload.description or "",
            start_time=payload.start_time,
            end_time=payload.end_time,
            color=payload.color,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid event: {e.errors()[0]['msg']}")

    try:
        await collection.add(event)
    except DuplicateEventError:
        raise HTTPException(status_code=409, detail="Event with this ID already exists.")
    except EventStoreError as e:
        logger.error(f"Error adding event: {e}")
        raise HTTPException(status_code=500, detail="Error adding event.")
    return {"message": "Event added successfully.", "eventId": event.id}


@router.patch("/{event_id}/complete")
async def complete_event(
    event_id: str,
    collection: EventCollection = Depends(get_event_collection),
) -> dict:
    try:
        if collection.get(event_id) is None:
            # the local view may be stale
            await collection.refresh()
        await collection.complete(event_id)
    except EventNotFoundError:
        raise HTTPException(
            status_code=404,
            detail="Event not found, not owned by user, or already completed.",
        )
    except EventStoreError as e:
        logger.error(f"Error marking event complete: {e}")
        raise HTTPException(status_code=500, detail="Error marking event complete.")
    return {"message": "Event marked as complete."}


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    collection: EventCollection = Depends(get_event_collection),
) -> dict:
    try:
        await collection.remove(event_id)
    except EventNotFoundError:
        raise HTTPException(status_code=404, detail="Event not found or not owned by user.")
    except EventStoreError as e:
        logger.error(f"Error deleting event: {e}")
        raise HTTPException(status_code=500, detail="Error deleting event.")
    return {"message": "Event deleted successfully."}
