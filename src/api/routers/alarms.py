import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from alarms.alarm_monitor import AlarmMonitor
from api.dependencies import get_alarm_store, get_current_user
from auth.auth_service import AuthenticatedUser
from planner_smart.models import Alarm, CamelModel
from storage.alarm_store import AlarmNotFoundError, AlarmStore

router = APIRouter(prefix="/alarms")
logger = logging.getLogger(__name__)


class AlarmIn(CamelModel):
    title: str
    description: str = ""
    time: str
    is_active: bool = True


class ToggleIn(CamelModel):
    is_active: bool


def _build(alarm_id: str, payload: AlarmIn) -> Alarm:
    try:
        return Alarm(id=alarm_id, **payload.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid alarm: {e.errors()[0]['msg']}")


@router.get("")
async def list_alarms(
    user: AuthenticatedUser = Depends(get_current_user),
    store: AlarmStore = Depends(get_alarm_store),
) -> dict:
    return {"alarms": [a.model_dump(by_alias=True) for a in store.list(user.user_id)]}


@router.post("", status_code=201)
async def add_alarm(
    payload: AlarmIn,
    user: AuthenticatedUser = Depends(get_current_user),
    store: AlarmStore = Depends(get_alarm_store),
) -> dict:
    alarm = store.add(user.user_id, _build(str(uuid.uuid4()), payload))
    return {"alarm": alarm.model_dump(by_alias=True)}


@router.put("/{alarm_id}")
async def update_alarm(
    alarm_id: str,
    payload: AlarmIn,
    user: AuthenticatedUser = Depends(get_current_user),
    store: AlarmStore = Depends(get_alarm_store),
) -> dict:
    try:
        alarm = store.update(user.user_id, _build(alarm_id, payload))
    except AlarmNotFoundError:
        raise HTTPException(status_code=404, detail="Alarm not found.")
    return {"alarm": alarm.model_dump(by_alias=True)}


@router.patch("/{alarm_id}/toggle")
async def toggle_alarm(
    alarm_id: str,
    payload: ToggleIn,
    user: AuthenticatedUser = Depends(get_current_user),
    store: AlarmStore = Depends(get_alarm_store),
) -> dict:
    try:
        alarm = store.toggle(user.user_id, alarm_id, payload.is_active)
    except AlarmNotFoundError:
        raise HTTPException(status_code=404, detail="Alarm not found.")
    return {"alarm": alarm.model_dump(by_alias=True)}


@router.delete("/{alarm_id}")
async def delete_alarm(
    alarm_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    store: AlarmStore = Depends(get_alarm_store),
) -> dict:
    try:
        store.remove(user.user_id, alarm_id)
    except AlarmNotFoundError:
        raise HTTPException(status_code=404, detail="Alarm not found.")
    return {"message": "Alarm deleted."}


@router.post("/check")
async def check_alarms(
    user: AuthenticatedUser = Depends(get_current_user),
    store: AlarmStore = Depends(get_alarm_store),
) -> dict:
    """Fire (and switch off) this user's alarms that came due in the last minute."""
    fired = AlarmMonitor(store).check(user.user_id, datetime.now(timezone.utc))
    return {"fired": [a.model_dump(by_alias=True) for a in fired]}
