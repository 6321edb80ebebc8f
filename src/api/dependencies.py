from typing import Optional

from fastapi import Depends, Header, HTTPException

from api import state
from auth.auth_service import AuthenticatedUser, AuthService, InvalidTokenError
from generation.task_generator import TaskGenerator
from reconciliation.events import EventCollection
from storage.alarm_store import AlarmStore


def get_auth_service() -> AuthService:
    return state.auth_service


def get_alarm_store() -> AlarmStore:
    return state.alarm_store


def get_task_generator() -> TaskGenerator:
    if state.task_generator is None:
        state.task_generator = TaskGenerator(credentials=state.user_store)
    return state.task_generator


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    # "Bearer <token>"
    token = authorization.split(" ", 1)[1].strip() if authorization and " " in authorization else None
    if not token:
        raise HTTPException(status_code=401, detail="Authentication token required.")
    try:
        return auth.verify(token)
    except InvalidTokenError as e:
        raise HTTPException(status_code=403, detail=str(e))


async def get_event_collection(
    user: AuthenticatedUser = Depends(get_current_user),
) -> EventCollection:
    collection = state.collections.get(user.user_id)
    if collection is None:
        collection = EventCollection(state.event_store, user.user_id)
        await collection.refresh()
        state.collections[user.user_id] = collection
    return collection
