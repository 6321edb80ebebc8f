import logging

from fastapi import APIRouter, Depends, HTTPException

from api import state
from api.dependencies import get_auth_service, get_current_user
from auth.auth_service import (
    AuthenticatedUser,
    AuthService,
    InvalidLoginError,
    MIN_API_KEY_LENGTH,
    RegistrationError,
)
from planner_smart.models import CamelModel
from storage.user_store import UsernameTakenError

router = APIRouter(prefix="/auth")
logger = logging.getLogger(__name__)


class RegisterIn(CamelModel):
    username: str = ""
    password: str = ""
    api_key: str = ""


class LoginIn(CamelModel):
    username: str = ""
    password: str = ""


class ApiKeyIn(CamelModel):
    api_key: str = ""


@router.post("/register", status_code=201)
async def register(payload: RegisterIn, auth: AuthService = Depends(get_auth_service)) -> dict:
    try:
        user_id = await auth.register(payload.username, payload.password, payload.api_key)
    except RegistrationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UsernameTakenError:
        raise HTTPException(status_code=409, detail="Username already taken.")
    return {"message": "User registered successfully.", "userId": user_id}


@router.post("/login")
async def login(payload: LoginIn, auth: AuthService = Depends(get_auth_service)) -> dict:
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password are required.")
    try:
        token, user = await auth.login(payload.username, payload.password)
    except InvalidLoginError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {
        "message": "Login successful.",
        "token": token,
        "userId": user.user_id,
        "username": user.username,
    }


@router.put("/api-key")
async def update_api_key(
    payload: ApiKeyIn,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Replace the stored provider key, e.g. after the provider rejected it."""
    if len(payload.api_key) < MIN_API_KEY_LENGTH:
        raise HTTPException(status_code=400, detail="API Key appears invalid.")
    if not await state.user_store.set_credential(user.user_id, payload.api_key):
        raise HTTPException(status_code=404, detail="User not found.")
    logger.info(f"Updated API key for user {user.user_id}")
    return {"message": "API Key updated."}
