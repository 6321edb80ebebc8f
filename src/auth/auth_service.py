from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from werkzeug.security import check_password_hash, generate_password_hash

from storage.user_store import UserStore

logger = logging.getLogger(__name__)

AUTH_TOKEN_TTL_S = int(os.getenv("AUTH_TOKEN_TTL_S", "3600"))
MIN_PASSWORD_LENGTH = 6
MIN_API_KEY_LENGTH = 10


class AuthError(RuntimeError):
    pass


class RegistrationError(AuthError):
    """Input rejected before any user was created."""


class InvalidLoginError(AuthError):
    pass


class InvalidTokenError(AuthError):
    pass


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: int
    username: str


class AuthService:
    """Register, log in and verify bearer tokens.

    Tokens are Fernet tokens over {"userId", "username"}; Fernet's timestamp
    gives expiry for free.
    """

    def __init__(self, users: UserStore, secret: Optional[str] = None, ttl_s: int = AUTH_TOKEN_TTL_S):
        self.users = users
        secret = secret or os.getenv("AUTH_TOKEN_SECRET")
        if not secret:
            logger.warning("AUTH_TOKEN_SECRET not set. Tokens will not survive a restart.")
            secret = Fernet.generate_key().decode()
        self.fernet = Fernet(secret.encode() if isinstance(secret, str) else secret)
        self.ttl_s = ttl_s

    async def register(self, username: str, password: str, api_key: str) -> int:
        if not username or not password or not api_key:
            raise RegistrationError("Username, password, and API Key are required.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise RegistrationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            )
        if len(api_key) < MIN_API_KEY_LENGTH:
            raise RegistrationError("API Key appears invalid.")

        # UsernameTakenError from the store propagates
        user_id = await self.users.create_user(username, generate_password_hash(password), api_key)
        logger.info(f"User registered with ID: {user_id}")
        return user_id

    async def login(self, username: str, password: str) -> tuple[str, AuthenticatedUser]:
        user = await self.users.get_by_username(username)
        if user is None or not check_password_hash(user.password_hash, password):
            raise InvalidLoginError("Invalid username or password.")

        payload = json.dumps({"userId": user.id, "username": user.username})
        token = self.fernet.encrypt(payload.encode()).decode()
        return token, AuthenticatedUser(user_id=user.id, username=user.username)

    def verify(self, token: str) -> AuthenticatedUser:
        try:
            raw = self.fernet.decrypt(token.encode(), ttl=self.ttl_s)
            data = json.loads(raw)
            return AuthenticatedUser(user_id=int(data["userId"]), username=data["username"])
        except (InvalidToken, ValueError, KeyError, TypeError) as e:
            raise InvalidTokenError("Invalid or expired token.") from e
