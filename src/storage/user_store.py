import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

import asyncpg
from cryptography.fernet import Fernet, InvalidToken

from planner_smart.models import User
from storage import db

logger = logging.getLogger(__name__)


class UsernameTakenError(RuntimeError):
    pass


class CredentialCipher:
    """Fernet encryption for provider API keys at rest."""

    def __init__(self, key: Optional[str] = None):
        # Generate a key if not provided (for development/testing only)
        # In production, this MUST be provided via environment variable
        key = key or os.getenv("CREDENTIAL_ENCRYPTION_KEY")
        if not key:
            logger.warning(
                "CREDENTIAL_ENCRYPTION_KEY not set. Generating a temporary key."
            )
            key = Fernet.generate_key().decode()
        self.fernet = Fernet(key.encode() if isinstance(key, str) else key)

    def encrypt(self, data: str) -> str:
        return self.fernet.encrypt(data.encode()).decode()

    def decrypt(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            return self.fernet.decrypt(token.encode()).decode()
        except InvalidToken:
            logger.error("Failed to decrypt stored API key")
            return None


class UserStore(ABC):
    """Users plus their encrypted provider API key (the credential lookup)."""

    def __init__(self, cipher: Optional[CredentialCipher] = None):
        self.cipher = cipher or CredentialCipher()

    @abstractmethod
    async def create_user(self, username: str, password_hash: str, api_key: str) -> int:
        raise NotImplementedError

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def get_credential(self, user_id: int) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    async def set_credential(self, user_id: int, api_key: str) -> bool:
        raise NotImplementedError


class InMemoryUserStore(UserStore):
    def __init__(self, cipher: Optional[CredentialCipher] = None):
        super().__init__(cipher)
        self._users: Dict[int, User] = {}
        self._keys: Dict[int, str] = {}

    async def create_user(self, username: str, password_hash: str, api_key: str) -> int:
        if await self.get_by_username(username) is not None:
            raise UsernameTakenError(username)
        user_id = len(self._users) + 1
        self._users[user_id] = User(id=user_id, username=username, password_hash=password_hash)
        self._keys[user_id] = self.cipher.encrypt(api_key)
        return user_id

    async def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    async def get_credential(self, user_id: int) -> Optional[str]:
        return self.cipher.decrypt(self._keys.get(user_id))

    async def set_credential(self, user_id: int, api_key: str) -> bool:
        if user_id not in self._users:
            return False
        self._keys[user_id] = self.cipher.encrypt(api_key)
        return True


class PostgresUserStore(UserStore):
    async def create_user(self, username: str, password_hash: str, api_key: str) -> int:
        try:
            user_id = await db.fetchval(
                """
                INSERT INTO users (username, password_hash, api_key)
                VALUES ($1, $2, $3)
                RETURNING id
                """,
                username,
                password_hash,
                self.cipher.encrypt(api_key),
            )
        except asyncpg.UniqueViolationError as e:
            raise UsernameTakenError(username) from e
        logger.info(f"Registered user {user_id}")
        return user_id

    async def get_by_username(self, username: str) -> Optional[User]:
        row = await db.fetchrow(
            "SELECT id, username, password_hash FROM users WHERE username = $1", username
        )
        if not row:
            return None
        return User(id=row["id"], username=row["username"], password_hash=row["password_hash"])

    async def get_credential(self, user_id: int) -> Optional[str]:
        token = await db.fetchval("SELECT api_key FROM users WHERE id = $1", user_id)
        return self.cipher.decrypt(token)

    async def set_credential(self, user_id: int, api_key: str) -> bool:
        status = await db.execute(
            "UPDATE users SET api_key = $1, updated_at = NOW() WHERE id = $2",
            self.cipher.encrypt(api_key),
            user_id,
        )
        return not status.endswith(" 0")
