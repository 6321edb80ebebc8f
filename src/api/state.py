import os
from typing import Dict, Optional

from auth.auth_service import AuthService
from generation.task_generator import TaskGenerator
from reconciliation.events import EventCollection
from reconciliation.session import GenerationSession
from storage.alarm_store import AlarmStore
from storage.event_store import EventStore, InMemoryEventStore
from storage.user_store import InMemoryUserStore, UserStore

ALARMS_PATH = os.getenv("ALARMS_PATH", "data/alarms.json")

# Global instances; swapped for PostgreSQL-backed stores at startup when USE_DATABASE is set
event_store: EventStore = InMemoryEventStore()
user_store: UserStore = InMemoryUserStore()
alarm_store: AlarmStore = AlarmStore(path=ALARMS_PATH)
auth_service: AuthService = AuthService(user_store)

# Built lazily so importing the app does not require a configured provider
task_generator: Optional[TaskGenerator] = None

# One event collection per active user
collections: Dict[int, EventCollection] = {}

# Latest generation session per user, addressed by session id
sessions: Dict[str, GenerationSession] = {}


def reset(store: EventStore, users: UserStore) -> None:
    """Point every global at new stores (startup and tests)."""
    global event_store, user_store, auth_service, task_generator
    event_store = store
    user_store = users
    auth_service = AuthService(users)
    task_generator = None
    collections.clear()
    sessions.clear()
