import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from storage.event_store import EventStoreError, InMemoryEventStore  # noqa: E402

HAPPY_REPLY = """Title: Plan trip
Description: Research flights
Start Time: 2025-06-01T09:00:00.000Z
Duration: 01:30
Color: blue

"""


class FakeProvider:
    def __init__(self, response_text: str = "", error: Optional[Exception] = None):
        self._response_text = response_text
        self._error = error
        self.prompts: List[str] = []
        self.api_keys: List[str] = []

    async def generate_content(self, prompt: str, *, api_key: str) -> str:
        self.prompts.append(prompt)
        self.api_keys.append(api_key)
        if self._error is not None:
            raise self._error
        return self._response_text


class FakeCredentials:
    def __init__(self, keys: Optional[Dict[int, str]] = None):
        self.keys = keys if keys is not None else {1: "test-api-key-123"}

    async def get_credential(self, user_id: int) -> Optional[str]:
        return self.keys.get(user_id)


class RecordingEventStore(InMemoryEventStore):
    """In-memory store that records submissions and can be told to reject some titles."""

    def __init__(self, fail_titles: tuple = ()):
        super().__init__()
        self.submitted: List[str] = []
        self.fail_titles = set(fail_titles)

    async def add_event(self, user_id, event):
        self.submitted.append(event.title)
        if event.title in self.fail_titles:
            raise EventStoreError(f"rejected {event.title}")
        await super().add_event(user_id, event)


@pytest.fixture
def fake_provider_factory():
    def _make(response_text: str = "", error: Optional[Exception] = None):
        return FakeProvider(response_text, error)
    return _make


@pytest.fixture
def fake_credentials():
    return FakeCredentials()


@pytest.fixture
def recording_store():
    return RecordingEventStore()
