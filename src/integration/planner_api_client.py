from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import httpx

from generation.task_generator import MissingCredentialError
from llm.providers.base import (
    InvalidCredentialError,
    ProviderTransportError,
    QuotaExceededError,
)
from planner_smart.models import CalendarEvent, GeneratedTask
from storage.event_store import (
    DuplicateEventError,
    EventNotFoundError,
    EventStore,
    EventStoreError,
)

logger = logging.getLogger(__name__)


class PlannerApiClient(EventStore):
    """HTTP client for the PlannerSmart API.

    Implements EventStore against the REST endpoints so a ReconciliationEngine
    can run outside the server. The bearer token decides whose events these
    are; the user_id arguments are accepted for interface compatibility only.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_s: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._transport = transport
        self.timeout_s = timeout_s

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        else:
            logger.warning(f"API request to {path} without auth token")

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                return await client.request(method, f"{self.base_url}{path}", headers=headers, json=json)
        except httpx.HTTPError as e:
            raise EventStoreError(f"API request failed ({method} {path}): {e}") from e

    @staticmethod
    def _message(r: httpx.Response) -> str:
        try:
            body = r.json()
        except ValueError:
            return f"HTTP error {r.status_code}: {r.reason_phrase}"
        detail = body.get("detail") if isinstance(body, dict) else None
        if isinstance(detail, str) and detail:
            return detail
        if isinstance(detail, list) and detail and isinstance(detail[0], dict):
            # FastAPI validation errors: [{"loc": [...], "msg": "...", ...}]
            return str(detail[0].get("msg") or detail[0])
        return f"HTTP error {r.status_code}: {r.reason_phrase}"

    def _check(self, r: httpx.Response) -> None:
        if r.is_success:
            return
        message = self._message(r)
        if r.status_code == 409:
            raise DuplicateEventError(message)
        if r.status_code == 404:
            raise EventNotFoundError(message)
        raise EventStoreError(message)

    async def login(self, username: str, password: str) -> str:
        r = await self._request("POST", "/auth/login", {"username": username, "password": password})
        self._check(r)
        self.token = r.json()["token"]
        return self.token

    async def list_events(self, user_id: int = 0) -> Tuple[List[CalendarEvent], List[CalendarEvent]]:
        r = await self._request("GET", "/events")
        self._check(r)
        data = r.json()
        return (
            [CalendarEvent(**e) for e in data.get("activeEvents", [])],
            [CalendarEvent(**e) for e in data.get("completedEvents", [])],
        )

    async def add_event(self, user_id: int, event: CalendarEvent) -> None:
        r = await self._request("POST", "/events", event.model_dump(by_alias=True))
        self._check(r)

    async def delete_event(self, user_id: int, event_id: str) -> None:
        self._check(await self._request("DELETE", f"/events/{event_id}"))

    async def complete_event(self, user_id: int, event_id: str) -> None:
        self._check(await self._request("PATCH", f"/events/{event_id}/complete"))

    async def generate_tasks(self, goal: str) -> List[GeneratedTask]:
        """Only the task list; the server-side session id is dropped."""
        r = await self._request("POST", "/ai/generate-tasks", {"userPrompt": goal})
        if not r.is_success:
            message = self._message(r)
            if r.status_code == 401:
                raise InvalidCredentialError(message)
            if r.status_code == 404:
                raise MissingCredentialError(message)
            if r.status_code == 429:
                raise QuotaExceededError(message)
            raise ProviderTransportError(message)
        return [GeneratedTask(**t) for t in r.json().get("tasks", [])]
