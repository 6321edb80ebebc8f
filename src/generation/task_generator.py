from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from generation.prompt_builder import build_prompt
from generation.response_parser import parse_response
from llm.llm_client import LLMClient
from planner_smart.models import GeneratedTask, to_iso

logger = logging.getLogger(__name__)

FALLBACK_DESCRIPTION = "Raw response line"
FALLBACK_DURATION = "00:30"
FALLBACK_COLOR = "grey"


class MissingCredentialError(RuntimeError):
    """No provider API key is stored for the user."""


class CredentialLookup(Protocol):
    async def get_credential(self, user_id: int) -> Optional[str]: ...


def is_fallback_batch(tasks: List[GeneratedTask]) -> bool:
    return bool(tasks) and all(
        t.description == FALLBACK_DESCRIPTION and t.color == FALLBACK_COLOR for t in tasks
    )


def fallback_tasks(text: str, now: datetime) -> List[GeneratedTask]:
    """One placeholder task per non-blank line of a reply the parser could not read."""
    start = to_iso(now)
    return [
        GeneratedTask(
            title=line.strip(),
            description=FALLBACK_DESCRIPTION,
            start_time=start,
            duration=FALLBACK_DURATION,
            color=FALLBACK_COLOR,
        )
        for line in text.splitlines()
        if line.strip()
    ]


class TaskGenerator:
    """Turns a free-text goal into a batch of GeneratedTask records."""

    def __init__(
        self,
        credentials: CredentialLookup,
        llm_client: Optional[LLMClient] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.credentials = credentials
        self.llm = llm_client or LLMClient()
        self.clock = clock

    async def generate(self, user_id: int, goal: str) -> List[GeneratedTask]:
        api_key = await self.credentials.get_credential(user_id)
        if not api_key:
            raise MissingCredentialError(f"No API key stored for user {user_id}")

        now = self.clock()
        prompt = build_prompt(goal, now)

        # Provider errors propagate to the caller unchanged
        text = await self.llm.generate_content(prompt, api_key=api_key)

        tasks = parse_response(text)
        logger.info(f"Parsed {len(tasks)} tasks for user {user_id}")

        if not tasks and text.strip():
            logger.warning(f"AI response parsing failed for user {user_id}, returning raw lines")
            return fallback_tasks(text, now)

        return tasks
