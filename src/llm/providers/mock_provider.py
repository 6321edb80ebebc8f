from __future__ import annotations
from datetime import datetime, timedelta, timezone

from llm.providers.base import LLMProvider
from planner_smart.models import to_iso


class MockProvider(LLMProvider):
    async def generate_content(self, prompt: str, *, api_key: str) -> str:
        """
        Returns a canned reply in the five-label record format.
        """
        start = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)

        # Pull the goal back out of the prompt so the demo reply looks related
        goal = "your goal"
        marker = "Here is the user's goal: "
        if marker in prompt:
            goal = prompt.split(marker, 1)[1].split("\n", 1)[0].strip() or goal

        return (
            f"Title: Outline {goal}\n"
            f"Description: Break '{goal}' into concrete steps\n"
            f"Start Time: {to_iso(start)}\n"
            "Duration: 00:45\n"
            "Color: #2563eb\n"
            "\n"
            "Title: First work session\n"
            "Description: Complete the first step of the outline\n"
            f"Start Time: {to_iso(start + timedelta(hours=1))}\n"
            "Duration: 01:30\n"
            "Color: green\n"
            "\n"
            "Title: Review progress\n"
            "Description: Check what is left and adjust the plan\n"
            f"Start Time: {to_iso(start + timedelta(days=1))}\n"
            "Duration: 00:30\n"
            "Color: purple\n"
        )
