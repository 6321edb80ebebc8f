from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

from planner_smart.models import GeneratedTask
from reconciliation.engine import ReconciliationEngine


@dataclass
class GenerationSession:
    """One generated batch and the engine tracking which of its tasks were added."""

    user_id: int
    goal: str
    tasks: List[GeneratedTask]
    engine: ReconciliationEngine
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def added_indices(self) -> List[int]:
        return sorted(self.engine.tracker.added)

    def all_added(self) -> bool:
        return self.engine.tracker.all_added(len(self.tasks))

    def to_dict(self) -> dict:
        return {
            "sessionId": self.id,
            "tasks": [t.model_dump(by_alias=True) for t in self.tasks],
            "addedIndices": self.added_indices(),
            "allAdded": self.all_added(),
        }
