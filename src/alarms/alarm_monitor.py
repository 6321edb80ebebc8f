from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List

from planner_smart.models import Alarm, parse_iso
from storage.alarm_store import AlarmStore

logger = logging.getLogger(__name__)

TRIGGER_WINDOW = timedelta(minutes=1)


def is_due(alarm: Alarm, now: datetime) -> bool:
    """Active and its time fell within the last minute."""
    if not alarm.is_active:
        return False
    elapsed = now - parse_iso(alarm.time)
    return timedelta(0) <= elapsed < TRIGGER_WINDOW


class AlarmMonitor:
    """Fires due alarms once and switches them off (alarms are one-shot)."""

    def __init__(self, store: AlarmStore):
        self.store = store

    def check(self, user_id: int, now: datetime) -> List[Alarm]:
        fired = []
        for alarm in self.store.list(user_id):
            if is_due(alarm, now):
                self.store.toggle(user_id, alarm.id, False)
                logger.info(f"Alarm fired for user {user_id}: {alarm.title}")
                fired.append(alarm)
        return fired

    def check_all(self, now: datetime) -> List[Alarm]:
        fired = []
        for user_id in self.store.users():
            fired.extend(self.check(user_id, now))
        return fired
