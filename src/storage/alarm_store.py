from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional

from planner_smart.models import Alarm

logger = logging.getLogger(__name__)


class AlarmNotFoundError(KeyError):
    pass


class AlarmStore:
    """Per-user alarms kept in one JSON file: {"<user_id>": [alarm, ...]}."""

    def __init__(self, path: str = "data/alarms.json"):
        self.path = Path(path)
        # guards every read-modify-write; the alarm worker runs in a thread
        self._lock = threading.RLock()

    def _load_all(self) -> Dict[str, List[dict]]:
        try:
            if not self.path.exists():
                return {}
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError) as e:
            # corrupted file: start over rather than fail every request
            logger.warning(f"Could not read alarms from {self.path}: {e}")
            return {}

    def _save_all(self, data: Dict[str, List[dict]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def list(self, user_id: int) -> List[Alarm]:
        with self._lock:
            items = self._load_all().get(str(user_id), [])
        alarms = []
        for item in items:
            try:
                alarms.append(Alarm(**item))
            except ValueError:
                logger.warning(f"Skipping invalid stored alarm for user {user_id}: {item}")
        return alarms

    def users(self) -> List[int]:
        with self._lock:
            return [int(k) for k in self._load_all()]

    def _write(self, user_id: int, alarms: List[Alarm]) -> None:
        data = self._load_all()
        data[str(user_id)] = [a.model_dump(by_alias=True) for a in alarms]
        self._save_all(data)

    def add(self, user_id: int, alarm: Alarm) -> Alarm:
        with self._lock:
            alarms = self.list(user_id)
            alarms.append(alarm)
            self._write(user_id, alarms)
        return alarm

    def update(self, user_id: int, alarm: Alarm) -> Alarm:
        with self._lock:
            alarms = self.list(user_id)
            for i, existing in enumerate(alarms):
                if existing.id == alarm.id:
                    alarms[i] = alarm
                    self._write(user_id, alarms)
                    return alarm
        raise AlarmNotFoundError(alarm.id)

    def remove(self, user_id: int, alarm_id: str) -> None:
        with self._lock:
            alarms = self.list(user_id)
            remaining = [a for a in alarms if a.id != alarm_id]
            if len(remaining) == len(alarms):
                raise AlarmNotFoundError(alarm_id)
            self._write(user_id, remaining)

    def toggle(self, user_id: int, alarm_id: str, is_active: bool) -> Alarm:
        with self._lock:
            alarm = self.get(user_id, alarm_id)
            if alarm is None:
                raise AlarmNotFoundError(alarm_id)
            return self.update(user_id, alarm.model_copy(update={"is_active": is_active}))

    def get(self, user_id: int, alarm_id: str) -> Optional[Alarm]:
        return next((a for a in self.list(user_id) if a.id == alarm_id), None)
