import asyncio
import logging
import os
from datetime import datetime, timezone

from alarms.alarm_monitor import AlarmMonitor
from api import state

logger = logging.getLogger(__name__)

ALARM_POLL_INTERVAL_S = float(os.getenv("ALARM_POLL_INTERVAL_S", "60"))


async def _alarm_worker() -> None:
    """Background worker that fires due alarms for every user."""
    logger.info("Alarm worker started")

    while True:
        try:
            monitor = AlarmMonitor(state.alarm_store)
            fired = await asyncio.to_thread(monitor.check_all, datetime.now(timezone.utc))
            if fired:
                logger.info(f"Fired {len(fired)} alarm(s)")
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Alarm check failed")

        await asyncio.sleep(ALARM_POLL_INTERVAL_S)
