import asyncio
import logging
from scheduler.services import process_due_scheduled_bookings
from utils.constants import scheduler_setting

logger = logging.getLogger("scheduler")


async def run_scheduler(stop_event: asyncio.Event, interval_seconds=None):
    """
    Sweep due scheduled bookings immediately, then every interval_seconds,
    until stop_event is set. A sweep in progress is always allowed to finish.
    """
    interval = interval_seconds or scheduler_setting("SWEEP_INTERVAL_SECONDS")
    logger.info(f"Started scheduled booking processor to run every {interval} second(s)")
    sweeps = 0

    while not stop_event.is_set():
        try:
            result = await process_due_scheduled_bookings()
            if result["success_count"] > 0:
                logger.info(f"Processed {result['success_count']} scheduled bookings")
        except Exception:
            logger.exception("Error in scheduled booking processor")
        sweeps += 1
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue

    logger.info(f"Stopped scheduled booking processor after {sweeps} sweep(s)")
    return sweeps
