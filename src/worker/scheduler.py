"""APScheduler job definitions for recurring price checks."""

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.config import Settings
from src.worker.tracker import PriceTracker

logger = logging.getLogger(__name__)


def setup_scheduler(tracker: PriceTracker, settings: Settings) -> AsyncIOScheduler:
    """
    Setup and configure APScheduler.

    Scheduling overview:
    - Price check every settings.check_interval_minutes
    - One initial check settings.initial_check_delay_seconds after start

    The returned scheduler is not started; ``shutdown()`` is the stop handle.

    Args:
        tracker: Tracker whose check_prices runs on each tick
        settings: Application settings

    Returns:
        Configured scheduler instance
    """
    scheduler = AsyncIOScheduler(timezone=timezone.utc)
    interval = max(1, int(settings.check_interval_minutes))
    initial_delay = max(0, int(settings.initial_check_delay_seconds))

    scheduler.add_job(
        tracker.check_prices,
        IntervalTrigger(minutes=interval),
        id="price_check",
        name="Check prices of tracked products",
        max_instances=1,  # Prevent overlapping runs
        coalesce=True,
        misfire_grace_time=300,
        replace_existing=True,
    )

    scheduler.add_job(
        tracker.check_prices,
        DateTrigger(run_date=datetime.now(timezone.utc) + timedelta(seconds=initial_delay)),
        kwargs={"trigger": "startup"},
        id="initial_price_check",
        name="Initial price check after startup",
        replace_existing=True,
    )

    logger.info(
        "Scheduler configured: price check every %d minutes, initial check in %d seconds",
        interval,
        initial_delay,
    )

    return scheduler
