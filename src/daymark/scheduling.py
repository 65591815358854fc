"""Scheduled re-evaluation and the one-second timer tick."""

import logging
from datetime import tzinfo
from typing import Callable

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .config import Config
from .core.errors import StorageError
from .core.timer import TimerSession
from .core.tracking import Activity, TimeEntry
from .timer import TimerStateMachine

logger = logging.getLogger(__name__)

TICK_JOB_ID = "timer_tick"


def build_scheduler(tz: tzinfo, scheduler_cls: type[BaseScheduler] = BlockingScheduler) -> BaseScheduler:
    """
    Scheduler that runs its jobs one at a time.

    The tick and refresh jobs share the timer state machine and its state file,
    so they must never overlap on separate worker threads.
    """
    return scheduler_cls(timezone=tz, executors={"default": ThreadPoolExecutor(max_workers=1)})


def setup_refresh_jobs(scheduler: BaseScheduler, refresh: Callable[[], None], config: Config) -> None:
    """
    Schedule countdown re-evaluation.

    Runs hourly, and again just after local midnight so items move buckets
    as soon as the day changes. Both jobs only recompute; they never write.
    """
    scheduler.add_job(
        refresh,
        IntervalTrigger(minutes=config.refresh_interval_minutes),
        id="hourly_refresh",
        replace_existing=True,
        coalesce=True,
    )
    logger.info(f"Scheduled refresh every {config.refresh_interval_minutes} min")

    # A few seconds past midnight to stay clear of clock skew
    scheduler.add_job(
        refresh,
        CronTrigger(hour=0, minute=0, second=config.midnight_buffer_seconds, timezone=config.resolve_timezone()),
        id="midnight_refresh",
        replace_existing=True,
        coalesce=True,
    )
    logger.info(f"Scheduled midnight refresh at 00:00:{config.midnight_buffer_seconds:02d}")


class TimerTicker:
    """
    Drives TimerStateMachine.tick() once per second while a timer runs.

    The tick job is cancelled on every exit path. After an abrupt exit the
    next reconstruct_on_load() is the recovery point, not the cancelled job.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        machine: TimerStateMachine,
        on_tick: Callable[[TimerSession], None] | None = None,
    ):
        self.scheduler = scheduler
        self.machine = machine
        self.on_tick = on_tick

    @property
    def is_ticking(self) -> bool:
        return self.scheduler.get_job(TICK_JOB_ID) is not None

    def _tick(self) -> None:
        session = self.machine.session
        if session is not None and self.machine.store.load() is None:
            # Stopped or discarded by another process
            self.machine.reconstruct_on_load()
            session = None
        if session is None:
            self.cancel()
            return
        self.machine.tick()
        if self.on_tick:
            self.on_tick(session)

    def resume(self) -> None:
        """Arm the tick job if the machine has a running session."""
        if not self.machine.is_running or self.is_ticking:
            return
        self.scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=1),
            id=TICK_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def cancel(self) -> None:
        try:
            self.scheduler.remove_job(TICK_JOB_ID)
        except JobLookupError:
            pass

    def start(self, activity: Activity) -> TimerSession:
        session = self.machine.start(activity)
        self.resume()
        return session

    def stop(self) -> TimeEntry:
        self.cancel()
        try:
            return self.machine.stop()
        except StorageError:
            # Session is still running; keep counting so a retry logs the full time
            self.resume()
            raise

    def discard(self) -> TimerSession:
        self.cancel()
        try:
            return self.machine.discard()
        except StorageError:
            self.resume()
            raise

    def shutdown(self) -> None:
        self.cancel()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
