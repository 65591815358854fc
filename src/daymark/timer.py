"""Single-timer state machine for time tracking.

Idle -> Running on start(), Running -> Idle on stop() (which logs one
TimeEntry) or discard() (which logs nothing). Every transition re-persists the
session, or its absence, so a fresh process can pick up where the last one
stopped via reconstruct_on_load().
"""

import logging

from .core.daymath import Clock, local_date
from .core.errors import ConflictError, NoActiveTimerError, StorageError
from .core.timer import TimerSession
from .core.tracking import Activity, TimeEntry
from .ports import TimeEntryRepository, TimerStore

logger = logging.getLogger(__name__)


class TimerStateMachine:
    """Owns the one in-flight TimerSession, if any."""

    def __init__(self, store: TimerStore, entries: TimeEntryRepository, clock: Clock | None = None):
        self.store = store
        self.entries = entries
        self.clock = clock or Clock()
        self._session: TimerSession | None = None

    @property
    def session(self) -> TimerSession | None:
        return self._session

    @property
    def is_running(self) -> bool:
        return self._session is not None

    def start(self, activity: Activity) -> TimerSession:
        """Start timing an activity. Raises ConflictError if a timer is already running."""
        if self._session is not None:
            raise ConflictError(self._session.activity_name)

        session = TimerSession(
            activity_id=activity.id,
            activity_name=activity.name,
            start_time=self.clock.now(),
            elapsed_seconds=0,
        )
        # Persist first; a failed save leaves the machine Idle
        self.store.save(session)
        self._session = session
        logger.info(f"Timer started for {activity.name}")
        return session

    def tick(self) -> None:
        """Advance the running timer by one second and persist it."""
        if self._session is None:
            logger.warning("Timer tick while idle, ignoring")
            return

        self._session.elapsed_seconds += 1
        try:
            self.store.save(self._session)
        except StorageError:
            self._session.elapsed_seconds -= 1
            raise

    def reconstruct_on_load(self) -> TimerSession | None:
        """
        Restore a persisted session, recomputing elapsed time from its start.

        The stored counter is ignored: the process may have been gone for
        hours, and only now - start reflects that.
        """
        session = self.store.load()
        if session is None:
            self._session = None
            return None

        session.elapsed_seconds = session.elapsed_since_start(self.clock.now())
        self.store.save(session)
        self._session = session
        logger.info(f"Resumed timer for {session.activity_name} ({session.format_elapsed()})")
        return session

    def stop(self) -> TimeEntry:
        """
        Stop the timer and log it as a TimeEntry.

        Raises NoActiveTimerError if idle. If writing the entry or clearing the
        persisted session fails, the machine stays Running so the stop can be
        retried. The entry id comes from the session, so a retry (in this or a
        later process) never logs it twice.
        """
        if self._session is None:
            raise NoActiveTimerError()

        session = self._session
        now = self.clock.now()
        entry = TimeEntry(
            id=session.entry_id(),
            activity_id=session.activity_id,
            start_time=session.start_time,
            end_time=now,
            duration_minutes=session.duration_minutes(),
            date=local_date(now, self.clock.tz),
            created_at=now,
        )
        self.entries.add(entry)
        self.store.clear()
        self._session = None
        logger.info(f"Timer stopped for {session.activity_name}: {entry.duration_minutes} min")
        return entry

    def discard(self) -> TimerSession:
        """Abandon the running timer without logging anything."""
        if self._session is None:
            raise NoActiveTimerError()

        self.store.clear()
        session, self._session = self._session, None
        logger.info(f"Timer discarded for {session.activity_name}")
        return session
