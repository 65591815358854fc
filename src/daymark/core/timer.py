"""In-flight timer session model - no I/O dependencies."""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime

from .daymath import parse_instant

# Entry ids for timed sessions are derived, so stopping the same session twice
# names the same entry
SESSION_NAMESPACE = uuid.UUID("6f1c2a4e-9b3d-4d5e-8a7f-2c1b0e9d8f34")


@dataclass
class TimerSession:
    """The one timer that may be running, persisted so it survives a restart."""

    activity_id: str
    activity_name: str
    start_time: datetime
    elapsed_seconds: int = 0

    def elapsed_since_start(self, now: datetime) -> int:
        """Seconds between start and now, never negative."""
        return max(0, math.floor((now - self.start_time).total_seconds()))

    def duration_minutes(self) -> int:
        """Whole minutes for the logged entry, at least one."""
        return max(1, self.elapsed_seconds // 60)

    def entry_id(self) -> str:
        """Stable TimeEntry id for this session."""
        key = f"{self.activity_id}|{self.start_time.isoformat()}"
        return str(uuid.uuid5(SESSION_NAMESPACE, key))

    def format_elapsed(self) -> str:
        return format_clock(self.elapsed_seconds)

    def to_dict(self) -> dict:
        return {
            "activity_id": self.activity_id,
            "activity_name": self.activity_name,
            "start_time": self.start_time.isoformat(),
            "elapsed_seconds": self.elapsed_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimerSession":
        return cls(
            activity_id=data["activity_id"],
            activity_name=data.get("activity_name", ""),
            start_time=parse_instant(data["start_time"]),
            elapsed_seconds=int(data.get("elapsed_seconds", 0)),
        )


def format_clock(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
