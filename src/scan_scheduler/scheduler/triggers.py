"""Fixed time triggers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone

from scan_scheduler.utils.time import ensure_aware


@dataclass(frozen=True)
class IntervalTrigger:
    """Fire every ``seconds``.

    When ``align`` is set, fire times are wall-clock multiples of the interval
    in UTC, so a 3600s trigger fires at the top of every hour and a 900s
    trigger at :00, :15, :30 and :45.
    """

    seconds: float
    align: bool = True

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise ValueError("interval must be positive")

    def next_fire_time(self, after: datetime) -> datetime:
        after = ensure_aware(after)
        if not self.align:
            return after + timedelta(seconds=self.seconds)
        epoch = after.timestamp()
        slot = math.floor(epoch / self.seconds) + 1
        return datetime.fromtimestamp(slot * self.seconds, tz=timezone.utc)

    def describe(self) -> str:
        return f"every {self.seconds:g}s" + (" (aligned)" if self.align else "")


@dataclass(frozen=True)
class DailyTrigger:
    """Fire once a day at ``hour:minute`` in ``tz`` (UTC by default)."""

    hour: int
    minute: int = 0
    tz: timezone = timezone.utc

    def __post_init__(self) -> None:
        if not (0 <= self.hour <= 23 and 0 <= self.minute <= 59):
            raise ValueError(f"invalid time of day {self.hour:02d}:{self.minute:02d}")

    def next_fire_time(self, after: datetime) -> datetime:
        local = ensure_aware(after).astimezone(self.tz)
        candidate = datetime.combine(local.date(), time(self.hour, self.minute), tzinfo=self.tz)
        if candidate <= local:
            candidate += timedelta(days=1)
        return candidate.astimezone(timezone.utc)

    def describe(self) -> str:
        return f"daily at {self.hour:02d}:{self.minute:02d}"

    @classmethod
    def parse(cls, value: str) -> "DailyTrigger":
        """Parse ``"HH:MM"``."""
        try:
            hour_text, minute_text = value.strip().split(":", 1)
            return cls(hour=int(hour_text), minute=int(minute_text))
        except ValueError as exc:
            raise ValueError(f"daily_at must be HH:MM, got {value!r}") from exc


Trigger = IntervalTrigger | DailyTrigger
