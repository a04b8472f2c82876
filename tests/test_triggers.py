from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from scan_scheduler.scheduler.triggers import DailyTrigger, IntervalTrigger


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestIntervalTrigger:
    def test_aligned_hourly_fires_at_top_of_hour(self) -> None:
        trigger = IntervalTrigger(seconds=3600)

        assert trigger.next_fire_time(_utc(2026, 3, 1, 10, 17, 5)) == _utc(2026, 3, 1, 11, 0)

    def test_aligned_fire_time_is_strictly_after(self) -> None:
        trigger = IntervalTrigger(seconds=900)

        assert trigger.next_fire_time(_utc(2026, 3, 1, 10, 15)) == _utc(2026, 3, 1, 10, 30)

    def test_unaligned_adds_interval(self) -> None:
        trigger = IntervalTrigger(seconds=90, align=False)
        after = _utc(2026, 3, 1, 10, 0, 10)

        assert trigger.next_fire_time(after) == after + timedelta(seconds=90)

    def test_naive_datetime_is_treated_as_utc(self) -> None:
        trigger = IntervalTrigger(seconds=3600)

        assert trigger.next_fire_time(datetime(2026, 3, 1, 10, 30)) == _utc(2026, 3, 1, 11, 0)

    @pytest.mark.parametrize("seconds", [0, -5])
    def test_rejects_non_positive_interval(self, seconds: float) -> None:
        with pytest.raises(ValueError):
            IntervalTrigger(seconds=seconds)

    def test_describe(self) -> None:
        assert IntervalTrigger(seconds=900).describe() == "every 900s (aligned)"
        assert IntervalTrigger(seconds=90, align=False).describe() == "every 90s"


class TestDailyTrigger:
    def test_fires_later_today(self) -> None:
        trigger = DailyTrigger(hour=2)

        assert trigger.next_fire_time(_utc(2026, 3, 1, 1, 59)) == _utc(2026, 3, 1, 2, 0)

    def test_fires_tomorrow_once_slot_has_passed(self) -> None:
        trigger = DailyTrigger(hour=2)

        assert trigger.next_fire_time(_utc(2026, 3, 1, 2, 0)) == _utc(2026, 3, 2, 2, 0)
        assert trigger.next_fire_time(_utc(2026, 12, 31, 23, 0)) == _utc(2027, 1, 1, 2, 0)

    def test_non_utc_zone_is_converted(self) -> None:
        trigger = DailyTrigger(hour=2, tz=timezone(timedelta(hours=2)))

        assert trigger.next_fire_time(_utc(2026, 3, 1, 0, 0)) == _utc(2026, 3, 2, 0, 0)

    def test_parse(self) -> None:
        trigger = DailyTrigger.parse(" 06:30 ")

        assert (trigger.hour, trigger.minute) == (6, 30)
        assert trigger.describe() == "daily at 06:30"

    @pytest.mark.parametrize("value", ["6", "25:00", "12:60", "ab:cd"])
    def test_parse_rejects_invalid_values(self, value: str) -> None:
        with pytest.raises(ValueError, match="daily_at must be HH:MM"):
            DailyTrigger.parse(value)
