from datetime import datetime, timezone

from src.practice.adapters.clock import FixedDateClock, FixedOffsetClock


def utc(*args):
    return lambda: datetime(*args, tzinfo=timezone.utc)


def test_offset_clock_rolls_over_at_local_midnight():
    # 16:59 UTC is 23:59 in UTC+7, 17:00 UTC is already the next day there.
    assert FixedOffsetClock(7, now=utc(2024, 3, 9, 16, 59)).today() == "2024-03-09"
    assert FixedOffsetClock(7, now=utc(2024, 3, 9, 17, 0)).today() == "2024-03-10"


def test_offset_clock_ignores_host_timezone():
    clock = FixedOffsetClock(now=utc(2024, 12, 31, 20, 0))

    assert clock.today() == "2025-01-01"


def test_fixed_date_clock_advances():
    clock = FixedDateClock("2024-02-28")

    clock.advance()
    assert clock.today() == "2024-02-29"

    clock.advance(2)
    assert clock.today() == "2024-03-02"
