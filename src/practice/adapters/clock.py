from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from src.config import PracticeConfig
from src.practice.domain.ports import IClock


class FixedOffsetClock(IClock):
    """Civil date in a fixed UTC offset (UTC+7 by default), whatever the host timezone."""

    def __init__(
        self,
        offset_hours: int = PracticeConfig.UTC_OFFSET_HOURS,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.tz = timezone(timedelta(hours=offset_hours))
        self._now = now or (lambda: datetime.now(timezone.utc))

    def today(self) -> str:
        return self._now().astimezone(self.tz).date().isoformat()


class FixedDateClock(IClock):
    """Clock pinned to a given date; advance() moves it forward."""

    def __init__(self, current: str | date) -> None:
        self.current = current if isinstance(current, date) else date.fromisoformat(current)

    def today(self) -> str:
        return self.current.isoformat()

    def advance(self, days: int = 1) -> None:
        self.current = self.current + timedelta(days=days)
