"""Settable clock for tests and local tooling."""

from datetime import UTC, datetime, timedelta

from reviewhub.clock.port import Clock


class FakeClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def set(self, moment: datetime) -> None:
        self.current = moment

    def advance(self, **delta) -> datetime:
        """Move forward by a `timedelta(**delta)` and return the new time."""
        self.current = self.current + timedelta(**delta)
        return self.current
