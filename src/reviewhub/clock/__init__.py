"""Clock factory.

Provides get_clock() / set_clock() to swap implementations:
- SystemClock by default
- FakeClock for tests that assert on timestamps
"""

from reviewhub.clock.port import Clock
from reviewhub.clock.system import SystemClock

_current_clock: Clock | None = None


def get_clock() -> Clock:
    """Return the active clock. Defaults to SystemClock."""
    global _current_clock
    if _current_clock is None:
        _current_clock = SystemClock()
    return _current_clock


def set_clock(clock: Clock) -> None:
    """Override the active clock (useful for tests)."""
    global _current_clock
    _current_clock = clock


def reset_clock() -> None:
    global _current_clock
    _current_clock = None
