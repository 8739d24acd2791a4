"""Clock port (abstract interface).

Everything in the domain that stamps a time asks the active clock, so tests
can pin or advance time without patching `datetime`.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Abstract source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current timezone-aware UTC time."""
        ...
