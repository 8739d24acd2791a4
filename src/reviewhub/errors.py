"""Domain error taxonomy.

Validation failures reuse Protean's `ValidationError` and missing entities
surface as Protean's `ObjectNotFoundError`. The classes below cover the
remaining outcomes the core reports to its callers. Infrastructure errors
raised by a storage provider are never wrapped.
"""


class ReviewhubError(Exception):
    """Base class for domain errors. `reason` is safe to show to API clients."""

    def __init__(self, reason: str, **details):
        super().__init__(reason)
        self.reason = reason
        self.details = details

    def __str__(self):
        return self.reason


class PermissionDenied(ReviewhubError):
    """No bypass role, module grant or ownership rule allows the action."""


class InvalidTransition(ReviewhubError):
    """The moderation state machine rejects the move from the item's current state."""


class ConsistencyError(ReviewhubError):
    """Derived state cannot be maintained, e.g. a review points to a missing company."""


class ConcurrencyConflict(ReviewhubError):
    """A compare-and-set lost a race; the caller may retry the whole unit of work."""

    def __init__(self, reason: str, expected_revision=None, actual_revision=None, **details):
        super().__init__(reason, **details)
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision
