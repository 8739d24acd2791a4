"""Serialization and optimistic-concurrency helpers.

Aggregates that are written by more than one kind of request carry an integer
`revision`. A write is only accepted if the persisted revision still matches
the one the writer read; otherwise `ConcurrencyConflict` is raised and the
whole read-compute-write unit can be re-run with `retry_on_conflict`.

`KeyedLocks` additionally serializes writers inside one process. A lock only
protects a write if it is still held when the unit of work commits, and
Protean commits a command handler's unit of work after the handler returns.
Handlers therefore take their lock with `serialized`, which wraps the
transaction `@handle` opens; code running outside a handler uses
`run_serialized`, which commits each attempt before releasing the lock.
"""

import functools
import threading
from contextlib import contextmanager

from protean import UnitOfWork
from protean.utils.globals import current_uow

from reviewhub.errors import ConcurrencyConflict
from reviewhub.utils.config import custom_setting
from reviewhub.utils.logging import get_logger

logger = get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLocks:
    """Registry of re-entrant locks, one per key, kept only while someone holds or waits for it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[tuple, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def lock_for(self, *key):
        entry = self._entries.get(key)
        return entry.lock if entry else None

    @contextmanager
    def hold(self, *key):
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]


locks = KeyedLocks()


def serialized(key):
    """Hold the lock for `key(command)` until the handler's unit of work has committed.

    Apply above `@handle`, so the lock is taken before Protean opens the
    handler's unit of work and released after it commits or rolls back.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(instance, command):
            with locks.hold(*key(command)):
                return fn(instance, command)

        return wrapper

    return decorator


@contextmanager
def unit_of_work():
    """Open a unit of work, or join the one already in progress."""
    if current_uow:
        yield
    else:
        with UnitOfWork():
            yield


def _committed(operation):
    with unit_of_work():
        return operation()


def run_serialized(key: tuple, operation, attempts: int | None = None):
    """Run `operation` under the lock for `key`, each attempt in its own unit of work.

    Inside a handler the attempt joins the handler's transaction, which the
    handler's own `serialized` lock covers.
    """
    with locks.hold(*key):
        return retry_on_conflict(lambda: _committed(operation), attempts)


def persisted_revision(repo, aggregate) -> int:
    """Read the revision currently stored for `aggregate`, bypassing any identity map."""
    return repo._dao.get(str(aggregate.id)).revision


def _check_revision(repo, aggregate, expected_revision: int) -> None:
    actual = persisted_revision(repo, aggregate)
    if actual != expected_revision:
        logger.info(
            "revision_mismatch",
            aggregate=type(aggregate).__name__,
            aggregate_id=str(aggregate.id),
            expected=expected_revision,
            actual=actual,
        )
        raise ConcurrencyConflict(
            f"{type(aggregate).__name__} {aggregate.id} was modified concurrently",
            expected_revision=expected_revision,
            actual_revision=actual,
        )


def save_if_unchanged(repo, aggregate, expected_revision: int):
    """Persist `aggregate` only if nobody else wrote it since `expected_revision`."""
    _check_revision(repo, aggregate, expected_revision)
    aggregate.revision = expected_revision + 1
    repo.add(aggregate)
    return aggregate


def delete_if_unchanged(repo, aggregate, expected_revision: int) -> None:
    """Hard-delete `aggregate` only if it is still at `expected_revision`."""
    _check_revision(repo, aggregate, expected_revision)
    repo._dao.delete(aggregate)


def retry_on_conflict(operation, attempts: int | None = None):
    """Run `operation` again after each `ConcurrencyConflict`, up to `attempts` times in total."""
    attempts = attempts or int(custom_setting("MAX_CONFLICT_RETRIES", 3))
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConcurrencyConflict as exc:
            if attempt == attempts:
                logger.warning("concurrency_conflict_exhausted", attempts=attempts, reason=exc.reason)
                raise
            logger.warning("concurrency_conflict_retry", attempt=attempt, reason=exc.reason)
