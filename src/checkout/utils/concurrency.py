"""Optimistic concurrency for aggregates that guard shared counters.

Reward ledgers and warehouse stock rows rely on protean's aggregate
``_version``. A write made from a stale copy is rejected with
``ExpectedVersionError`` in the same statement that would have applied it,
so two sessions that both read the same balance cannot both spend it.

Inside a command handler the conflict surfaces at commit and protean re-runs
the whole handler in a fresh unit of work, which re-reads the ledger and
re-validates the request. Outside a handler, ``update_with_retry`` opens one
unit of work per attempt itself.
"""

from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_uow

from checkout.domain import logger

MAX_ATTEMPTS = 3


def _apply(load, mutate):
    repo, aggregate = load()
    result = mutate(aggregate)
    repo.add(aggregate)
    return result


def update_with_retry(load, mutate, attempts: int = MAX_ATTEMPTS):
    """Load an aggregate, apply ``mutate`` and save it under a version check.

    ``load`` returns ``(repo, aggregate)``; ``mutate`` applies the change and
    returns the caller's result. Domain errors raised by ``mutate`` (for
    example an insufficient balance seen on the re-read) propagate untouched.
    """
    if current_uow and current_uow.in_progress:
        return _apply(load, mutate)

    for attempt in range(1, attempts + 1):
        try:
            with UnitOfWork():
                return _apply(load, mutate)
        except ExpectedVersionError:
            if attempt == attempts:
                raise
            logger.info("version_conflict_retry", attempt=attempt)
