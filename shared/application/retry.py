"""
Transaction retry

Commit paths that take row locks can lose a serialization race (deadlock,
lock timeout, serialization failure). Those surface from Django as
``OperationalError`` and are retried a bounded number of times with
exponential backoff before being reported as ``ConcurrencyConflict``.
Any other database error is logged with its context and reported as an
opaque ``PersistenceError``.
"""

from typing import Any, Callable
import logging
import time

from django.conf import settings
from django.db import DatabaseError, OperationalError, transaction

from shared.domain.exceptions import ConcurrencyConflict, PersistenceError

logger = logging.getLogger(__name__)


def run_in_transaction_with_retry(
    func: Callable[..., Any],
    *args,
    attempts: int | None = None,
    backoff: float | None = None,
    context: dict | None = None,
    **kwargs,
) -> Any:
    """
    Call ``func(*args, **kwargs)``, retrying on transient lock failures.

    ``func`` is expected to open its own Unit of Work. When the caller is
    already inside ``transaction.atomic()`` a retry cannot roll back only
    our part of the work, so exactly one attempt is made.
    """
    if attempts is None:
        attempts = getattr(settings, 'BOOKING_COMMIT_RETRY_ATTEMPTS', 3)
    if backoff is None:
        backoff = getattr(settings, 'BOOKING_COMMIT_RETRY_BACKOFF_SECONDS', 0.05)
    if transaction.get_connection().in_atomic_block:
        attempts = 1
    context = context or {}

    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            if attempt >= attempts:
                logger.error(
                    f"Giving up after {attempt} attempt(s) of {func.__qualname__}: {e}",
                    extra={'context': context},
                )
                raise ConcurrencyConflict(**context) from e
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(
                f"Transient database error in {func.__qualname__} "
                f"(attempt {attempt}/{attempts}), retrying in {delay:.2f}s: {e}"
            )
            time.sleep(delay)
        except DatabaseError as e:
            logger.error(
                f"Database error in {func.__qualname__} with context {context}: {e}",
                exc_info=True,
            )
            raise PersistenceError(**context) from e
