from django.db import IntegrityError, OperationalError

import pytest

from shared.application.retry import run_in_transaction_with_retry
from shared.domain.exceptions import ConcurrencyConflict, PersistenceError


def test_retries_transient_errors_then_succeeds():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError("database is locked")
        return "done"

    assert run_in_transaction_with_retry(flaky, attempts=3, backoff=0) == "done"
    assert len(calls) == 3


def test_exhausted_retries_raise_concurrency_conflict():
    calls = []

    def always_locked():
        calls.append(1)
        raise OperationalError("deadlock detected")

    with pytest.raises(ConcurrencyConflict) as exc_info:
        run_in_transaction_with_retry(always_locked, attempts=2, backoff=0, context={"room_type_id": 5})

    assert len(calls) == 2
    assert exc_info.value.context == {"room_type_id": 5}
    assert exc_info.value.http_status == 409


def test_other_database_errors_are_opaque_and_not_retried():
    calls = []

    def broken():
        calls.append(1)
        raise IntegrityError("constraint failed")

    with pytest.raises(PersistenceError) as exc_info:
        run_in_transaction_with_retry(broken, attempts=3, backoff=0)

    assert len(calls) == 1
    assert "constraint" not in exc_info.value.to_dict()["detail"]
