import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from stockledger.services.stock_adjustment._retry import (
    is_lock_contention,
    with_lock_retry,
)


def _locked():
    return OperationalError("UPDATE stock_level", {}, Exception("database is locked"))


class TestLockContentionDetection:

    @pytest.mark.parametrize("message", [
        "database is locked",
        "ERROR: could not obtain lock on row in relation \"stock_level\"",
        "deadlock detected",
        "could not serialize access due to concurrent update",
    ])
    def test_lock_messages_are_retryable(self, message):
        assert is_lock_contention(OperationalError("stmt", {}, Exception(message)))

    def test_other_database_errors_are_not(self):
        assert not is_lock_contention(OperationalError("stmt", {}, Exception("disk I/O error")))
        assert not is_lock_contention(IntegrityError("stmt", {}, Exception("UNIQUE constraint failed")))


class TestBackoff:

    def test_waits_grow_exponentially_under_the_cap(self):
        sleeps = []

        def operation():
            raise _locked()

        with pytest.raises(OperationalError):
            with_lock_retry(operation, max_attempts=5, initial_delay=0.1, max_delay=0.3, sleep=sleeps.append)

        assert len(sleeps) == 4
        for delay, ceiling in zip(sleeps, [0.1, 0.2, 0.3, 0.3]):
            assert 0 <= delay <= ceiling

    def test_zero_attempts_still_runs_once(self):
        calls = []

        def operation():
            calls.append(1)
            raise _locked()

        with pytest.raises(OperationalError):
            with_lock_retry(operation, max_attempts=0, sleep=lambda _: None)
        assert len(calls) == 1


class TestWithLockRetry:

    def test_returns_first_success_without_sleeping(self):
        sleeps = []
        assert with_lock_retry(lambda: "done", sleep=sleeps.append) == "done"
        assert sleeps == []

    def test_retries_lock_contention_until_success(self):
        sleeps = []
        outcomes = iter([_locked(), _locked(), "ok"])

        def operation():
            outcome = next(outcomes)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert with_lock_retry(operation, max_attempts=5, initial_delay=0.1, sleep=sleeps.append) == "ok"
        assert len(sleeps) == 2
        assert 0 <= sleeps[0] <= 0.1
        assert 0 <= sleeps[1] <= 0.2

    def test_raises_after_max_attempts(self):
        sleeps = []
        calls = []

        def operation():
            calls.append(1)
            raise _locked()

        with pytest.raises(OperationalError):
            with_lock_retry(operation, max_attempts=4, sleep=sleeps.append)
        assert len(calls) == 4
        assert len(sleeps) == 3

    def test_non_lock_errors_are_not_retried(self):
        calls = []

        def operation():
            calls.append(1)
            raise OperationalError("stmt", {}, Exception("no such table: stock_level"))

        with pytest.raises(OperationalError):
            with_lock_retry(operation, sleep=lambda _: None)
        assert len(calls) == 1

    def test_domain_errors_pass_straight_through(self):
        calls = []

        def operation():
            calls.append(1)
            raise ValueError("bad quantity")

        with pytest.raises(ValueError):
            with_lock_retry(operation, sleep=lambda _: None)
        assert len(calls) == 1
