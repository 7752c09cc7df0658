import pytest

from career_advisor.core.retry import retry_with_backoff


class Flaky:
    def __init__(self, failures, error=RuntimeError):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error(f"failure {self.calls}")
        return "ok"


def test_returns_after_transient_failures():
    sleeps = []
    op = Flaky(2)

    assert retry_with_backoff(op, attempts=3, delay=0.2, sleep=sleeps.append) == "ok"
    assert op.calls == 3
    assert sleeps == [0.2, 0.2]


def test_backoff_multiplies_delay():
    sleeps = []
    retry_with_backoff(Flaky(2), attempts=3, delay=0.1, backoff=2.0, sleep=sleeps.append)
    assert sleeps == pytest.approx([0.1, 0.2])


def test_raises_last_error_when_attempts_run_out():
    op = Flaky(5)
    retried = []
    with pytest.raises(RuntimeError, match="failure 3"):
        retry_with_backoff(
            op, attempts=3, delay=0, sleep=lambda _: None,
            on_retry=lambda attempt, error: retried.append(attempt),
        )
    assert op.calls == 3
    assert retried == [1, 2]


def test_other_errors_are_not_retried():
    op = Flaky(1, error=KeyError)
    with pytest.raises(KeyError):
        retry_with_backoff(op, attempts=3, retry_on=(RuntimeError,), sleep=lambda _: None)
    assert op.calls == 1


def test_attempts_must_be_positive():
    with pytest.raises(ValueError):
        retry_with_backoff(lambda: None, attempts=0)


def test_never_retry_propagates_on_first_failure():
    op = Flaky(1, error=KeyError)
    sleeps = []
    with pytest.raises(KeyError):
        retry_with_backoff(op, attempts=3, retry_on=(LookupError,), never_retry=(KeyError,), sleep=sleeps.append)
    assert op.calls == 1
    assert sleeps == []
