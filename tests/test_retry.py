from newsmon.errors import ExtractionError
from newsmon.retry import backoff_delay, run_with_retry


def _flaky(failures, value="ok"):
    state = {"calls": 0}

    def attempt():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise ExtractionError(f"boom {state['calls']}")
        return value

    return attempt, state


def test_backoff_doubles():
    assert [backoff_delay(n, 2.0) for n in (1, 2, 3)] == [2.0, 4.0, 8.0]


def test_first_success_does_not_sleep(sleeps):
    attempt, state = _flaky(0)
    result = run_with_retry(attempt, max_attempts=3, base_delay_s=2.0, sleep=sleeps.append)
    assert result.value == "ok"
    assert result.attempts == 1
    assert sleeps == []


def test_succeeds_on_third_attempt(sleeps):
    attempt, state = _flaky(2)
    result = run_with_retry(attempt, max_attempts=3, base_delay_s=2.0, sleep=sleeps.append)
    assert result.value == "ok"
    assert result.attempts == 3
    assert result.last_error is None
    assert sleeps == [2.0, 4.0]


def test_exhaustion_returns_none_with_last_error(sleeps):
    attempt, state = _flaky(5)
    result = run_with_retry(attempt, max_attempts=3, base_delay_s=1.0, sleep=sleeps.append)
    assert result.value is None
    assert result.last_error == "boom 3"
    assert state["calls"] == 3
    # no sleep after the final attempt
    assert sleeps == [1.0, 2.0]


def test_non_extraction_errors_are_retried_too(sleeps):
    calls = []

    def attempt():
        calls.append(1)
        raise RuntimeError()

    result = run_with_retry(attempt, max_attempts=2, base_delay_s=0.5, sleep=sleeps.append)
    assert result.value is None
    assert result.last_error == "RuntimeError"
    assert len(calls) == 2
