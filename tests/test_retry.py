import asyncio

import pytest

from sbg.config import Config
from sbg.errors import QuotaError, RemoteError, RemoteErrorKind, remote_error_for_status
from sbg.retry import RetryExecutor

from fakes import FlakyCall, RecordingSleep


def test_quota_errors_back_off_on_doubling_schedule():
    sleep = RecordingSleep()
    executor = RetryExecutor(max_attempts=5, base_delay=5.0, sleep=sleep)
    call = FlakyCall([QuotaError("429 quota"), QuotaError("429 quota"), QuotaError("429 quota")])

    result = asyncio.run(executor.call(call, description="test"))

    assert result == "ok"
    assert call.calls == 4
    assert sleep.delays == [5.0, 10.0, 20.0]


def test_transient_errors_are_retried():
    sleep = RecordingSleep()
    executor = RetryExecutor(max_attempts=3, base_delay=1.0, sleep=sleep)
    call = FlakyCall([RemoteError("503", kind=RemoteErrorKind.TRANSIENT)])

    assert asyncio.run(executor.call(call)) == "ok"
    assert sleep.delays == [1.0]


def test_blocked_error_is_attempted_once():
    sleep = RecordingSleep()
    executor = RetryExecutor(sleep=sleep)
    blocked = RemoteError("content blocked", kind=RemoteErrorKind.BLOCKED)
    call = FlakyCall([blocked])

    with pytest.raises(RemoteError) as exc_info:
        asyncio.run(executor.call(call))

    assert exc_info.value is blocked
    assert call.calls == 1
    assert sleep.delays == []


def test_malformed_and_unexpected_errors_are_terminal():
    sleep = RecordingSleep()
    executor = RetryExecutor(sleep=sleep)

    malformed = FlakyCall([RemoteError("bad json")])
    with pytest.raises(RemoteError):
        asyncio.run(executor.call(malformed))
    assert malformed.calls == 1

    def boom():
        raise KeyError("nope")

    with pytest.raises(KeyError):
        asyncio.run(executor.call(boom))
    assert sleep.delays == []


def test_exhaustion_reraises_last_error_unchanged():
    sleep = RecordingSleep()
    executor = RetryExecutor(max_attempts=3, base_delay=2.0, sleep=sleep)
    errors = [QuotaError("first"), QuotaError("second"), QuotaError("last")]
    call = FlakyCall(errors)

    with pytest.raises(QuotaError) as exc_info:
        asyncio.run(executor.call(call))

    assert exc_info.value is errors[-1]
    assert call.calls == 3
    assert sleep.delays == [2.0, 4.0]


def test_coroutine_functions_are_awaited():
    executor = RetryExecutor(sleep=RecordingSleep())

    async def fetch(value):
        return value * 2

    assert asyncio.run(executor.call(fetch, 21)) == 42


def test_schedule_and_from_config():
    executor = RetryExecutor.from_config(Config(retry_max_attempts=4, retry_base_delay=0.5))
    assert executor.max_attempts == 4
    assert executor.schedule() == [0.5, 1.0, 2.0]

    with pytest.raises(ValueError):
        RetryExecutor(max_attempts=0)


@pytest.mark.parametrize(
    "status, kind",
    [
        (429, RemoteErrorKind.QUOTA),
        (503, RemoteErrorKind.TRANSIENT),
        (500, RemoteErrorKind.TRANSIENT),
        (408, RemoteErrorKind.TRANSIENT),
        (400, RemoteErrorKind.MALFORMED),
        (403, RemoteErrorKind.MALFORMED),
    ],
)
def test_status_classification(status, kind):
    error = remote_error_for_status(status, "detail")
    assert error.kind == kind
    assert error.status_code == status
    assert isinstance(error, QuotaError) == (kind == RemoteErrorKind.QUOTA)
