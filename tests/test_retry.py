import pytest

from mindtrack.utils.retry import with_retry


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def record(delay):
        delays.append(delay)

    monkeypatch.setattr("mindtrack.utils.retry.asyncio.sleep", record)
    return delays


async def test_returns_first_success(sleeps):
    async def ok():
        return "done"

    assert await with_retry(ok, max_retries=3) == "done"
    assert sleeps == []


async def test_backs_off_then_succeeds(sleeps):
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("blip")
        return "done"

    assert await with_retry(flaky, max_retries=3, initial_delay=0.5) == "done"
    assert sleeps == [0.5, 1.0]


async def test_reraises_last_error(sleeps):
    async def broken():
        raise ValueError("nope")

    with pytest.raises(ValueError):
        await with_retry(broken, max_retries=2, initial_delay=0.1)
    assert sleeps == [0.1]


async def test_should_retry_false_raises_immediately(sleeps):
    calls = []

    async def broken():
        calls.append(1)
        raise KeyError("fatal")

    with pytest.raises(KeyError):
        await with_retry(broken, max_retries=5, should_retry=lambda e: not isinstance(e, KeyError))
    assert len(calls) == 1
    assert sleeps == []
