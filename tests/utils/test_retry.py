# tests/utils/test_retry.py
from unittest.mock import AsyncMock

import pytest

from chess_viewer.utils.retry import retry_with_backoff


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures():
    func = AsyncMock(side_effect=[ConnectionError("down"), ConnectionError("down"), "ok"])
    func.__name__ = "fetch"
    wrapped = retry_with_backoff(attempts=3, initial_backoff_s=0.001, max_backoff_s=0.01, source="test")(func)

    assert await wrapped() == "ok"
    assert func.await_count == 3


@pytest.mark.asyncio
async def test_reraises_after_last_attempt():
    func = AsyncMock(side_effect=ConnectionError("down"))
    func.__name__ = "fetch"
    wrapped = retry_with_backoff(attempts=2, initial_backoff_s=0.001, source="test")(func)

    with pytest.raises(ConnectionError):
        await wrapped()
    assert func.await_count == 2


@pytest.mark.asyncio
async def test_other_errors_are_not_retried():
    func = AsyncMock(side_effect=ValueError("bad payload"))
    func.__name__ = "fetch"
    wrapped = retry_with_backoff(attempts=3, initial_backoff_s=0.001, source="test")(func)

    with pytest.raises(ValueError):
        await wrapped()
    assert func.await_count == 1
