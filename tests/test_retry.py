"""Unit tests for the bounded retry helper."""

from unittest.mock import AsyncMock, patch

import pytest
from structlog.testing import capture_logs

from media_bridge.core.retry import with_retry


class TestWithRetry:

    @pytest.mark.asyncio
    async def test_success_on_first_attempt_calls_once(self):
        action = AsyncMock(return_value="ok")

        result = await with_retry(action, attempts=3, delay=0)

        assert result == "ok"
        assert action.await_count == 1

    @pytest.mark.asyncio
    async def test_two_failures_then_success_returns_after_three_calls(self):
        action = AsyncMock(side_effect=[RuntimeError("boom"), RuntimeError("boom"), "sent"])

        with capture_logs() as logs:
            result = await with_retry(action, attempts=3, delay=0)

        assert result == "sent"
        assert action.await_count == 3
        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert [w["attempt"] for w in warnings] == [1, 2]
        assert all(w["error"] == "boom" for w in warnings)

    @pytest.mark.asyncio
    async def test_exhaustion_raises_last_error_without_fourth_call(self):
        errors = [ConnectionError("first"), ConnectionError("second"), ConnectionError("third")]
        action = AsyncMock(side_effect=errors)

        with pytest.raises(ConnectionError) as exc_info:
            await with_retry(action, attempts=3, delay=0)

        assert exc_info.value is errors[2]
        assert action.await_count == 3

    @pytest.mark.asyncio
    async def test_constant_delay_between_attempts(self):
        action = AsyncMock(side_effect=[ValueError("x"), ValueError("x"), None])

        with patch("media_bridge.core.retry.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            await with_retry(action, attempts=3, delay=1.0)

        assert [c.args for c in mock_sleep.await_args_list] == [(1.0,), (1.0,)]

    @pytest.mark.asyncio
    async def test_no_sleep_after_final_failure(self):
        action = AsyncMock(side_effect=ValueError("x"))

        with patch("media_bridge.core.retry.asyncio.sleep", new=AsyncMock()) as mock_sleep:
            with pytest.raises(ValueError):
                await with_retry(action, attempts=2, delay=1.0)

        assert mock_sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_single_attempt_does_not_retry(self):
        action = AsyncMock(side_effect=OSError("down"))

        with pytest.raises(OSError):
            await with_retry(action, attempts=1, delay=0)

        assert action.await_count == 1

    @pytest.mark.asyncio
    async def test_zero_attempts_rejected(self):
        action = AsyncMock()

        with pytest.raises(ValueError, match="at least 1"):
            await with_retry(action, attempts=0)

        action.assert_not_awaited()
