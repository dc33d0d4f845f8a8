"""Tests for the retry orchestrator in fetchkit.retry."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx
import pytest

from fetchkit.cancellation import CancellationSignal
from fetchkit.errors import CancellationError, ConfigurationError, HttpError
from fetchkit.http import client as http_client
from fetchkit.http.types import RequestOptions
from fetchkit.retry import RetryOptions, retry
from fetchkit.settings import load_settings


class Flaky:
    """Async thunk failing ``failures`` times before returning ``value``."""

    def __init__(self, failures: int, value: object = "ok", error: type[Exception] = RuntimeError) -> None:
        self.failures = failures
        self.value = value
        self.error = error
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.calls <= self.failures:
            msg = f"failure {self.calls}"
            raise self.error(msg)
        return self.value


class TestAttempts:
    """Attempt budget and success paths."""

    @pytest.mark.asyncio
    async def test_first_success_invokes_once(self) -> None:
        target = Flaky(0, value={"id": 1})
        assert await retry(target, RetryOptions(delay=0)) == {"id": 1}
        assert target.calls == 1

    @pytest.mark.asyncio
    async def test_recovers_after_failures(self) -> None:
        target = Flaky(2)
        assert await retry(target, RetryOptions(attempts=3, delay=0)) == "ok"
        assert target.calls == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attempts", [1, 2, 5])
    async def test_always_failing_target_runs_attempts_times(self, attempts: int) -> None:
        target = Flaky(100)
        with pytest.raises(RuntimeError, match=f"failure {attempts}"):
            await retry(target, RetryOptions(attempts=attempts, delay=0))
        assert target.calls == attempts

    @pytest.mark.asyncio
    async def test_last_error_is_raised_unchanged(self) -> None:
        errors = [HttpError("a", status=500), HttpError("b", status=503)]

        async def target() -> None:
            raise errors.pop(0)

        with pytest.raises(HttpError) as exc_info:
            await retry(target, RetryOptions(attempts=2, delay=0))
        assert exc_info.value.message == "b"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attempts", [0, -1, 1.5, True])
    async def test_invalid_attempts_rejected_before_any_call(self, attempts: object) -> None:
        target = Flaky(0)
        with pytest.raises(ConfigurationError, match="attempts must be at least 1"):
            await retry(target, {"attempts": attempts})
        assert target.calls == 0

    def test_options_validate_on_construction(self) -> None:
        with pytest.raises(ConfigurationError):
            RetryOptions(attempts=0)
        with pytest.raises(ConfigurationError):
            RetryOptions(delay="fast")  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_mapping_options(self) -> None:
        target = Flaky(1)
        assert await retry(target, {"attempts": 2, "delay": 0}) == "ok"
        assert target.calls == 2


class TestPredicate:
    """``retryable(error, attempt)`` gating."""

    @pytest.mark.asyncio
    async def test_predicate_sees_attempt_counter(self) -> None:
        seen: list[tuple[str, int]] = []

        def retryable(error: BaseException, attempt: int) -> bool:
            seen.append((str(error), attempt))
            return True

        target = Flaky(100)
        with pytest.raises(RuntimeError):
            await retry(target, RetryOptions(attempts=3, delay=0, retryable=retryable))
        assert seen == [("failure 1", 1), ("failure 2", 2)]

    @pytest.mark.asyncio
    async def test_false_predicate_stops_immediately(self) -> None:
        target = Flaky(100)
        with pytest.raises(RuntimeError, match="failure 1"):
            await retry(
                target,
                RetryOptions(attempts=5, delay=0, retryable=lambda error, attempt: attempt == 0),
            )
        assert target.calls == 1

    @pytest.mark.asyncio
    async def test_predicate_stops_at_counter(self) -> None:
        target = Flaky(100)
        with pytest.raises(RuntimeError, match="failure 2"):
            await retry(
                target,
                RetryOptions(attempts=10, delay=0, retryable=lambda error, attempt: attempt < 2),
            )
        assert target.calls == 2

    @pytest.mark.asyncio
    async def test_predicate_filters_by_error_type(self) -> None:
        target = Flaky(100, error=ValueError)
        with pytest.raises(ValueError):
            await retry(
                target,
                RetryOptions(
                    attempts=4,
                    delay=0,
                    retryable=lambda error, attempt: not isinstance(error, ValueError),
                ),
            )
        assert target.calls == 1


class TestDelay:
    """Inter-attempt delays."""

    @pytest.mark.asyncio
    async def test_delay_function_receives_counter(self) -> None:
        seen: list[int] = []

        def delay(attempt: int) -> float:
            seen.append(attempt)
            return 0

        await retry(Flaky(3), RetryOptions(attempts=4, delay=delay))
        assert seen == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_negative_fixed_delay_acts_as_zero(self) -> None:
        target = Flaky(2)
        assert await asyncio.wait_for(retry(target, RetryOptions(attempts=3, delay=-500)), 2) == "ok"

    @pytest.mark.asyncio
    async def test_retries_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger="fetchkit.retry")
        with pytest.raises(RuntimeError):
            await retry(Flaky(100), RetryOptions(attempts=2, delay=0))
        messages = [record.getMessage() for record in caplog.records]
        assert "Attempt failed; retrying" in messages
        assert "Retry gave up" in messages


class TestCancellation:
    """Cooperative cancellation between attempts."""

    @pytest.mark.asyncio
    async def test_cancel_during_delay_raises_reason(self) -> None:
        signal = CancellationSignal()
        target = Flaky(100)
        loop = asyncio.get_running_loop()
        loop.call_later(0.02, signal.cancel)
        with pytest.raises(CancellationError):
            await retry(target, RetryOptions(attempts=5, delay=10_000, signal=signal))
        assert target.calls == 1
        assert signal.listener_count == 0

    @pytest.mark.asyncio
    async def test_cancellation_wins_over_attempt_error(self) -> None:
        signal = CancellationSignal()
        reason = RuntimeError("shutting down")

        async def target() -> None:
            signal.cancel(reason)
            msg = "attempt failed"
            raise ValueError(msg)

        with pytest.raises(RuntimeError) as exc_info:
            await retry(target, RetryOptions(attempts=3, delay=0, signal=signal))
        assert exc_info.value is reason
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_reused_signal_chains_latest_error(self) -> None:
        signal = CancellationSignal()
        reason = RuntimeError("shutting down")
        signal.cancel(reason)

        def failing(error: Exception) -> Callable[[], Awaitable[None]]:
            async def target() -> None:
                raise error

            return target

        first, second = ValueError("first"), KeyError("second")
        with pytest.raises(RuntimeError) as exc_info:
            await retry(failing(first), RetryOptions(delay=0, signal=signal))
        assert exc_info.value is reason
        assert reason.__cause__ is first

        with pytest.raises(RuntimeError) as exc_info:
            await retry(failing(second), RetryOptions(delay=0, signal=signal))
        assert exc_info.value is reason
        assert reason.__cause__ is second

    @pytest.mark.asyncio
    async def test_success_after_cancel_is_returned(self) -> None:
        signal = CancellationSignal()

        async def target() -> str:
            signal.cancel()
            return "done"

        assert await retry(target, RetryOptions(signal=signal)) == "done"

    @pytest.mark.asyncio
    async def test_pre_cancelled_signal_still_runs_first_attempt(self) -> None:
        signal = CancellationSignal()
        signal.cancel()
        target = Flaky(0)
        assert await retry(target, RetryOptions(signal=signal)) == "ok"
        assert target.calls == 1


class TestTargets:
    """Polymorphic targets."""

    @pytest.mark.asyncio
    async def test_sync_thunk(self) -> None:
        calls: list[int] = []

        def target() -> int:
            calls.append(1)
            if len(calls) < 2:
                msg = "not yet"
                raise OSError(msg)
            return 42

        assert await retry(target, RetryOptions(delay=0)) == 42
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_literal_value(self) -> None:
        assert await retry(7, RetryOptions(delay=0)) == 7

    @pytest.mark.asyncio
    async def test_awaitable_is_not_re_executed(self) -> None:
        calls = 0

        async def produce() -> str:
            nonlocal calls
            calls += 1
            msg = "broken"
            raise RuntimeError(msg)

        with pytest.raises(RuntimeError):
            await retry(produce(), RetryOptions(attempts=3, delay=0))
        assert calls == 1

    @pytest.mark.asyncio
    async def test_url_target_uses_fetch_resource(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[tuple[str, RequestOptions | None]] = []

        async def fake_fetch(url: str, options: RequestOptions | None = None) -> dict[str, bool]:
            seen.append((url, options))
            if len(seen) == 1:
                raise HttpError("unavailable", status=503)
            return {"ok": True}

        monkeypatch.setattr(http_client, "fetch_resource", fake_fetch)
        request_options = RequestOptions(headers={"X-Trace": "1"})
        result = await retry(
            "https://api.test/health", RetryOptions(attempts=2, delay=0), request_options
        )
        assert result == {"ok": True}
        assert seen == [("https://api.test/health", request_options)] * 2

    @pytest.mark.asyncio
    async def test_url_target_over_mock_transport(self, mock_http) -> None:
        statuses = [503, 200]
        transport, options = mock_http(
            lambda request: httpx.Response(statuses.pop(0), json={"message": "busy"})
        )
        assert await retry("https://api.test/x", RetryOptions(delay=0), options) == {
            "message": "busy"
        }
        assert len(transport.requests) == 2


def test_options_from_settings() -> None:
    settings = load_settings(retry={"attempts": 6, "jitter": 0.0, "initial_delay_ms": 10})
    options = RetryOptions.from_settings(settings)
    assert options.attempts == 6
    assert options.delay_for(2) == 40
    assert RetryOptions.from_settings(settings, attempts=2).attempts == 2
