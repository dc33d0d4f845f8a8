"""Retry orchestration with backoff and cooperative cancellation.

:func:`retry` drives a target (thunk, URL or literal) through
``tenacity.AsyncRetrying``. Attempts run strictly one after another. After a
failed attempt the loop

1. surfaces the cancellation reason if the signal has fired,
2. retries only while ``attempt < attempts`` and ``retryable(error, attempt)``
   holds, where ``attempt`` counts the attempts made so far,
3. otherwise re-raises the attempt's own error unchanged.

Inter-attempt delays go through :func:`fetchkit.delay.wait`, so cancelling
the signal also cuts a pending delay short.

Examples
--------
>>> import asyncio
>>> from fetchkit.retry import RetryOptions, retry
>>> async def flaky() -> str:
...     return "ok"
>>> asyncio.run(retry(flaky, RetryOptions(attempts=2, delay=0)))
'ok'
"""

from __future__ import annotations

import asyncio
import inspect
import numbers
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt
from tenacity.retry import retry_base
from tenacity.wait import wait_base

from fetchkit.backoff import DelayFunction, default_delay, exponential_backoff
from fetchkit.cancellation import CancellationSignal
from fetchkit.delay import wait
from fetchkit.errors import ConfigurationError
from fetchkit.http.types import RequestOptions
from fetchkit.logging import get_logger
from fetchkit.settings import FetchSettings, get_settings
from fetchkit.targets import Target, resolve_target

__all__ = ["RetryOptions", "RetryPredicate", "always_retry", "retry"]

logger = get_logger(__name__)

RetryPredicate = Callable[[BaseException, int], bool]


def always_retry(error: BaseException, attempt: int) -> bool:
    """Default predicate: every error is retryable."""
    del error, attempt
    return True


def _validate_attempts(attempts: object) -> None:
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        msg = "retry: attempts must be at least 1"
        raise ConfigurationError(msg, context={"field": "attempts", "value": repr(attempts)})


@dataclass(frozen=True)
class RetryOptions:
    """Retry behaviour configuration.

    Attributes
    ----------
    attempts : int
        Total number of attempts, first try included. Defaults to 3.
    delay : float | DelayFunction
        Fixed delay in milliseconds (negative values act as zero), or a
        function of the attempt counter. Defaults to jittered exponential
        backoff from 200 ms.
    signal : CancellationSignal | None
        Cancellation handle observed between attempts.
    retryable : RetryPredicate
        ``retryable(error, attempt)``; ``attempt`` is 1 after the first
        failure. Defaults to retrying every error.

    Raises
    ------
    ConfigurationError
        On construction, if ``attempts`` is not an integer >= 1 or ``delay``
        is neither a number nor callable.
    """

    attempts: int = 3
    delay: float | DelayFunction = default_delay
    signal: CancellationSignal | None = None
    retryable: RetryPredicate = always_retry

    def __post_init__(self) -> None:
        _validate_attempts(self.attempts)
        if not callable(self.delay) and (
            isinstance(self.delay, bool) or not isinstance(self.delay, numbers.Real)
        ):
            raise ConfigurationError.with_details(
                field="delay",
                issue=f"Expected milliseconds or a callable, got {type(self.delay).__name__}",
            )

    def delay_for(self, attempt: int) -> float:
        """Return the delay in milliseconds before attempt ``attempt + 1``.

        Parameters
        ----------
        attempt : int
            Attempts made so far.

        Returns
        -------
        float
            Delay in milliseconds.
        """
        if callable(self.delay):
            return float(self.delay(attempt))
        return float(max(self.delay, 0))

    @classmethod
    def from_settings(
        cls, settings: FetchSettings | None = None, **overrides: Any  # noqa: ANN401
    ) -> RetryOptions:
        """Build options from configured retry defaults.

        Parameters
        ----------
        settings : FetchSettings | None, optional
            Settings to read. Defaults to :func:`~fetchkit.settings.get_settings`.
        **overrides : Any
            Field values taking precedence over the settings.

        Returns
        -------
        RetryOptions
            Options using the configured attempts and backoff.
        """
        config = (settings or get_settings()).retry
        values: dict[str, Any] = {
            "attempts": config.attempts,
            "delay": exponential_backoff(
                initial_ms=config.initial_delay_ms,
                base=config.backoff_base,
                jitter=config.jitter,
                max_ms=config.max_delay_ms,
            ),
        }
        values.update(overrides)
        return cls(**values)


class _RetryDecision(retry_base):
    """Tenacity predicate applying the attempt budget and ``retryable``."""

    def __init__(self, options: RetryOptions) -> None:
        self._options = options

    def __call__(self, retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        error = outcome.exception()
        if not isinstance(error, Exception):
            return False
        signal = self._options.signal
        if signal is not None and signal.cancelled:
            return False
        attempt = retry_state.attempt_number
        return attempt < self._options.attempts and bool(self._options.retryable(error, attempt))


class _OptionsWait(wait_base):
    """Tenacity wait strategy delegating to :meth:`RetryOptions.delay_for`."""

    def __init__(self, options: RetryOptions) -> None:
        self._options = options

    def __call__(self, retry_state: RetryCallState) -> float:
        return self._options.delay_for(retry_state.attempt_number) / 1000


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    sleep_s = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Attempt failed; retrying",
        extra={
            "operation": "retry",
            "status": "retrying",
            "attempt": retry_state.attempt_number,
            "delay_ms": round(sleep_s * 1000, 3),
            "error_type": type(error).__name__,
        },
    )


def _coerce_options(options: RetryOptions | Mapping[str, Any] | None) -> RetryOptions:
    if options is None:
        return RetryOptions()
    if isinstance(options, RetryOptions):
        _validate_attempts(options.attempts)
        return options
    return RetryOptions(**options)


async def retry(
    target: Target,
    options: RetryOptions | Mapping[str, Any] | None = None,
    request_options: RequestOptions | None = None,
) -> Any:  # noqa: ANN401
    """Resolve ``target``, retrying failures with backoff.

    Parameters
    ----------
    target : Target
        Thunk (sync or async), URL fetched with
        :func:`~fetchkit.http.client.fetch_resource`, awaitable, or literal.
    options : RetryOptions | Mapping[str, Any] | None, optional
        Retry configuration, or a mapping of :class:`RetryOptions` fields.
    request_options : RequestOptions | None, optional
        Request options used when ``target`` is a URL.

    Returns
    -------
    Any
        Value of the first successful attempt.

    Raises
    ------
    ConfigurationError
        If ``attempts`` is invalid; raised before any attempt.
    BaseException
        The signal's reason once cancellation is observed, otherwise the
        last attempt's own error.

    Notes
    -----
    The reason is raised as-is, chained from the failed attempt's error.
    That sets ``__cause__`` on the caller-owned reason object, so a signal
    reused across calls carries the cause of the latest call only.
    """
    opts = _coerce_options(options)
    signal = opts.signal

    if inspect.isawaitable(target) and not callable(target):
        # awaiting a settled future again yields the same outcome
        target = asyncio.ensure_future(target)

    attempts_made = 0

    async def _attempt() -> Any:  # noqa: ANN401
        nonlocal attempts_made
        attempts_made += 1
        try:
            return await resolve_target(target, request_options)
        except Exception as exc:
            if signal is not None and signal.cancelled and signal.reason is not None:
                if exc is signal.reason:
                    raise
                raise signal.reason from exc
            raise

    async def _sleep(seconds: float) -> None:
        await wait(seconds * 1000, signal)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(opts.attempts),
        wait=_OptionsWait(opts),
        retry=_RetryDecision(opts),
        sleep=_sleep,
        before_sleep=_log_retry,
        reraise=True,
    )
    try:
        return await retrying(_attempt)
    except Exception as exc:
        logger.error(
            "Retry gave up",
            extra={
                "operation": "retry",
                "status": "error",
                "attempts": attempts_made,
                "error_type": type(exc).__name__,
            },
        )
        raise
