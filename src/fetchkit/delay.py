"""Cancellable delay used between retry attempts.

:func:`wait` races an event-loop timer against a
:class:`~fetchkit.cancellation.CancellationSignal`. Whichever fires first
settles the wait; the timer handle and the signal listener are released on
every exit path, including cancellation of the awaiting task.
"""

from __future__ import annotations

import asyncio

from fetchkit.cancellation import CancellationSignal

__all__ = ["wait"]


async def wait(duration_ms: float, signal: CancellationSignal | None = None) -> None:
    """Suspend for ``duration_ms`` milliseconds unless ``signal`` fires first.

    Parameters
    ----------
    duration_ms : float
        Delay in milliseconds. Negative values are treated as zero.
    signal : CancellationSignal | None, optional
        Signal that aborts the delay. Defaults to None.

    Raises
    ------
    BaseException
        The signal's reason, when it is already cancelled on entry or is
        cancelled before the timer elapses.
    """
    if signal is not None and signal.cancelled:
        signal.raise_if_cancelled()

    loop = asyncio.get_running_loop()
    done: asyncio.Future[None] = loop.create_future()

    def _elapse() -> None:
        if not done.done():
            done.set_result(None)

    def _abort(reason: BaseException) -> None:
        if not done.done():
            done.set_exception(reason)

    def _on_cancel(reason: BaseException) -> None:
        # cancel() may run on another thread
        loop.call_soon_threadsafe(_abort, reason)

    timer = loop.call_later(max(duration_ms, 0) / 1000, _elapse)
    if signal is not None:
        signal.add_listener(_on_cancel)
        # cancelled between the entry check and registration
        if signal.cancelled and signal.reason is not None:
            _abort(signal.reason)
    try:
        await done
    finally:
        timer.cancel()
        if signal is not None:
            signal.remove_listener(_on_cancel)
