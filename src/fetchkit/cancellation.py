"""Cooperative cancellation handle shared between callers and retry loops.

A :class:`CancellationSignal` is owned by the caller. fetchkit only observes
it: the retry loop polls :attr:`CancellationSignal.cancelled` after a failed
attempt and :func:`fetchkit.delay.wait` registers a one-shot listener to cut
an inter-attempt delay short.

Examples
--------
>>> signal = CancellationSignal()
>>> signal.cancelled
False
>>> signal.cancel()
>>> signal.cancelled, type(signal.reason).__name__
(True, 'CancellationError')
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from fetchkit.errors import CancellationError
from fetchkit.logging import get_logger

__all__ = ["CancellationListener", "CancellationSignal"]

logger = get_logger(__name__)

CancellationListener = Callable[[BaseException], None]


class CancellationSignal:
    """Thread-safe, one-shot cancellation flag carrying a reason.

    Listeners fire at most once, synchronously, on the thread calling
    :meth:`cancel`. Registering a listener on an already cancelled signal
    is a no-op; check :attr:`cancelled` first.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reason: BaseException | None = None
        self._cancelled = False
        self._listeners: list[CancellationListener] = []

    @property
    def cancelled(self) -> bool:
        """Whether :meth:`cancel` has been called."""
        return self._cancelled

    @property
    def reason(self) -> BaseException | None:
        """Exception recorded by :meth:`cancel`, or None while active."""
        return self._reason

    @property
    def listener_count(self) -> int:
        """Number of listeners still registered."""
        with self._lock:
            return len(self._listeners)

    def cancel(self, reason: BaseException | None = None) -> None:
        """Cancel the signal and notify listeners.

        Subsequent calls are ignored; the first reason wins.

        Parameters
        ----------
        reason : BaseException | None, optional
            Exception to surface to observers. Defaults to a fresh
            :class:`~fetchkit.errors.CancellationError`.

        Raises
        ------
        TypeError
            If ``reason`` is not an exception instance.
        """
        if reason is not None and not isinstance(reason, BaseException):
            msg = f"cancellation reason must be an exception, got {type(reason).__name__}"
            raise TypeError(msg)
        with self._lock:
            if self._cancelled:
                return
            self._reason = reason if reason is not None else CancellationError()
            self._cancelled = True
            listeners, self._listeners = self._listeners, []
        logger.debug(
            "Cancellation requested",
            extra={
                "operation": "cancel",
                "reason_type": type(self._reason).__name__,
                "listeners": len(listeners),
            },
        )
        for listener in listeners:
            listener(self._reason)

    def raise_if_cancelled(self) -> None:
        """Raise :attr:`reason` if the signal has been cancelled."""
        if self._cancelled and self._reason is not None:
            raise self._reason

    def add_listener(self, listener: CancellationListener) -> None:
        """Register a one-shot ``listener(reason)`` fired on cancellation."""
        with self._lock:
            if not self._cancelled:
                self._listeners.append(listener)

    def remove_listener(self, listener: CancellationListener) -> None:
        """Unregister ``listener``; unknown listeners are ignored."""
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
