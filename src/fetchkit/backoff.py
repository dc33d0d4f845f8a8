"""Delay functions for the retry orchestrator.

A delay function maps the post-increment attempt counter (1 after the first
failure) to a wait in milliseconds. :data:`default_delay` grows
exponentially from 200 ms and applies a ±15 % jitter so that simultaneous
callers do not retry in lockstep.

Examples
--------
>>> delay = exponential_backoff(initial_ms=100, jitter=0.0)
>>> delay(1), delay(3)
(200, 800)
"""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar
from functools import lru_cache
from importlib import import_module
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from numpy.random import Generator

__all__ = [
    "DEFAULT_BASE",
    "DEFAULT_INITIAL_MS",
    "DEFAULT_JITTER",
    "DelayFunction",
    "default_delay",
    "exponential_backoff",
    "fixed_delay",
    "rand",
    "set_random_seed",
]

DelayFunction = Callable[[int], float]

DEFAULT_INITIAL_MS = 200.0
DEFAULT_BASE = 2.0
DEFAULT_JITTER = 0.15

_RANDOM_SEED: ContextVar[int | None] = ContextVar("fetchkit_random_seed", default=None)


@lru_cache(maxsize=1)
def _default_rng_factory() -> Callable[[int | None], Generator]:
    """Return ``numpy.random.default_rng``, imported on first use.

    Returns
    -------
    Callable[[int | None], Generator]
        Factory creating a generator from an optional seed.
    """
    module = import_module("numpy.random")
    return cast("Callable[[int | None], Generator]", module.default_rng)


def set_random_seed(seed: int | None) -> None:
    """Make :func:`rand` deterministic in the current context (None resets)."""
    _RANDOM_SEED.set(seed)


def rand() -> float:
    """Return a jitter sample in ``[0.0, 1.0)``.

    Returns
    -------
    float
        Uniform sample. Not cryptographically secure.
    """
    seed = _RANDOM_SEED.get()
    factory = _default_rng_factory()
    rng = factory(seed)
    return float(rng.random())


def exponential_backoff(
    initial_ms: float = DEFAULT_INITIAL_MS,
    base: float = DEFAULT_BASE,
    jitter: float = DEFAULT_JITTER,
    max_ms: float | None = None,
) -> DelayFunction:
    """Build a jittered exponential delay function.

    The delay for attempt ``n`` is ``min(max_ms, initial_ms * base**n)``
    scaled by a factor drawn from ``[1 - jitter, 1 + jitter)`` and rounded
    to whole milliseconds.

    Parameters
    ----------
    initial_ms : float, optional
        Base delay in milliseconds. Defaults to 200.
    base : float, optional
        Growth factor per attempt. Defaults to 2.0.
    jitter : float, optional
        Jitter fraction between 0 and 1. Defaults to 0.15.
    max_ms : float | None, optional
        Cap applied before jitter. Defaults to no cap.

    Returns
    -------
    DelayFunction
        Function mapping the attempt counter to milliseconds.
    """

    def _delay(attempt: int) -> float:
        raw = initial_ms * (base**attempt)
        if max_ms is not None:
            raw = min(raw, max_ms)
        factor = 1 - jitter + rand() * (2 * jitter)
        return max(0, round(raw * factor))

    return _delay


def fixed_delay(ms: float) -> DelayFunction:
    """Build a delay function returning ``ms`` (clamped to zero) for every attempt."""
    clamped = max(ms, 0)
    return lambda _attempt: clamped


default_delay: DelayFunction = exponential_backoff()
