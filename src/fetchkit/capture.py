"""Tuple-returning error capture.

:func:`capture_result` converts failures into data: it resolves to
``(value, None)`` on success and ``(None, error)`` on failure, and never
raises an :class:`Exception` itself.

Examples
--------
>>> import asyncio
>>> async def done() -> str:
...     return "done"
>>> asyncio.run(capture_result(done))
('done', None)
"""

from __future__ import annotations

from typing import Any, TypeAlias

from fetchkit.http.types import RequestOptions
from fetchkit.logging import get_logger
from fetchkit.targets import Target, resolve_target

__all__ = ["Result", "capture_result"]

logger = get_logger(__name__)

Result: TypeAlias = tuple[Any, None] | tuple[None, Exception]


async def capture_result(input: Target, request_options: RequestOptions | None = None) -> Result:  # noqa: A002
    """Resolve ``input`` and capture its outcome as a pair.

    Parameters
    ----------
    input : Target
        Literal, awaitable, thunk (sync or async) or URL.
    request_options : RequestOptions | None, optional
        Request options used when ``input`` is a URL.

    Returns
    -------
    Result
        ``(value, None)`` or ``(None, error)``.
    """
    try:
        data = await resolve_target(input, request_options)
    except Exception as exc:
        logger.debug(
            "Captured failure",
            extra={"operation": "capture", "status": "error", "error_type": type(exc).__name__},
        )
        return None, exc
    return data, None
