"""Resolution of polymorphic request targets.

A target is one of:

* a callable thunk, invoked on every resolution (sync or async);
* a URL (``str`` or ``httpx.URL``), fetched through
  :func:`fetchkit.http.client.fetch_resource`;
* an awaitable, awaited;
* anything else, returned as a literal value.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias, TypeGuard

import httpx

from fetchkit.http import client as http_client
from fetchkit.http.types import RequestOptions

__all__ = ["Target", "is_http_target", "resolve_target"]

Target: TypeAlias = Callable[[], Any] | Awaitable[Any] | str | httpx.URL | object


def is_http_target(value: object) -> TypeGuard[str | httpx.URL]:
    """Return True when ``value`` should be fetched over HTTP."""
    return isinstance(value, (str, httpx.URL))


async def resolve_target(target: Target, request_options: RequestOptions | None = None) -> Any:  # noqa: ANN401
    """Produce the value of ``target`` once.

    Parameters
    ----------
    target : Target
        Thunk, URL, awaitable or literal.
    request_options : RequestOptions | None, optional
        Options used when ``target`` is a URL. Defaults to None.

    Returns
    -------
    Any
        Resolved value.
    """
    if callable(target):
        result = target()
        if inspect.isawaitable(result):
            return await result
        return result
    if is_http_target(target):
        return await http_client.fetch_resource(target, request_options)
    if inspect.isawaitable(target):
        return await target
    return target
