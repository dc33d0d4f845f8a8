"""Async HTTP helpers built on ``httpx``.

:func:`fetch_resource` normalizes the request, sends it and classifies the
response. The verb helpers fix the method (and body) and delegate to it.

Examples
--------
>>> import asyncio
>>> from fetchkit.http import get
>>> asyncio.run(get("https://example.com/users/1"))  # doctest: +SKIP
{'id': 1}
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from fetchkit.http.request import normalize
from fetchkit.http.response import classify
from fetchkit.http.types import RequestOptions
from fetchkit.logging import get_logger
from fetchkit.settings import get_settings

__all__ = ["delete", "fetch_resource", "get", "patch", "post", "put"]

logger = get_logger(__name__)


@asynccontextmanager
async def _client_scope(options: RequestOptions) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a per-call client closed on exit.

    Parameters
    ----------
    options : RequestOptions
        Options carrying an optional ``client`` or ``transport``.

    Yields
    ------
    httpx.AsyncClient
        Client used for the request.
    """
    if options.client is not None:
        yield options.client
        return
    settings = get_settings().http
    async with httpx.AsyncClient(
        timeout=settings.timeout_s,
        follow_redirects=settings.follow_redirects,
        transport=options.transport,
    ) as client:
        yield client


async def fetch_resource(url: str | httpx.URL, options: RequestOptions | None = None) -> Any:  # noqa: ANN401
    """Perform an HTTP request and decode its response.

    Parameters
    ----------
    url : str | httpx.URL
        Remote resource location.
    options : RequestOptions | None, optional
        Method, headers, body and transport overrides. Defaults to GET.

    Returns
    -------
    Any
        Parsed JSON, decoded text, or ``None`` for empty responses.

    Raises
    ------
    HttpError
        For non-2xx responses.
    DecodeError
        For malformed JSON success bodies.
    ConfigurationError
        For unsupported methods.

    Notes
    -----
    Transport failures (``httpx.ConnectError``, ``httpx.ReadTimeout``, ...)
    propagate unchanged.
    """
    opts = options or RequestOptions()
    request = normalize(url, opts)
    started = time.monotonic()
    logger.debug(
        "Sending request",
        extra={"operation": "fetch", "status": "started", "method": request.method, "url": request.url},
    )
    async with _client_scope(opts) as client:
        http_request = client.build_request(
            **request.build_kwargs(),
            **({"timeout": opts.timeout_s} if opts.timeout_s is not None else {}),
        )
        send_kwargs: dict[str, Any] = {}
        if opts.follow_redirects is not None:
            send_kwargs["follow_redirects"] = opts.follow_redirects
        response = await client.send(http_request, **send_kwargs)
    logger.debug(
        "Received response",
        extra={
            "operation": "fetch",
            "method": request.method,
            "url": request.url,
            "status_code": response.status_code,
            "duration_ms": round((time.monotonic() - started) * 1000, 3),
        },
    )
    return classify(response, request.method)


async def get(url: str | httpx.URL, options: RequestOptions | None = None) -> Any:  # noqa: ANN401
    """Issue a GET request and decode the response."""
    return await fetch_resource(url, _with_method(options, "GET"))


async def post(url: str | httpx.URL, body: object, options: RequestOptions | None = None) -> Any:  # noqa: ANN401
    """Issue a POST request with ``body`` serialized per :func:`~fetchkit.http.request.normalize`."""
    return await fetch_resource(url, _with_method(options, "POST", body))


async def put(url: str | httpx.URL, body: object, options: RequestOptions | None = None) -> Any:  # noqa: ANN401
    """Issue a PUT request with ``body``."""
    return await fetch_resource(url, _with_method(options, "PUT", body))


async def patch(url: str | httpx.URL, body: object, options: RequestOptions | None = None) -> Any:  # noqa: ANN401
    """Issue a PATCH request with ``body``."""
    return await fetch_resource(url, _with_method(options, "PATCH", body))


async def delete(url: str | httpx.URL, options: RequestOptions | None = None) -> Any:  # noqa: ANN401
    """Issue a DELETE request."""
    return await fetch_resource(url, _with_method(options, "DELETE"))


def _with_method(options: RequestOptions | None, method: str, body: object = None) -> RequestOptions:
    overrides: dict[str, object] = {"method": method, "body": body}
    return (options or RequestOptions()).with_overrides(overrides)
