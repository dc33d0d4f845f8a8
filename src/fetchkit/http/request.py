"""Request normalization.

:func:`normalize` turns a URL and :class:`~fetchkit.http.types.RequestOptions`
into a :class:`~fetchkit.http.types.TransportRequest`. It performs no I/O.

Body handling, in order of precedence:

1. ``None`` means no body.
2. :class:`~fetchkit.http.types.MultipartForm` is always sent as
   ``multipart/form-data``: fields become file-less parts and any caller
   ``Content-Type`` is dropped so the transport can write its own boundary.
3. Mappings and non-string sequences are serialized to compact JSON; the
   JSON content type is set unless the caller already chose one.
4. Anything else is passed through as raw content.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from fetchkit.errors import ConfigurationError
from fetchkit.http.types import HTTP_METHODS, MultipartForm, RequestOptions, TransportRequest

__all__ = ["JSON_CONTENT_TYPE", "is_json_serializable_body", "normalize", "normalize_method"]

JSON_CONTENT_TYPE = "application/json"


def normalize_method(method: str | None) -> str:
    """Return the upper-cased method, defaulting to GET.

    Parameters
    ----------
    method : str | None
        Method supplied by the caller.

    Returns
    -------
    str
        One of GET, POST, PUT, PATCH, DELETE, HEAD.

    Raises
    ------
    ConfigurationError
        If the method is not supported.
    """
    resolved = (method or "GET").upper()
    if resolved not in HTTP_METHODS:
        raise ConfigurationError.with_details(
            field="method",
            issue=f"Unsupported HTTP method {method!r}",
            hint=f"Use one of {sorted(HTTP_METHODS)}",
        )
    return resolved


def is_json_serializable_body(value: object) -> bool:
    """Return True for bodies serialized to JSON (mappings, lists, tuples)."""
    if isinstance(value, Mapping):
        return True
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray, memoryview))


def _multipart_parts(form: MultipartForm) -> dict[str, Any]:
    # a None filename makes httpx emit a plain form-data part
    parts: dict[str, Any] = {
        name: (None, value if isinstance(value, (str, bytes)) else str(value))
        for name, value in form.fields.items()
    }
    parts.update(form.files)
    return parts


def normalize(url: str | httpx.URL, options: RequestOptions | None = None) -> TransportRequest:
    """Build the wire-level request for ``url``.

    Parameters
    ----------
    url : str | httpx.URL
        Target URL.
    options : RequestOptions | None, optional
        Request options. Defaults to a plain GET.

    Returns
    -------
    TransportRequest
        Normalized request description.

    Raises
    ------
    ConfigurationError
        If the method is not supported.
    TypeError
        If a structured body is not JSON-serializable.
    """
    opts = options or RequestOptions()
    method = normalize_method(opts.method)
    headers = httpx.Headers(opts.headers or {})
    body = opts.body

    if body is None:
        return TransportRequest(method=method, url=str(url), headers=headers, params=opts.params)

    if isinstance(body, MultipartForm):
        headers.pop("content-type", None)
        return TransportRequest(
            method=method,
            url=str(url),
            headers=headers,
            files=_multipart_parts(body),
            params=opts.params,
        )

    if is_json_serializable_body(body):
        if "content-type" not in headers:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        content: object = json.dumps(
            dict(body) if isinstance(body, Mapping) else list(body),  # type: ignore[call-overload]
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")
    else:
        content = body

    return TransportRequest(
        method=method,
        url=str(url),
        headers=headers,
        content=content,
        params=opts.params,
    )
