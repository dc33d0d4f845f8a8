"""Value types shared by the request normalizer, classifier and client.

This module defines :class:`RequestOptions` (caller input),
:class:`MultipartForm` (multipart payloads encoded by the transport) and
:class:`TransportRequest` (the normalized, wire-level request description).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, Final, Literal

import httpx

__all__ = [
    "HTTP_METHODS",
    "HttpMethod",
    "MultipartForm",
    "RequestOptions",
    "TransportRequest",
]

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]

HTTP_METHODS: Final[frozenset[str]] = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"})


@dataclass(frozen=True)
class MultipartForm:
    """Multipart form payload whose boundary is computed by the transport.

    Attributes
    ----------
    fields : Mapping[str, Any]
        Plain form fields.
    files : Mapping[str, Any]
        File entries in any shape ``httpx`` accepts for ``files=``
        (file object, bytes, or ``(filename, content, content_type)``).

    Notes
    -----
    Always encoded as ``multipart/form-data``, even without files: fields
    are sent as parts without a filename.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)
    files: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RequestOptions:
    """Caller-facing request options.

    Attributes
    ----------
    method : str
        HTTP method, case-insensitive. Defaults to ``"GET"``.
    headers : Mapping[str, str] | None
        Request headers, merged case-insensitively.
    body : object
        Raw body (``str``, ``bytes``, iterables), a structured value
        serialized to JSON (mapping, list, tuple), or a :class:`MultipartForm`.
    params : Mapping[str, Any] | None
        Query parameters passed to the transport.
    timeout_s : float | None
        Per-request timeout; None uses the configured default.
    follow_redirects : bool | None
        Redirect handling; None uses the configured default.
    client : httpx.AsyncClient | None
        Caller-owned client. It is used as-is and never closed.
    transport : httpx.AsyncBaseTransport | None
        Transport for the per-call client when ``client`` is not given.
    """

    _ALLOWED_KEYS = frozenset(
        {
            "method",
            "headers",
            "body",
            "params",
            "timeout_s",
            "follow_redirects",
            "client",
            "transport",
        }
    )

    method: str = "GET"
    headers: Mapping[str, str] | None = None
    body: object = None
    params: Mapping[str, Any] | None = None
    timeout_s: float | None = None
    follow_redirects: bool | None = None
    client: httpx.AsyncClient | None = None
    transport: httpx.AsyncBaseTransport | None = None

    def with_overrides(self, overrides: Mapping[str, object]) -> RequestOptions:
        """Return a new options object with overrides applied.

        Parameters
        ----------
        overrides : Mapping[str, object]
            Option overrides keyed by field name.

        Returns
        -------
        RequestOptions
            Updated copy, or ``self`` when ``overrides`` is empty.

        Raises
        ------
        TypeError
            If any key is not a known option.
        """
        if not overrides:
            return self
        unexpected = set(overrides) - self._ALLOWED_KEYS
        if unexpected:
            msg = f"Unexpected request option(s): {sorted(unexpected)}"
            raise TypeError(msg)
        return replace(self, **{k: overrides[k] for k in overrides})  # type: ignore[arg-type]


@dataclass(frozen=True)
class TransportRequest:
    """Normalized request ready to be handed to ``httpx``.

    Exactly one of ``content`` or ``files`` is populated when the
    request has a body.
    """

    method: str
    url: str
    headers: httpx.Headers
    content: Any = None
    files: Mapping[str, Any] | None = None
    params: Mapping[str, Any] | None = None

    def build_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments for ``httpx.AsyncClient.build_request``.

        Returns
        -------
        dict[str, Any]
            Non-empty request fields keyed by ``httpx`` parameter name.
        """
        kwargs: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None:
                kwargs[item.name] = value
        return kwargs
