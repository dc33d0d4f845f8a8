"""Response classification and decoding.

:func:`classify` decides whether a completed ``httpx.Response`` is a failure
(:class:`~fetchkit.errors.HttpError`), carries no content (``None``), is
JSON (parsed value) or text (``str``).
"""

from __future__ import annotations

import json
from typing import Any, Final

import httpx

from fetchkit.errors import DecodeError, HttpError
from fetchkit.logging import get_logger

__all__ = ["NO_CONTENT_STATUSES", "classify", "extract_error_message", "has_no_content"]

logger = get_logger(__name__)

NO_CONTENT_STATUSES: Final[frozenset[int]] = frozenset({204, 205, 304})


def extract_error_message(value: object) -> str | None:
    """Pull a human-readable message out of a decoded error body.

    Parameters
    ----------
    value : object
        Decoded JSON body.

    Returns
    -------
    str | None
        The body itself when it is a non-blank string, the trimmed
        ``message`` field of an object, or None.
    """
    if isinstance(value, str) and value.strip():
        return value
    if isinstance(value, dict) and isinstance(value.get("message"), str):
        return value["message"].strip() or None
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        message = extract_error_message(response.json())
    except ValueError:
        message = None
    return message or f"HTTP error! Status: {response.status_code}"


def _request_url(response: httpx.Response) -> str | None:
    try:
        return str(response.request.url)
    except RuntimeError:
        return None


def has_no_content(response: httpx.Response, method: str) -> bool:
    """Return True when the response is defined to carry no body.

    Parameters
    ----------
    response : httpx.Response
        Completed response.
    method : str
        Method of the request that produced ``response``.

    Returns
    -------
    bool
        True for HEAD requests, 204/205/304 statuses, or ``Content-Length: 0``.
    """
    if method.upper() == "HEAD" or response.status_code in NO_CONTENT_STATUSES:
        return True
    content_length = response.headers.get("content-length")
    return content_length is not None and content_length.strip() == "0"


def classify(response: httpx.Response, method: str) -> Any:  # noqa: ANN401
    """Decode ``response`` or raise for failure statuses.

    Parameters
    ----------
    response : httpx.Response
        Completed response whose body has been read.
    method : str
        Method of the originating request.

    Returns
    -------
    Any
        ``None`` for empty responses, the parsed JSON value for JSON
        content types, otherwise the decoded text.

    Raises
    ------
    HttpError
        If the status is outside the 2xx range.
    DecodeError
        If a JSON-typed success body is malformed.
    """
    if not response.is_success:
        message = _error_message(response)
        logger.warning(
            "HTTP request failed",
            extra={
                "operation": "fetch",
                "status": "error",
                "method": method,
                "url": _request_url(response),
                "status_code": response.status_code,
            },
        )
        raise HttpError(message, status=response.status_code, headers=dict(response.headers))

    if has_no_content(response, method):
        return None

    content_type = (response.headers.get("content-type") or "").lower()
    if "json" in content_type:
        text = response.text
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Malformed JSON response body: {exc.msg}"
            raise DecodeError(msg, cause=exc, context={"content_type": content_type}) from exc

    return response.text
