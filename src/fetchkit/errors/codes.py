"""Error code registry and type URIs for Problem Details.

Codes are stable kebab-case identifiers; each maps to a type URI under
:data:`BASE_TYPE_URI` used in RFC 9457 Problem Details payloads.

Examples
--------
>>> from fetchkit.errors.codes import ErrorCode, get_type_uri
>>> get_type_uri(ErrorCode.HTTP_ERROR)
'https://fetchkit.dev/problems/http-error'
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__ = [
    "BASE_TYPE_URI",
    "ErrorCode",
    "get_type_uri",
]

BASE_TYPE_URI: Final[str] = "https://fetchkit.dev/problems"


class ErrorCode(StrEnum):
    """Stable error codes for fetchkit exceptions.

    Attributes
    ----------
    HTTP_ERROR
        Remote server answered with a non-success status.
    DECODE_ERROR
        A response body declared as JSON could not be parsed.
    CANCELLED
        The operation was cancelled through a cancellation signal.
    CONFIGURATION_ERROR
        Invalid options were supplied by the caller.
    POLICY_ERROR
        A retry policy document is invalid.
    RUNTIME_ERROR
        Unclassified failure.
    """

    # Transport & response
    HTTP_ERROR = "http-error"
    DECODE_ERROR = "decode-error"

    # Control flow
    CANCELLED = "cancelled"

    # Configuration
    CONFIGURATION_ERROR = "configuration-error"
    POLICY_ERROR = "policy-error"

    RUNTIME_ERROR = "runtime-error"


def get_type_uri(code: ErrorCode) -> str:
    """Return the Problem Details type URI for ``code``.

    Parameters
    ----------
    code : ErrorCode
        Error code to resolve.

    Returns
    -------
    str
        Absolute type URI.
    """
    return f"{BASE_TYPE_URI}/{code.value}"
