"""Exception hierarchy and Problem Details support.

Examples
--------
>>> from fetchkit.errors import FetchKitError, ErrorCode
>>> try:
...     raise FetchKitError("Operation failed", code=ErrorCode.RUNTIME_ERROR)
... except FetchKitError as e:
...     details = e.to_problem_details(instance="/jobs/1")
...     assert details["type"] == "https://fetchkit.dev/problems/runtime-error"
"""

from __future__ import annotations

from fetchkit.errors.codes import BASE_TYPE_URI, ErrorCode, get_type_uri
from fetchkit.errors.exceptions import (
    CancellationError,
    ConfigurationError,
    DecodeError,
    FetchKitError,
    HttpError,
    PolicyError,
    SettingsError,
)

__all__ = [
    "BASE_TYPE_URI",
    "CancellationError",
    "ConfigurationError",
    "DecodeError",
    "ErrorCode",
    "FetchKitError",
    "HttpError",
    "PolicyError",
    "SettingsError",
    "get_type_uri",
]
