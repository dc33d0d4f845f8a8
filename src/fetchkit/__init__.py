"""Async request and retry helpers over ``httpx``.

fetchkit normalizes HTTP request/response handling and provides a generic
retry-with-backoff loop with cooperative cancellation, usable over any
async operation or directly over URLs.

Examples
--------
>>> from fetchkit import CancellationSignal, RetryOptions, retry
>>> signal = CancellationSignal()
>>> options = RetryOptions(attempts=5, signal=signal)
"""

from __future__ import annotations

from fetchkit.cancellation import CancellationSignal
from fetchkit.capture import capture_result
from fetchkit.delay import wait
from fetchkit.errors import (
    CancellationError,
    ConfigurationError,
    DecodeError,
    FetchKitError,
    HttpError,
    PolicyError,
    SettingsError,
)
from fetchkit.http import (
    MultipartForm,
    RequestOptions,
    delete,
    fetch_resource,
    get,
    patch,
    post,
    put,
)
from fetchkit.retry import RetryOptions, retry

__all__ = [
    "CancellationError",
    "CancellationSignal",
    "ConfigurationError",
    "DecodeError",
    "FetchKitError",
    "HttpError",
    "MultipartForm",
    "PolicyError",
    "RequestOptions",
    "RetryOptions",
    "SettingsError",
    "capture_result",
    "delete",
    "fetch_resource",
    "get",
    "patch",
    "post",
    "put",
    "retry",
    "wait",
]

__version__ = "0.1.0"
