"""Async HTTP helpers: request normalization, response classification and verbs.

This package wraps ``httpx`` so that request bodies are serialized the same
way everywhere and responses decode to plain Python values.
"""

from __future__ import annotations

from fetchkit.http.client import delete, fetch_resource, get, patch, post, put
from fetchkit.http.request import normalize
from fetchkit.http.response import classify, extract_error_message
from fetchkit.http.types import (
    HTTP_METHODS,
    HttpMethod,
    MultipartForm,
    RequestOptions,
    TransportRequest,
)

__all__ = [
    "HTTP_METHODS",
    "HttpMethod",
    "MultipartForm",
    "RequestOptions",
    "TransportRequest",
    "classify",
    "delete",
    "extract_error_message",
    "fetch_resource",
    "get",
    "normalize",
    "patch",
    "post",
    "put",
]
