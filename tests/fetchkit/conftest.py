"""Shared pytest fixtures for fetchkit tests.

This module provides reusable fixtures for:
- Mock ``httpx`` transports recording outgoing requests
- Settings cache isolation between tests
- Deterministic jitter
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator

import httpx
import pytest

from fetchkit import backoff
from fetchkit.http.types import RequestOptions
from fetchkit.settings import get_settings

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """``httpx.MockTransport`` that keeps every request it served."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from ``FETCHKIT_*`` variables of the host environment."""
    for key in list(os.environ):
        if key.startswith("FETCHKIT_"):
            monkeypatch.delenv(key, raising=False)
    get_settings(reload=True)
    yield
    get_settings(reload=True)


@pytest.fixture
def fixed_jitter(monkeypatch: pytest.MonkeyPatch) -> Callable[[float], None]:
    """Return a setter pinning :func:`fetchkit.backoff.rand` to a constant."""

    def _set(value: float) -> None:
        monkeypatch.setattr(backoff, "rand", lambda: value)

    return _set


@pytest.fixture
def mock_http() -> Callable[[Handler], tuple[RecordingTransport, RequestOptions]]:
    """Return a factory building a recording transport and matching options."""

    def _factory(handler: Handler) -> tuple[RecordingTransport, RequestOptions]:
        transport = RecordingTransport(handler)
        return transport, RequestOptions(transport=transport)

    return _factory
