"""Tests for fetchkit.http.request normalization."""

from __future__ import annotations

import json

import pytest

from fetchkit.errors import ConfigurationError
from fetchkit.http.request import is_json_serializable_body, normalize
from fetchkit.http.types import MultipartForm, RequestOptions


class TestMethod:
    """Method defaulting and validation."""

    def test_defaults_to_get(self) -> None:
        request = normalize("https://example.com")
        assert request.method == "GET"
        assert request.url == "https://example.com"

    def test_method_is_upper_cased(self) -> None:
        request = normalize("https://example.com", RequestOptions(method="patch"))
        assert request.method == "PATCH"

    def test_unsupported_method_raises(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            normalize("https://example.com", RequestOptions(method="TRACE"))
        assert exc_info.value.context["field"] == "method"


class TestBody:
    """Body serialization precedence."""

    def test_no_body(self) -> None:
        request = normalize("https://example.com", RequestOptions(method="POST"))
        assert request.content is None
        assert "content-type" not in request.headers

    def test_mapping_serialized_to_compact_json(self) -> None:
        request = normalize(
            "https://example.com",
            RequestOptions(method="POST", body={"hello": "world", "n": [1, 2]}),
        )
        assert request.content == b'{"hello":"world","n":[1,2]}'
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"hello": "world", "n": [1, 2]}

    def test_sequence_serialized_to_json(self) -> None:
        request = normalize("https://example.com", RequestOptions(method="PUT", body=("a", "b")))
        assert request.content == b'["a","b"]'
        assert request.headers["content-type"] == "application/json"

    def test_non_ascii_kept_as_utf8(self) -> None:
        request = normalize("https://example.com", RequestOptions(method="POST", body={"v": "é"}))
        assert request.content == '{"v":"é"}'.encode()

    def test_caller_content_type_is_preserved(self) -> None:
        request = normalize(
            "https://example.com",
            RequestOptions(
                method="POST",
                headers={"content-type": "application/vnd.api+json"},
                body={"a": 1},
            ),
        )
        assert request.headers["Content-Type"] == "application/vnd.api+json"
        assert len(request.headers.get_list("content-type")) == 1

    def test_multipart_strips_content_type(self) -> None:
        form = MultipartForm(fields={"name": "report"}, files={"file": ("a.txt", b"abc")})
        request = normalize(
            "https://example.com/upload",
            RequestOptions(
                method="POST",
                headers={"Content-Type": "multipart/form-data", "X-Trace": "1"},
                body=form,
            ),
        )
        assert "content-type" not in request.headers
        assert request.headers["x-trace"] == "1"
        assert request.files == {"name": (None, "report"), "file": ("a.txt", b"abc")}
        assert request.content is None

    def test_multipart_fields_become_parts(self) -> None:
        form = MultipartForm(fields={"title": "report", "pages": 3})
        request = normalize("https://example.com/upload", RequestOptions(method="POST", body=form))
        assert request.files == {"title": (None, "report"), "pages": (None, "3")}

    @pytest.mark.parametrize("raw", ["plain text", b"\x00\x01", bytearray(b"xy")])
    def test_raw_bodies_pass_through(self, raw: object) -> None:
        request = normalize(
            "https://example.com",
            RequestOptions(method="POST", headers={"Content-Type": "text/plain"}, body=raw),
        )
        assert request.content is raw
        assert request.headers["content-type"] == "text/plain"

    def test_raw_body_gets_no_json_header(self) -> None:
        request = normalize("https://example.com", RequestOptions(method="POST", body="x"))
        assert "content-type" not in request.headers


class TestHelpers:
    """Small helpers and option handling."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [({}, True), ([], True), ((1,), True), ("s", False), (b"b", False), (3, False)],
    )
    def test_is_json_serializable_body(self, value: object, expected: bool) -> None:
        assert is_json_serializable_body(value) is expected

    def test_build_kwargs_omits_empty_fields(self) -> None:
        request = normalize("https://example.com", RequestOptions(params={"q": "x"}))
        kwargs = request.build_kwargs()
        assert set(kwargs) == {"method", "url", "headers", "params"}

    def test_with_overrides_rejects_unknown_keys(self) -> None:
        with pytest.raises(TypeError, match="Unexpected request option"):
            RequestOptions().with_overrides({"json_body": {}})

    def test_with_overrides_returns_copy(self) -> None:
        base = RequestOptions(headers={"a": "1"})
        updated = base.with_overrides({"method": "DELETE"})
        assert updated.method == "DELETE"
        assert updated.headers == {"a": "1"}
        assert base.method == "GET"
