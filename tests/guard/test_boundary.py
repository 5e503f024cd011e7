"""Tests for auth, CORS and body size checks."""

import io

import pytest

from arcgent_app.errors import BodyTooLargeError
from arcgent_app.guard.auth import extract_bearer_token, is_authorized
from arcgent_app.guard.body import read_limited_body
from arcgent_app.guard.cors import cors_headers

ALLOWED = frozenset({"https://prompt-arcgent.vercel.app", "http://localhost:5173"})


class TestAuthorization:
    """Test suite for shared-secret authorization."""

    def test_no_secret_allows_everything(self) -> None:
        assert is_authorized({}, None)
        assert is_authorized({}, "")

    def test_proxy_auth_header(self) -> None:
        assert is_authorized({"X-Proxy-Auth": " s3cret "}, "s3cret")

    def test_bearer_token(self) -> None:
        assert is_authorized({"Authorization": "Bearer s3cret"}, "s3cret")
        assert is_authorized({"authorization": "bearer   s3cret"}, "s3cret")

    def test_wrong_or_missing_token(self) -> None:
        assert not is_authorized({}, "s3cret")
        assert not is_authorized({"Authorization": "Bearer nope"}, "s3cret")
        assert not is_authorized({"Authorization": "Basic s3cret"}, "s3cret")
        assert not is_authorized({"X-Proxy-Auth": "nope"}, "s3cret")

    def test_extract_bearer_token(self) -> None:
        assert extract_bearer_token("Bearer abc ") == "abc"
        assert extract_bearer_token("Bearer ") is None
        assert extract_bearer_token(None) is None


class TestCorsHeaders:
    """Test suite for CORS reflection."""

    def test_allowed_origin_is_reflected(self) -> None:
        headers = cors_headers("http://localhost:5173", ALLOWED)
        assert headers == {
            "Access-Control-Allow-Origin": "http://localhost:5173",
            "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Proxy-Auth",
            "Access-Control-Max-Age": "86400",
            "Vary": "Origin",
        }

    def test_unknown_or_missing_origin_gets_nothing(self) -> None:
        assert cors_headers("https://evil.example", ALLOWED) == {}
        assert cors_headers(None, ALLOWED) == {}


class TestReadLimitedBody:
    """Test suite for bounded body reads."""

    def test_reads_body_under_limit(self) -> None:
        assert read_limited_body(io.BytesIO(b'{"a": 1}'), 8, max_bytes=100) == b'{"a": 1}'

    def test_body_exactly_at_limit(self) -> None:
        assert read_limited_body(io.BytesIO(b"x" * 10), None, max_bytes=10) == b"x" * 10

    def test_declared_length_over_limit(self) -> None:
        """Test that an oversized declared length is refused before reading."""
        stream = io.BytesIO(b"x")
        with pytest.raises(BodyTooLargeError) as exc_info:
            read_limited_body(stream, 5000, max_bytes=1000)

        assert exc_info.value.status_code == 413
        assert str(exc_info.value) == "Request body exceeds 1000 bytes limit."
        assert stream.tell() == 0

    def test_streamed_bytes_over_limit(self) -> None:
        """Test that an undeclared oversized body is cut off while streaming."""
        with pytest.raises(BodyTooLargeError):
            read_limited_body(io.BytesIO(b"x" * 50), None, max_bytes=20, chunk_size=8)

    def test_empty_body(self) -> None:
        assert read_limited_body(io.BytesIO(b""), 0, max_bytes=10) == b""
