"""Tests for API secret authentication."""

import hashlib
import re

import pytest

from conftest import SECRET_SHA1
from nightscout_sync.core.auth import (
    API_SECRET_HEADER,
    api_secret_header,
    auth_headers,
    effective_secret,
)

HEX40 = re.compile(r"^[0-9a-f]{40}$")


class TestApiSecretHeader:
    """Tests for the SHA-1 credential derivation."""

    def test_known_digest(self):
        """SHA-1 of "abc" matches the published test vector."""
        assert api_secret_header("abc") == SECRET_SHA1

    @pytest.mark.parametrize(
        "secret", ["abc", "a much longer api secret 123", "ünïcödé-sëcret", "x"]
    )
    def test_digest_is_40_lowercase_hex(self, secret):
        digest = api_secret_header(secret)
        assert digest is not None
        assert HEX40.match(digest)

    def test_digest_is_stable(self):
        assert api_secret_header("my-secret") == api_secret_header("my-secret")

    def test_digest_uses_utf8_bytes(self):
        secret = "grüße"
        expected = hashlib.sha1(secret.encode("utf-8")).hexdigest()
        assert api_secret_header(secret) == expected

    @pytest.mark.parametrize("secret", [None, "", " ", "\t\n  "])
    def test_blank_secret_has_no_credential(self, secret):
        assert api_secret_header(secret) is None

    def test_surrounding_whitespace_is_hashed(self):
        digest = api_secret_header("  abc\n")
        assert digest == hashlib.sha1(b"  abc\n").hexdigest()
        assert digest != SECRET_SHA1


class TestAuthHeaders:
    def test_authenticated_headers(self):
        assert auth_headers("abc") == {API_SECRET_HEADER: SECRET_SHA1}

    def test_header_name(self):
        assert API_SECRET_HEADER == "api-secret"

    def test_unauthenticated_headers_are_empty(self):
        assert auth_headers("   ") == {}
        assert auth_headers(None) == {}


def test_effective_secret():
    assert effective_secret(" s3cret ") == " s3cret "
    assert effective_secret("") is None
    assert effective_secret(" \t") is None
    assert effective_secret(None) is None
