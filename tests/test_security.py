"""Tests for PIN hashing and admin secret checks."""

import hashlib

import pytest
from starlette.datastructures import Headers

from blindtaste.core.errors import ConfigurationError, UnauthorizedError
from blindtaste.core.security import (
    check_admin_secret,
    extract_admin_secret,
    hash_pin,
    is_valid_pin,
    verify_pin,
)


class TestPins:
    """Tasting PINs."""

    def test_valid_pins(self):
        assert is_valid_pin("0000")
        assert is_valid_pin("1234")

    def test_invalid_pins(self):
        for pin in ("", "123", "12345", "12a4", " 1234", "١٢٣٤"):
            assert not is_valid_pin(pin)

    def test_hash_is_salted_sha256(self):
        expected = hashlib.sha256(b"1234:salt").hexdigest()
        assert hash_pin("1234", "salt") == expected
        assert hash_pin("1234", "other") != expected

    def test_verify(self):
        stored = hash_pin("1234", "salt")
        assert verify_pin("1234", stored, "salt")
        assert not verify_pin("4321", stored, "salt")
        assert not verify_pin("1234", stored, "other")
        assert not verify_pin("1234", None, "salt")


class TestAdminSecret:
    """Admin authentication."""

    def test_header_preferred_over_bearer(self):
        headers = Headers({"X-Admin-Secret": "a", "Authorization": "Bearer b"})
        assert extract_admin_secret(headers) == "a"

    def test_bearer_token(self):
        assert extract_admin_secret(Headers({"Authorization": "bearer  b "})) == "b"

    def test_nothing_presented(self):
        assert extract_admin_secret(Headers({"Authorization": "Basic xyz"})) == ""

    def test_check_accepts_match(self):
        check_admin_secret("s3cret", "s3cret")

    def test_check_rejects_mismatch(self):
        with pytest.raises(UnauthorizedError):
            check_admin_secret("wrong", "s3cret")
        with pytest.raises(UnauthorizedError):
            check_admin_secret("", "s3cret")

    def test_check_requires_configured_secret(self):
        with pytest.raises(ConfigurationError):
            check_admin_secret("anything", "")
