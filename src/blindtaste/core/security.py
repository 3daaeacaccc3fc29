"""PIN hashing and admin secret checks.

- hash_pin: salted sha256 of a tasting PIN
- verify_pin: constant-time comparison against a stored hash
- extract_admin_secret: read the secret from request headers
- check_admin_secret: constant-time comparison against the configured secret
"""

from __future__ import annotations

import hashlib
import hmac
import re
from typing import Mapping

from blindtaste.core.errors import ConfigurationError, UnauthorizedError

PIN_PATTERN = re.compile(r"[0-9]{4}")

ADMIN_SECRET_HEADER = "x-admin-secret"


def is_valid_pin(pin: str) -> bool:
    """Return True for exactly four ASCII digits."""
    return bool(PIN_PATTERN.fullmatch(pin))


def hash_pin(pin: str, salt: str) -> str:
    """Hash a tasting PIN with the server-side salt.

    Args:
        pin: Plain PIN as entered.
        salt: Server-side salt from settings.

    Returns:
        64-character hex string (SHA256 of ``"{pin}:{salt}"``).
    """
    return hashlib.sha256(f"{pin}:{salt}".encode("utf-8")).hexdigest()


def verify_pin(pin: str, stored_hash: str | None, salt: str) -> bool:
    """Check a plain PIN against a stored hash."""
    if not pin or not stored_hash:
        return False
    return hmac.compare_digest(hash_pin(pin, salt), stored_hash)


def extract_admin_secret(headers: Mapping[str, str]) -> str:
    """Get the admin secret a caller presented.

    ``x-admin-secret`` takes precedence over ``Authorization: Bearer``.
    Header lookup is case-insensitive when ``headers`` is a Starlette
    ``Headers`` object.
    """
    provided = (headers.get(ADMIN_SECRET_HEADER) or "").strip()
    if provided:
        return provided

    auth = headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return ""


def check_admin_secret(provided: str, expected: str) -> None:
    """Verify an admin secret.

    Raises:
        ConfigurationError: If no admin secret is configured.
        UnauthorizedError: If the secret is missing or does not match.
    """
    if not expected:
        raise ConfigurationError("Admin secret not configured")
    if not provided or not hmac.compare_digest(
        provided.encode("utf-8"), expected.encode("utf-8")
    ):
        raise UnauthorizedError("Unauthorized")
