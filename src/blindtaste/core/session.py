"""Signed participant session tokens.

Token format: ``base64url(payload_json) + "." + base64url(hmac_sha256(payload))``
where the payload binds ``{"participantId", "tastingId"}``. Padding is
stripped from both parts. Tokens that fail to decode or verify are treated as
"no session".
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from dataclasses import dataclass

from blindtaste.core.errors import ConfigurationError

SESSION_COOKIE = "wf_session"


@dataclass(frozen=True)
class SessionData:
    """Participant identity carried by the session cookie."""

    tasting_id: str
    participant_id: str


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def _signature(payload: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload.encode("ascii"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def sign_session(data: SessionData, secret: str) -> str:
    """Produce a signed session token.

    Args:
        data: Session identity to bind.
        secret: HMAC key from settings.

    Returns:
        Token string ``payload.signature``.

    Raises:
        ConfigurationError: If no session secret is configured.
    """
    if not secret:
        raise ConfigurationError("Session secret not configured")

    # Canonical JSON keeps tokens stable for identical sessions
    body = json.dumps(
        {"participantId": data.participant_id, "tastingId": data.tasting_id},
        sort_keys=True,
        separators=(",", ":"),
    )
    payload = _b64url_encode(body.encode("utf-8"))
    return f"{payload}.{_signature(payload, secret)}"


def verify_session(token: str | None, secret: str) -> SessionData | None:
    """Verify a session token and return its data.

    Returns None for missing, malformed, unsigned or tampered tokens and when
    no secret is configured.
    """
    if not token or not secret:
        return None

    payload, sep, signature = token.partition(".")
    if not sep or not payload or not signature:
        return None

    try:
        expected = _signature(payload, secret)
    except UnicodeEncodeError:
        return None
    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        return None

    try:
        data = json.loads(_b64url_decode(payload).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    if not isinstance(data, dict):
        return None

    tasting_id = data.get("tastingId")
    participant_id = data.get("participantId")
    if not isinstance(tasting_id, str) or not isinstance(participant_id, str):
        return None
    if not tasting_id or not participant_id:
        return None

    return SessionData(tasting_id=tasting_id, participant_id=participant_id)
