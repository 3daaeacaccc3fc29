"""Request dependencies: settings, admin auth and participant sessions."""

from __future__ import annotations

from fastapi import Depends, Request, Response

from blindtaste.core.config import Settings
from blindtaste.core.errors import ConfigurationError, UnauthorizedError
from blindtaste.core.security import check_admin_secret, extract_admin_secret
from blindtaste.core.session import SESSION_COOKIE, SessionData, sign_session, verify_session


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def require_admin(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Reject requests without the admin secret.

    Raises:
        ConfigurationError: If the server has no admin secret.
        UnauthorizedError: If the presented secret is missing or wrong.
    """
    check_admin_secret(extract_admin_secret(request.headers), settings.admin_secret)


def require_session_secret(settings: Settings = Depends(get_settings)) -> None:
    """Refuse to issue sessions when they could not be signed."""
    if not settings.session_secret:
        raise ConfigurationError("Session secret not configured")


def get_session_data(
    request: Request, settings: Settings = Depends(get_settings)
) -> SessionData | None:
    """Participant session from the cookie, or None."""
    return verify_session(request.cookies.get(SESSION_COOKIE), settings.session_secret)


def require_session(
    session_data: SessionData | None = Depends(get_session_data),
) -> SessionData:
    if session_data is None:
        raise UnauthorizedError("Not logged in")
    return session_data


def set_session_cookie(response: Response, data: SessionData, settings: Settings) -> None:
    """Sign ``data`` and attach it as the session cookie."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=sign_session(data, settings.session_secret),
        max_age=settings.session_max_age_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
