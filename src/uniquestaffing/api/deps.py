from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import UTC, datetime

from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from uniquestaffing.core.auth import AuthProvider, get_auth_provider
from uniquestaffing.db.session import get_db_session
from uniquestaffing.types import AuthSession, AuthUser

logger = logging.getLogger(__name__)

AUTH_SESSION_KEY = "auth"
DEMO_FLAG_KEY = "demo_logged_in"


class LoginRequired(Exception):
    """Raised by page routes when the visitor has no admin session."""


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_auth() -> AuthProvider:
    return get_auth_provider()


def store_auth_session(request: Request, session: AuthSession, *, is_demo: bool) -> None:
    request.session[AUTH_SESSION_KEY] = session.model_dump()
    if is_demo:
        request.session[DEMO_FLAG_KEY] = True


def clear_auth_session(request: Request) -> None:
    request.session.pop(AUTH_SESSION_KEY, None)
    request.session.pop(DEMO_FLAG_KEY, None)


def load_auth_session(request: Request) -> AuthSession | None:
    raw = request.session.get(AUTH_SESSION_KEY)
    if not raw:
        return None
    try:
        session = AuthSession.model_validate(raw)
    except ValidationError:
        logger.warning("Discarding malformed auth session")
        clear_auth_session(request)
        return None
    if session.is_expired(datetime.now(UTC)):
        clear_auth_session(request)
        return None
    return session


def current_admin(request: Request, auth: AuthProvider = Depends(get_auth)) -> AuthUser | None:
    session = load_auth_session(request)
    if session is None:
        return None
    if auth.is_demo and not request.session.get(DEMO_FLAG_KEY):
        clear_auth_session(request)
        return None
    user = auth.get_user(session)
    if user is None:
        clear_auth_session(request)
    return user


def require_admin(user: AuthUser | None = Depends(current_admin)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_admin_page(user: AuthUser | None = Depends(current_admin)) -> AuthUser:
    if user is None:
        raise LoginRequired()
    return user
