from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

import requests

from uniquestaffing.config import Settings, get_settings
from uniquestaffing.errors import AuthenticationFailed, BackendUnavailable
from uniquestaffing.types import AuthSession, AuthUser

logger = logging.getLogger(__name__)

DEMO_USER_ID = "demo-user-id"
DEMO_SESSION_TTL_SEC = 3600


class AuthProvider(Protocol):
    is_demo: bool

    def sign_in(self, email: str, password: str) -> AuthSession: ...

    def sign_out(self, session: AuthSession) -> None: ...

    def get_user(self, session: AuthSession) -> AuthUser | None: ...


class DemoAuthProvider:
    """Mocked admin session for running the site without a hosted backend."""

    is_demo = True

    def __init__(self, settings: Settings):
        self.email = settings.demo_admin_email
        self.password = settings.demo_admin_password

    @property
    def hint(self) -> str:
        return f"Use {self.email} / {self.password}"

    def sign_in(self, email: str, password: str) -> AuthSession:
        if email.strip().lower() != self.email.lower() or password != self.password:
            raise AuthenticationFailed(f"Invalid demo credentials. {self.hint}")

        now = int(datetime.now(UTC).timestamp())
        return AuthSession(
            access_token="demo-access-token",
            refresh_token="demo-refresh-token",
            expires_at=now + DEMO_SESSION_TTL_SEC,
            user=AuthUser(id=DEMO_USER_ID, email=self.email, provider="demo", name="Demo Admin"),
        )

    def sign_out(self, session: AuthSession) -> None:
        return None

    def get_user(self, session: AuthSession) -> AuthUser | None:
        if session.user.id != DEMO_USER_ID:
            return None
        return session.user


class HostedAuthProvider:
    """Password sign-in against the hosted auth service's REST endpoints."""

    is_demo = False

    def __init__(self, settings: Settings, http: requests.Session | None = None):
        self.base_url = f"{settings.backend_url}/auth/v1"
        self.anon_key = settings.backend_anon_key
        self.timeout = settings.backend_timeout_sec
        self.http = http or requests.Session()

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        headers["Authorization"] = f"Bearer {access_token or self.anon_key}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            return self.http.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("Auth backend request failed path=%s error=%s", path, exc)
            raise BackendUnavailable("authentication service is unavailable") from exc

    def sign_in(self, email: str, password: str) -> AuthSession:
        response = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email.strip(), "password": password},
            headers=self._headers(),
        )
        if response.status_code in {400, 401, 403, 422}:
            logger.info("Admin sign-in rejected status=%s", response.status_code)
            raise AuthenticationFailed("Invalid email or password. Please try again.")
        if response.status_code >= 300:
            logger.error("Auth backend returned status=%s on sign-in", response.status_code)
            raise BackendUnavailable("authentication service returned an error")

        payload = response.json()
        user = payload.get("user") or {}
        expires_at = payload.get("expires_at")
        if not expires_at:
            expires_at = int(datetime.now(UTC).timestamp()) + int(payload.get("expires_in", 3600))
        return AuthSession(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token", ""),
            token_type=payload.get("token_type", "bearer"),
            expires_at=int(expires_at),
            user=_user_from_payload(user),
        )

    def sign_out(self, session: AuthSession) -> None:
        try:
            self._request("POST", "/logout", headers=self._headers(session.access_token))
        except BackendUnavailable:
            logger.warning("Sign-out could not reach the auth backend; clearing local session only")

    def get_user(self, session: AuthSession) -> AuthUser | None:
        response = self._request("GET", "/user", headers=self._headers(session.access_token))
        if response.status_code != 200:
            return None
        return _user_from_payload(response.json())


def _user_from_payload(payload: dict[str, Any]) -> AuthUser:
    metadata = payload.get("user_metadata") or {}
    app_metadata = payload.get("app_metadata") or {}
    return AuthUser(
        id=str(payload.get("id", "")),
        email=payload.get("email", ""),
        provider=app_metadata.get("provider", "email"),
        name=metadata.get("name", ""),
    )


def get_auth_provider(settings: Settings | None = None) -> AuthProvider:
    settings = settings or get_settings()
    if settings.is_demo_mode:
        return DemoAuthProvider(settings)
    return HostedAuthProvider(settings)
