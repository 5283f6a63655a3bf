from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from uniquestaffing import __version__
from uniquestaffing.api.deps import LoginRequired, clear_auth_session
from uniquestaffing.api.openapi import router as docs_router
from uniquestaffing.api.routes import router as api_router
from uniquestaffing.config import get_settings
from uniquestaffing.db.init import init_database
from uniquestaffing.errors import BackendUnavailable
from uniquestaffing.web.routes import flash
from uniquestaffing.web.routes import router as web_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    static_dir = Path(__file__).resolve().parents[1] / "web" / "static"

    app = FastAPI(
        title=f"{settings.app_name} API",
        version=__version__,
        description="Applicant intake, admin review and email verification for the staffing site.",
        docs_url=None,
        redoc_url=None,
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie="usp_session",
        max_age=settings.session_ttl_min * 60,
        same_site="lax",
        https_only=settings.app_env == "production",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.exception_handler(LoginRequired)
    def _login_required(request: Request, exc: LoginRequired) -> RedirectResponse:
        return RedirectResponse(url="/admin/login", status_code=303)

    @app.exception_handler(BackendUnavailable)
    def _backend_unavailable(request: Request, exc: BackendUnavailable) -> Response:
        logger.error("Backend unavailable path=%s error=%s", request.url.path, exc)
        if request.url.path.startswith("/api/"):
            return JSONResponse({"detail": str(exc)}, status_code=502)
        # Dropping the session keeps /admin/login from calling the backend again.
        clear_auth_session(request)
        flash(request, "An error occurred. Please try again.", "error")
        return RedirectResponse(url="/admin/login", status_code=303)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "demo_mode": settings.is_demo_mode})

    app.include_router(api_router)
    app.include_router(docs_router)
    app.include_router(web_router)

    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    return app
