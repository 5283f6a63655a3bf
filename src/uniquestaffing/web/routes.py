from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from uniquestaffing.api.deps import (
    clear_auth_session,
    current_admin,
    get_auth,
    get_db,
    load_auth_session,
    require_admin_page,
    store_auth_session,
)
from uniquestaffing.config import get_settings
from uniquestaffing.core.applications import ApplicationService, ResumeUpload
from uniquestaffing.core.auth import AuthProvider
from uniquestaffing.core.dashboard import (
    SORT_KEYS,
    applicant_positions,
    applicant_stats,
    export_csv,
    export_filename,
    filter_applicants,
    resolve_resume_link,
    unique_positions,
)
from uniquestaffing.core.preferences import (
    CONSENT_COOKIE,
    LANGUAGE_COOKIE,
    PREFERENCE_COOKIE_MAX_AGE,
    TALENT_MODAL_COOKIE,
    THEME_COOKIE,
    build_consent,
    dismissal_stamp,
    extract_tracking,
    parse_consent,
    resolve_language,
    resolve_theme,
    serialize_consent,
    should_show_talent_modal,
    toggle_theme,
    translate,
    validate_language,
)
from uniquestaffing.core.storage import StorageClient
from uniquestaffing.db.repositories import Repository
from uniquestaffing.errors import (
    AuthenticationFailed,
    BackendUnavailable,
    DocumentRejected,
    DuplicateApplicant,
    NotFound,
    ValidationFailed,
)
from uniquestaffing.types import APPLICANT_STATUSES, LANGUAGES, AuthUser, TrackingParams

logger = logging.getLogger(__name__)

router = APIRouter(tags=["web"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
static_dir = Path(__file__).resolve().parent / "static"

TRACKING_SESSION_KEY = "utm"
FLASH_SESSION_KEY = "flash"

POSITIONS = [
    "Warehouse Associate",
    "Forklift Operator",
    "Customer Service Representative",
    "Call Center Agent",
    "Medical Receptionist",
    "Administrative Assistant",
    "Data Entry Clerk",
    "Hospitality Staff",
]


def flash(request: Request, message: str, level: str = "info") -> None:
    request.session.setdefault(FLASH_SESSION_KEY, []).append({"level": level, "message": message})


def _pop_flashes(request: Request) -> list[dict[str, str]]:
    return request.session.pop(FLASH_SESSION_KEY, [])


def _safe_next(target: str, default: str = "/") -> str:
    if target.startswith("/") and not target.startswith("//"):
        return target
    return default


def _capture_tracking(request: Request) -> None:
    tracking = extract_tracking(request.query_params)
    if tracking is not None:
        request.session[TRACKING_SESSION_KEY] = tracking.model_dump()


def _render(request: Request, template: str, context: dict[str, Any] | None = None, status_code: int = 200) -> HTMLResponse:
    settings = get_settings()
    language = resolve_language(request.cookies.get(LANGUAGE_COOKIE), request.headers.get("accept-language"))
    base = {
        "app_name": settings.app_name,
        "language": language,
        "languages": LANGUAGES,
        "theme": resolve_theme(request.cookies.get(THEME_COOKIE)),
        "t": lambda key: translate(language, key),
        "show_cookie_banner": parse_consent(request.cookies.get(CONSENT_COOKIE)) is None,
        "show_talent_modal": should_show_talent_modal(
            request.cookies.get(TALENT_MODAL_COOKIE),
            settings.talent_modal_cooldown_hours,
        ),
        "is_demo": settings.is_demo_mode,
        "current_path": request.url.path,
        "flashes": _pop_flashes(request),
    }
    base.update(context or {})
    return templates.TemplateResponse(request, template, base, status_code=status_code)


def _apply_context(values: dict[str, Any] | None = None, errors: dict[str, str] | None = None) -> dict[str, Any]:
    return {
        "positions": POSITIONS,
        "values": values or {"positions_interested": []},
        "errors": errors or {},
    }


def _icon_response(*filenames: str) -> Response:
    for filename in filenames:
        icon_path = static_dir / filename
        if icon_path.is_file():
            return FileResponse(icon_path)
    return Response(status_code=204)


@router.get("/favicon.ico", include_in_schema=False)
def favicon() -> Response:
    return _icon_response("favicon.ico", "favicon.svg")


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    _capture_tracking(request)
    return _render(request, "home.html", _apply_context())


@router.get("/apply", response_class=HTMLResponse)
def apply_page(request: Request) -> HTMLResponse:
    _capture_tracking(request)
    return _render(request, "apply.html", _apply_context())


@router.post("/apply", response_class=HTMLResponse)
async def apply_submit(
    request: Request,
    full_name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    positions_interested: list[str] = Form([]),
    experience_years: str = Form("0"),
    cover_letter: str = Form(""),
    linkedin_url: str = Form(""),
    portfolio_url: str = Form(""),
    job_posting_url: str = Form(""),
    preferred_language: str = Form(""),
    sms_opt_in: bool = Form(False),
    marketing_opt_in: bool = Form(False),
    resume: UploadFile | None = File(None),
    db: Session = Depends(get_db),
) -> HTMLResponse:
    language = resolve_language(request.cookies.get(LANGUAGE_COOKIE), request.headers.get("accept-language"))
    values: dict[str, Any] = {
        "full_name": full_name,
        "email": email,
        "phone": phone,
        "positions_interested": positions_interested,
        "experience_years": experience_years.strip() or "0",
        "cover_letter": cover_letter,
        "linkedin_url": linkedin_url,
        "portfolio_url": portfolio_url,
        "job_posting_url": job_posting_url,
        "preferred_language": preferred_language or language,
        "browser_language": (request.headers.get("accept-language") or "").split(",")[0][:35],
        "sms_opt_in": sms_opt_in,
        "marketing_opt_in": marketing_opt_in,
    }

    upload = None
    if resume is not None and resume.filename:
        upload = ResumeUpload(
            filename=resume.filename,
            content_type=resume.content_type or "",
            data=await resume.read(),
        )

    raw_tracking = request.session.get(TRACKING_SESSION_KEY)
    tracking = TrackingParams(**raw_tracking) if raw_tracking else None

    service = ApplicationService(db)
    try:
        applicant = service.submit(values, resume=upload, tracking=tracking)
    except ValidationFailed as exc:
        return _render(request, "apply.html", _apply_context(values, exc.errors), status_code=400)
    except DocumentRejected as exc:
        return _render(request, "apply.html", _apply_context(values, {"resume": str(exc)}), status_code=400)
    except DuplicateApplicant as exc:
        submitted = (exc.existing.get("created_at") or "")[:10]
        label = "phone number" if exc.field == "phone" else "email address"
        message = f"An application with this {label} already exists"
        if submitted:
            message += f" (submitted on {submitted})"
        return _render(request, "apply.html", _apply_context(values, {exc.field: message}), status_code=409)

    request.session.pop(TRACKING_SESSION_KEY, None)
    return _render(request, "apply_success.html", {"applicant": applicant})


@router.get("/employers", response_class=HTMLResponse)
def employers(request: Request) -> HTMLResponse:
    _capture_tracking(request)
    return _render(request, "employers.html")


@router.get("/forms", response_class=HTMLResponse)
def forms_page(request: Request) -> HTMLResponse:
    return _render(request, "forms.html")


@router.get("/verify-email", response_class=HTMLResponse)
def verify_email_page(request: Request, token: str = "", db: Session = Depends(get_db)) -> HTMLResponse:
    result = ApplicationService(db).verify_email(token)
    return _render(request, "verify_email.html", {"result": result}, status_code=200 if result.valid else 400)


@router.post("/preferences/consent")
def set_consent(
    request: Request,
    choice: str = Form(...),
    analytics: bool = Form(False),
    marketing: bool = Form(False),
    next: str = Form("/"),
) -> Response:
    try:
        consent = build_consent(choice, analytics=analytics, marketing=marketing)
    except ValueError:
        return Response("Unsupported consent choice", status_code=400)
    response = RedirectResponse(url=_safe_next(next), status_code=303)
    response.set_cookie(CONSENT_COOKIE, serialize_consent(consent), max_age=PREFERENCE_COOKIE_MAX_AGE, samesite="lax")
    return response


@router.post("/preferences/theme")
def set_theme(request: Request, theme: str = Form(""), next: str = Form("/")) -> Response:
    value = theme if theme in {"light", "dark"} else toggle_theme(request.cookies.get(THEME_COOKIE))
    response = RedirectResponse(url=_safe_next(next), status_code=303)
    response.set_cookie(THEME_COOKIE, value, max_age=PREFERENCE_COOKIE_MAX_AGE, samesite="lax")
    return response


@router.post("/preferences/language")
def set_language(request: Request, language: str = Form(...), next: str = Form("/")) -> Response:
    try:
        value = validate_language(language)
    except ValueError:
        return Response("Unsupported language", status_code=400)
    response = RedirectResponse(url=_safe_next(next), status_code=303)
    response.set_cookie(LANGUAGE_COOKIE, value, max_age=PREFERENCE_COOKIE_MAX_AGE, samesite="lax")
    return response


@router.post("/talent-modal/dismiss")
def dismiss_talent_modal(request: Request, next: str = Form("/")) -> Response:
    response = RedirectResponse(url=_safe_next(next), status_code=303)
    response.set_cookie(TALENT_MODAL_COOKIE, dismissal_stamp(), max_age=PREFERENCE_COOKIE_MAX_AGE, samesite="lax")
    return response


@router.get("/admin/login", response_class=HTMLResponse)
def admin_login_page(
    request: Request,
    user: AuthUser | None = Depends(current_admin),
    auth: AuthProvider = Depends(get_auth),
) -> Response:
    if user is not None:
        return RedirectResponse(url="/admin/dashboard", status_code=303)
    return _render(request, "admin_login.html", {"email": "", "error": "", "demo_hint": _demo_hint(auth)})


@router.post("/admin/login", response_class=HTMLResponse)
def admin_login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    auth: AuthProvider = Depends(get_auth),
) -> Response:
    try:
        session = auth.sign_in(email, password)
    except AuthenticationFailed as exc:
        error = f"Login failed. {_demo_hint(auth)}" if auth.is_demo else str(exc)
        return _render(
            request,
            "admin_login.html",
            {"email": email, "error": error, "demo_hint": _demo_hint(auth)},
            status_code=401,
        )
    except BackendUnavailable:
        return _render(
            request,
            "admin_login.html",
            {"email": email, "error": "An error occurred. Please try again.", "demo_hint": _demo_hint(auth)},
            status_code=502,
        )

    store_auth_session(request, session, is_demo=auth.is_demo)
    logger.info("Admin signed in user_id=%s demo=%s", session.user.id, auth.is_demo)
    flash(request, "Login successful!", "success")
    return RedirectResponse(url="/admin/dashboard", status_code=303)


@router.post("/admin/logout")
def admin_logout(request: Request, auth: AuthProvider = Depends(get_auth)) -> Response:
    session = load_auth_session(request)
    if session is not None:
        auth.sign_out(session)
    clear_auth_session(request)
    return RedirectResponse(url="/admin/login", status_code=303)


def _demo_hint(auth: AuthProvider) -> str:
    hint = getattr(auth, "hint", "")
    return hint if auth.is_demo else ""


@router.get("/admin/dashboard", response_class=HTMLResponse)
def admin_dashboard(
    request: Request,
    q: str = "",
    status: str = "all",
    position: str = "all",
    sort: str = "created_at_desc",
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_admin_page),
    auth: AuthProvider = Depends(get_auth),
) -> HTMLResponse:
    if sort not in SORT_KEYS:
        sort = "created_at_desc"
    rows = Repository(db).list_applicants()
    filtered = filter_applicants(rows, query=q, status=status, position=position, sort=sort)
    return _render(
        request,
        "admin_dashboard.html",
        {
            "user": user,
            "is_demo": auth.is_demo,
            "applicants": filtered,
            "total_count": len(rows),
            "filtered_count": len(filtered),
            "stats": applicant_stats(rows),
            "unique_positions": unique_positions(rows),
            "statuses": APPLICANT_STATUSES,
            "sort_keys": SORT_KEYS,
            "filters": {"q": q, "status": status, "position": position, "sort": sort},
            "positions_of": applicant_positions,
        },
    )


@router.get("/admin/export.csv")
def admin_export(
    q: str = "",
    status: str = "all",
    position: str = "all",
    sort: str = "created_at_desc",
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin_page),
) -> Response:
    rows = filter_applicants(Repository(db).list_applicants(), query=q, status=status, position=position, sort=sort)
    return Response(
        content=export_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/admin/applicants/{applicant_id}", response_class=HTMLResponse)
def applicant_detail(
    applicant_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_admin_page),
) -> HTMLResponse:
    applicant = Repository(db).get_applicant(applicant_id)
    if not applicant:
        return _render(request, "not_found.html", {"message": "Applicant not found"}, status_code=404)
    return _render(
        request,
        "applicant_detail.html",
        {
            "user": user,
            "applicant": applicant,
            "statuses": APPLICANT_STATUSES,
            "positions": applicant_positions(applicant),
        },
    )


@router.post("/admin/applicants/{applicant_id}/status")
def update_status(
    applicant_id: str,
    request: Request,
    status: str = Form(...),
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_admin_page),
) -> Response:
    try:
        Repository(db).set_applicant_status(applicant_id, status)
    except (NotFound, ValueError) as exc:
        logger.warning("Status update failed applicant_id=%s error=%s", applicant_id, exc)
        flash(request, "Failed to update status", "error")
    else:
        logger.info("Applicant status changed applicant_id=%s status=%s by=%s", applicant_id, status, user.email)
        flash(request, "Status updated successfully", "success")
    return RedirectResponse(url=f"/admin/applicants/{applicant_id}", status_code=303)


@router.post("/admin/applicants/{applicant_id}/notes")
def update_notes(
    applicant_id: str,
    request: Request,
    notes: str = Form(""),
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin_page),
) -> Response:
    try:
        Repository(db).set_applicant_notes(applicant_id, notes)
    except NotFound as exc:
        logger.warning("Notes update failed applicant_id=%s error=%s", applicant_id, exc)
        flash(request, "Failed to update notes", "error")
    else:
        flash(request, "Notes updated successfully", "success")
    return RedirectResponse(url=f"/admin/applicants/{applicant_id}", status_code=303)


@router.post("/admin/applicants/{applicant_id}/delete")
def delete_applicant(
    applicant_id: str,
    request: Request,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_admin_page),
) -> Response:
    try:
        Repository(db).delete_applicant(applicant_id)
    except NotFound:
        flash(request, "Applicant not found", "error")
    else:
        logger.info("Applicant deleted applicant_id=%s by=%s", applicant_id, user.email)
        flash(request, "Applicant deleted", "success")
    return RedirectResponse(url="/admin/dashboard", status_code=303)


@router.get("/admin/applicants/{applicant_id}/resume")
def download_resume(
    applicant_id: str,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth),
    _: AuthUser = Depends(require_admin_page),
) -> Response:
    settings = get_settings()
    try:
        applicant = Repository(db).require_applicant(applicant_id)
        link = resolve_resume_link(
            applicant,
            StorageClient(settings),
            is_demo=auth.is_demo,
            expires_in=settings.signed_url_ttl_sec,
        )
    except NotFound as exc:
        logger.warning("Resume download failed applicant_id=%s error=%s", applicant_id, exc)
        flash(request, "Failed to download resume", "error")
        return RedirectResponse(url=f"/admin/applicants/{applicant_id}", status_code=303)

    if link.simulated or not link.url:
        flash(request, link.message, "info")
        return RedirectResponse(url=f"/admin/applicants/{applicant_id}", status_code=303)
    return RedirectResponse(url=link.url, status_code=303)


@router.get("/storage/{bucket}/{path:path}", include_in_schema=False)
def signed_download(bucket: str, path: str, expires: int = 0, signature: str = "") -> Response:
    storage = StorageClient(get_settings())
    if not storage.verify_signature(bucket, path, expires, signature):
        return Response("Link expired or invalid", status_code=403)
    try:
        target = storage.open(bucket, path)
    except NotFound:
        return Response("Not found", status_code=404)
    return FileResponse(target, filename=target.name)
