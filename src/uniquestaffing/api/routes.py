from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from uniquestaffing.api.deps import (
    clear_auth_session,
    current_admin,
    get_auth,
    get_db,
    load_auth_session,
    require_admin,
    store_auth_session,
)
from uniquestaffing.api.schemas import (
    ApplicantCreatedResponse,
    ApplicantCreateRequest,
    ApplicantListResponse,
    ApplicantResponse,
    ApplicantUpdateRequest,
    DocumentVerifyRequest,
    LoginRequest,
    SessionResponse,
)
from uniquestaffing.config import get_settings
from uniquestaffing.core.applications import ApplicationService, ResumeUpload
from uniquestaffing.core.auth import AuthProvider
from uniquestaffing.core.dashboard import (
    applicant_stats,
    export_csv,
    export_filename,
    filter_applicants,
    resolve_resume_link,
    unique_positions,
)
from uniquestaffing.core.documents import verify_document, verify_signature_only
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
from uniquestaffing.types import (
    AuthUser,
    DocumentCheck,
    DuplicateCheck,
    ResumeLink,
    SortKey,
    TrackingParams,
    VerificationResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def _submit(
    db: Session,
    values: dict,
    resume: ResumeUpload | None,
    tracking: TrackingParams | None,
) -> ApplicantCreatedResponse:
    service = ApplicationService(db)
    try:
        applicant = service.submit(values, resume=resume, tracking=tracking)
    except ValidationFailed as exc:
        raise HTTPException(status_code=422, detail={"errors": exc.errors}) from exc
    except DocumentRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DuplicateApplicant as exc:
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "field": exc.field, "applicant": exc.existing},
        ) from exc
    return ApplicantCreatedResponse(id=applicant.id, email=applicant.email, status=applicant.status)


@router.post("/applicants", response_model=ApplicantCreatedResponse, status_code=201)
def create_applicant(payload: ApplicantCreateRequest, db: Session = Depends(get_db)) -> ApplicantCreatedResponse:
    values = payload.model_dump(exclude={"tracking"})
    return _submit(db, values, None, payload.tracking)


@router.post("/applicants/form", response_model=ApplicantCreatedResponse, status_code=201)
async def create_applicant_from_form(
    full_name: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    positions_interested: list[str] = Form(...),
    experience_years: int = Form(0),
    cover_letter: str = Form(""),
    linkedin_url: str = Form(""),
    portfolio_url: str = Form(""),
    job_posting_url: str = Form(""),
    preferred_language: str = Form("en"),
    sms_opt_in: bool = Form(False),
    marketing_opt_in: bool = Form(False),
    resume: UploadFile | None = File(None),
    db: Session = Depends(get_db),
) -> ApplicantCreatedResponse:
    upload = None
    if resume is not None and resume.filename:
        upload = ResumeUpload(
            filename=resume.filename,
            content_type=resume.content_type or "",
            data=await resume.read(),
        )
    values = {
        "full_name": full_name,
        "email": email,
        "phone": phone,
        "positions_interested": positions_interested,
        "experience_years": experience_years,
        "cover_letter": cover_letter,
        "linkedin_url": linkedin_url,
        "portfolio_url": portfolio_url,
        "job_posting_url": job_posting_url,
        "preferred_language": preferred_language,
        "sms_opt_in": sms_opt_in,
        "marketing_opt_in": marketing_opt_in,
    }
    return _submit(db, values, upload, None)


@router.get("/applicants", response_model=ApplicantListResponse)
def list_applicants(
    q: str = "",
    status: str = "all",
    position: str = "all",
    sort: SortKey = "created_at_desc",
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin),
) -> ApplicantListResponse:
    rows = Repository(db).list_applicants()
    filtered = filter_applicants(rows, query=q, status=status, position=position, sort=sort)
    return ApplicantListResponse(
        items=[ApplicantResponse.model_validate(row) for row in filtered],
        total=len(rows),
        filtered=len(filtered),
        positions=unique_positions(rows),
        stats=applicant_stats(rows),
        sort=sort,
    )


@router.get("/applicants/export.csv", response_class=PlainTextResponse)
def export_applicants(
    q: str = "",
    status: str = "all",
    position: str = "all",
    sort: SortKey = "created_at_desc",
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin),
) -> Response:
    rows = filter_applicants(Repository(db).list_applicants(), query=q, status=status, position=position, sort=sort)
    return Response(
        content=export_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/applicants/phone-check", response_model=DuplicateCheck)
def phone_check(phone: str, db: Session = Depends(get_db)) -> DuplicateCheck:
    result = ApplicationService(db).check_phone_duplicate(phone)
    if result.exists and result.applicant:
        # Public endpoint: only reveal when the earlier application was made.
        return DuplicateCheck(exists=True, applicant={"created_at": result.applicant.get("created_at")})
    return result


@router.get("/applicants/{applicant_id}", response_model=ApplicantResponse)
def get_applicant(
    applicant_id: str,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_admin),
) -> ApplicantResponse:
    applicant = Repository(db).get_applicant(applicant_id)
    if not applicant:
        raise HTTPException(status_code=404, detail="Applicant not found")
    return ApplicantResponse.model_validate(applicant)


@router.patch("/applicants/{applicant_id}", response_model=ApplicantResponse)
def update_applicant(
    applicant_id: str,
    payload: ApplicantUpdateRequest,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_admin),
) -> ApplicantResponse:
    repo = Repository(db)
    try:
        applicant = repo.require_applicant(applicant_id)
        if payload.status is not None:
            applicant = repo.set_applicant_status(applicant_id, payload.status)
        if payload.notes is not None:
            applicant = repo.set_applicant_notes(applicant_id, payload.notes)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info("Applicant updated applicant_id=%s by=%s", applicant_id, user.email)
    return ApplicantResponse.model_validate(applicant)


@router.delete("/applicants/{applicant_id}", status_code=204)
def delete_applicant(
    applicant_id: str,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(require_admin),
) -> Response:
    try:
        Repository(db).delete_applicant(applicant_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info("Applicant deleted applicant_id=%s by=%s", applicant_id, user.email)
    return Response(status_code=204)


@router.get("/applicants/{applicant_id}/resume", response_model=ResumeLink)
def applicant_resume(
    applicant_id: str,
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth),
    _: AuthUser = Depends(require_admin),
) -> ResumeLink:
    settings = get_settings()
    try:
        applicant = Repository(db).require_applicant(applicant_id)
        return resolve_resume_link(
            applicant,
            StorageClient(settings),
            is_demo=auth.is_demo,
            expires_in=settings.signed_url_ttl_sec,
        )
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/auth/login", response_model=SessionResponse)
def login(payload: LoginRequest, request: Request, auth: AuthProvider = Depends(get_auth)) -> SessionResponse:
    try:
        session = auth.sign_in(payload.email, payload.password)
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except BackendUnavailable as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    store_auth_session(request, session, is_demo=auth.is_demo)
    return SessionResponse(authenticated=True, is_demo=auth.is_demo, user=session.user, expires_at=session.expires_at)


@router.post("/auth/logout", response_model=SessionResponse)
def logout(request: Request, auth: AuthProvider = Depends(get_auth)) -> SessionResponse:
    session = load_auth_session(request)
    if session is not None:
        auth.sign_out(session)
    clear_auth_session(request)
    return SessionResponse(authenticated=False, is_demo=auth.is_demo)


@router.get("/auth/session", response_model=SessionResponse)
def session_info(
    request: Request,
    auth: AuthProvider = Depends(get_auth),
    user: AuthUser | None = Depends(current_admin),
) -> SessionResponse:
    if user is None:
        return SessionResponse(authenticated=False, is_demo=auth.is_demo)
    session = load_auth_session(request)
    return SessionResponse(
        authenticated=True,
        is_demo=auth.is_demo,
        user=user,
        expires_at=session.expires_at if session else None,
    )


@router.post("/documents/verify", response_model=DocumentCheck)
def verify_document_metadata(payload: DocumentVerifyRequest, response: Response) -> DocumentCheck:
    result = verify_signature_only(
        payload.filename,
        payload.content_type,
        payload.size,
        payload.file_signature,
        payload.bucket,
    )
    if not result.valid:
        response.status_code = 400
    return result


@router.post("/documents/verify-file", response_model=DocumentCheck)
async def verify_document_upload(
    response: Response,
    file: UploadFile = File(...),
    bucket: str = Form("resumes"),
) -> DocumentCheck:
    result = verify_document(file.filename or "", file.content_type or "", await file.read(), bucket)
    if not result.valid:
        response.status_code = 400
    return result


@router.get("/verify-email", response_model=VerificationResult)
def verify_email(token: str = "", db: Session = Depends(get_db)) -> VerificationResult:
    result = ApplicationService(db).verify_email(token)
    if not result.valid:
        raise HTTPException(status_code=400, detail="Invalid or expired verification link")
    return result
