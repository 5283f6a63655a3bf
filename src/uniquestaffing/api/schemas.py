from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from uniquestaffing.core.validation import ApplicationForm
from uniquestaffing.types import (
    ApplicantStats,
    ApplicantStatus,
    AuthUser,
    SortKey,
    TrackingParams,
)


class ApplicantCreateRequest(ApplicationForm):
    tracking: TrackingParams | None = None


class ApplicantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: datetime
    full_name: str
    email: str
    phone: str
    phone_normalized: str
    position_interested: str
    positions_interested: list[str]
    experience_years: int
    resume_url: str | None
    resume_filename: str | None
    cover_letter: str | None
    job_posting_url: str | None
    linkedin_url: str | None
    portfolio_url: str | None
    status: ApplicantStatus
    notes: str | None
    email_verified: bool
    email_confirmed: datetime | None
    preferred_language: str
    browser_language: str
    sms_opt_in: bool
    marketing_opt_in: bool
    utm_source: str
    utm_medium: str
    utm_campaign: str
    admin_notified_at: datetime | None


class ApplicantCreatedResponse(BaseModel):
    id: str
    email: str
    status: ApplicantStatus
    message: str = "Application received. Please check your email to verify your address."


class ApplicantUpdateRequest(BaseModel):
    status: ApplicantStatus | None = None
    notes: str | None = None


class ApplicantListResponse(BaseModel):
    items: list[ApplicantResponse]
    total: int
    filtered: int
    positions: list[str]
    stats: ApplicantStats
    sort: SortKey


class LoginRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    authenticated: bool
    is_demo: bool
    user: AuthUser | None = None
    expires_at: int | None = None


class DocumentVerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    content_type: str = Field(alias="contentType")
    size: int
    bucket: str = "resumes"
    file_signature: list[int] = Field(default_factory=list, alias="fileSignature")
