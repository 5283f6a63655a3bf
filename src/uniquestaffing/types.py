from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

ApplicantStatus = Literal["new", "reviewing", "shortlisted", "rejected", "hired"]
Language = Literal["en", "es"]
Theme = Literal["light", "dark"]
SortKey = Literal["created_at_desc", "created_at_asc", "name_asc", "name_desc"]
Bucket = Literal["resumes", "documents"]

APPLICANT_STATUSES: tuple[str, ...] = ("new", "reviewing", "shortlisted", "rejected", "hired")
LANGUAGES: dict[str, str] = {"en": "English", "es": "Español"}
UTM_FIELDS: tuple[str, ...] = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")


class AuthUser(BaseModel):
    id: str
    email: str
    provider: str = "email"
    name: str = ""


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_at: int
    user: AuthUser

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= int(now.timestamp())


class DocumentDetails(BaseModel):
    filename: str
    extension: str
    content_type: str
    size: int
    size_formatted: str
    signature_valid: bool


class DocumentCheck(BaseModel):
    valid: bool
    error: str | None = None
    details: DocumentDetails | None = None


class VerificationResult(BaseModel):
    valid: bool
    email: str | None = None
    applicant_id: str | None = None


class DuplicateCheck(BaseModel):
    exists: bool
    applicant: dict[str, Any] | None = None


class CookieConsent(BaseModel):
    essential: bool = True
    analytics: bool = False
    marketing: bool = False
    timestamp: str = ""

    @field_validator("essential")
    @classmethod
    def essential_always_on(cls, value: bool) -> bool:
        return True


class TrackingParams(BaseModel):
    utm_source: str = ""
    utm_medium: str = ""
    utm_campaign: str = ""
    utm_term: str = ""
    utm_content: str = ""

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in UTM_FIELDS)


class ApplicantStats(BaseModel):
    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    verified: int = 0
    last_7_days: int = 0


class ResumeLink(BaseModel):
    simulated: bool = False
    url: str | None = None
    message: str = ""
