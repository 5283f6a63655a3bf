from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from uniquestaffing.types import Language

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_EXPERIENCE_YEARS = 60


def normalize_phone(phone: str) -> str:
    return re.sub(r"[^0-9]", "", phone or "")


def to_e164(phone: str) -> str | None:
    """Return the E.164 form of a phone number, assuming North America for bare 10-digit input."""
    digits = normalize_phone(phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if 10 < len(digits) <= 15 and (phone or "").strip().startswith("+"):
        return f"+{digits}"
    return None


def validate_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match((email or "").strip()))


def validate_url(url: str | None) -> bool:
    if not url or not url.strip():
        return True
    parsed = urlparse(url.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def validate_linkedin_url(url: str | None) -> bool:
    if not url or not url.strip():
        return True
    if not validate_url(url):
        return False
    hostname = (urlparse(url.strip()).hostname or "").lower()
    return hostname in {"linkedin.com", "www.linkedin.com"} or hostname.endswith(".linkedin.com")


def generate_verification_token() -> str:
    return secrets.token_hex(32)


def token_expiry(now: datetime, ttl_hours: int = 24) -> datetime:
    return now + timedelta(hours=ttl_hours)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ApplicationForm(BaseModel):
    full_name: str
    email: str
    phone: str
    positions_interested: list[str] = Field(default_factory=list)
    experience_years: int = 0
    cover_letter: str | None = None
    job_posting_url: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    preferred_language: Language = "en"
    browser_language: str = ""
    sms_opt_in: bool = False
    marketing_opt_in: bool = False

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        value = " ".join(value.split())
        if len(value) < 2:
            raise ValueError("Please enter your full name")
        return value

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, value: str) -> str:
        value = value.strip().lower()
        if not validate_email(value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("phone")
    @classmethod
    def validate_phone_field(cls, value: str) -> str:
        value = value.strip()
        if to_e164(value) is None:
            raise ValueError("Please enter a valid phone number")
        return value

    @field_validator("positions_interested")
    @classmethod
    def validate_positions(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for item in value:
            item = item.strip()
            if item and item not in cleaned:
                cleaned.append(item)
        if not cleaned:
            raise ValueError("Please select at least one position")
        return cleaned

    @field_validator("experience_years")
    @classmethod
    def validate_experience(cls, value: int) -> int:
        if value < 0 or value > MAX_EXPERIENCE_YEARS:
            raise ValueError(f"Experience must be between 0 and {MAX_EXPERIENCE_YEARS} years")
        return value

    @field_validator("cover_letter", "job_posting_url", "portfolio_url", "linkedin_url")
    @classmethod
    def blank_optional_fields(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def validate_links(self) -> "ApplicationForm":
        if not validate_url(self.job_posting_url):
            raise ValueError("job_posting_url: Please enter a valid http(s) URL")
        if not validate_url(self.portfolio_url):
            raise ValueError("portfolio_url: Please enter a valid http(s) URL")
        if not validate_linkedin_url(self.linkedin_url):
            raise ValueError("linkedin_url: Please enter a LinkedIn profile URL")
        return self

    @property
    def phone_normalized(self) -> str:
        return to_e164(self.phone) or ""

    @property
    def position_interested(self) -> str:
        return self.positions_interested[0]


def form_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten a pydantic ValidationError into a field -> message mapping for the form."""
    errors: dict[str, str] = {}
    for item in exc.errors():
        message = str(item.get("msg", "Invalid value")).removeprefix("Value error, ")
        loc = item.get("loc") or ()
        if loc:
            field = str(loc[0])
        elif ": " in message:
            field, message = message.split(": ", 1)
        else:
            field = "__all__"
        if item.get("type") == "missing":
            message = "This field is required"
        errors.setdefault(field, message)
    return errors
