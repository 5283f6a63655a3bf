from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from uniquestaffing.config import Settings, get_settings
from uniquestaffing.core.documents import verify_document
from uniquestaffing.core.mailer import Mailer
from uniquestaffing.core.runtime import get_mailer
from uniquestaffing.core.storage import StorageClient
from uniquestaffing.core.validation import (
    ApplicationForm,
    form_errors,
    generate_verification_token,
    to_e164,
    token_expiry,
)
from uniquestaffing.db.base import as_utc, utcnow
from uniquestaffing.db.models import Applicant
from uniquestaffing.db.repositories import Repository, applicant_summary
from uniquestaffing.errors import DocumentRejected, DuplicateApplicant, ValidationFailed
from uniquestaffing.types import UTM_FIELDS, DuplicateCheck, TrackingParams, VerificationResult

logger = logging.getLogger(__name__)

RESUME_BUCKET = "resumes"


@dataclass(slots=True)
class ResumeUpload:
    filename: str
    content_type: str
    data: bytes


class ApplicationService:
    """Accepts job-seeker applications and confirms their email addresses."""

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        mailer: Mailer | None = None,
        storage: StorageClient | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.mailer = mailer or get_mailer()
        self.storage = storage or StorageClient(self.settings)

    def check_phone_duplicate(self, phone: str) -> DuplicateCheck:
        normalized = to_e164(phone)
        existing = self.repo.get_applicant_by_phone(normalized or "")
        if existing is None:
            return DuplicateCheck(exists=False)
        return DuplicateCheck(exists=True, applicant=applicant_summary(existing))

    def submit(
        self,
        values: ApplicationForm | dict[str, Any],
        *,
        resume: ResumeUpload | None = None,
        tracking: TrackingParams | None = None,
    ) -> Applicant:
        form = values if isinstance(values, ApplicationForm) else self._parse_form(values)

        duplicate = self.check_phone_duplicate(form.phone)
        if duplicate.exists:
            raise DuplicateApplicant("phone", duplicate.applicant)
        existing = self.repo.get_applicant_by_email(form.email)
        if existing is not None:
            raise DuplicateApplicant("email", applicant_summary(existing))

        resume_path, resume_filename = self._store_resume(resume)
        try:
            applicant, token = self._create_records(form, resume_path, resume_filename, tracking)
        except Exception:
            if resume_path:
                self.storage.remove(RESUME_BUCKET, resume_path)
                logger.warning("Removed orphaned resume path=%s after failed insert", resume_path)
            raise
        logger.info("Application received applicant_id=%s position=%s", applicant.id, applicant.position_interested)

        self._send_verification(applicant, token)
        self._notify_admin(applicant)
        return applicant

    def _create_records(
        self,
        form: ApplicationForm,
        resume_path: str | None,
        resume_filename: str | None,
        tracking: TrackingParams | None,
    ) -> tuple[Applicant, str]:
        now = utcnow()
        token = generate_verification_token()
        tracking_values = (tracking or TrackingParams()).model_dump()
        applicant = self.repo.create_applicant(
            full_name=form.full_name,
            email=form.email,
            phone=form.phone,
            phone_normalized=form.phone_normalized,
            position_interested=form.position_interested,
            positions_interested=form.positions_interested,
            experience_years=form.experience_years,
            resume_url=resume_path,
            resume_filename=resume_filename,
            cover_letter=form.cover_letter,
            job_posting_url=form.job_posting_url,
            linkedin_url=form.linkedin_url,
            portfolio_url=form.portfolio_url,
            preferred_language=form.preferred_language,
            browser_language=form.browser_language,
            sms_opt_in=form.sms_opt_in,
            marketing_opt_in=form.marketing_opt_in,
            email_verification_token=token,
            token_expiry=token_expiry(now, self.settings.verification_token_ttl_hours),
            **{name: tracking_values.get(name, "")[:255] for name in UTM_FIELDS},
        )
        try:
            self.repo.create_verification_log(email=applicant.email, token=token, applicant_id=applicant.id)
        except Exception:
            self.session.rollback()
            self.repo.delete_applicant(applicant.id)
            raise
        return applicant, token

    def verify_email(self, token: str, now: datetime | None = None) -> VerificationResult:
        if not token:
            return VerificationResult(valid=False)
        now = now or utcnow()

        applicant = self.repo.get_applicant_by_token(token)
        if applicant is None:
            log_row = self.repo.get_verification_log(token)
            if log_row is not None and log_row.verified_at is not None:
                return VerificationResult(valid=True, email=log_row.email, applicant_id=log_row.applicant_id)
            return VerificationResult(valid=False)

        if applicant.email_verified:
            return VerificationResult(valid=True, email=applicant.email, applicant_id=applicant.id)

        expiry = as_utc(applicant.token_expiry)
        if expiry is not None and expiry < now:
            logger.info("Expired verification token applicant_id=%s", applicant.id)
            return VerificationResult(valid=False)

        self.repo.mark_email_verified(applicant, token, now)
        logger.info("Email verified applicant_id=%s", applicant.id)
        return VerificationResult(valid=True, email=applicant.email, applicant_id=applicant.id)

    def _parse_form(self, values: dict[str, Any]) -> ApplicationForm:
        try:
            return ApplicationForm.model_validate(values)
        except ValidationError as exc:
            raise ValidationFailed(form_errors(exc)) from exc

    def _store_resume(self, resume: ResumeUpload | None) -> tuple[str | None, str | None]:
        if resume is None or not resume.filename:
            return None, None
        check = verify_document(resume.filename, resume.content_type, resume.data, RESUME_BUCKET)
        if not check.valid:
            raise DocumentRejected(check.error or "File rejected")
        path = self.storage.upload(RESUME_BUCKET, resume.filename, resume.data)
        return path, resume.filename

    def _send_verification(self, applicant: Applicant, token: str) -> None:
        link = f"{self.settings.public_base_url.rstrip('/')}/verify-email?token={token}"
        if applicant.preferred_language == "es":
            subject = "Confirme su correo electrónico"
            body = f"Hola {applicant.full_name},\n\nConfirme su correo electrónico: {link}\n"
        else:
            subject = "Confirm your email address"
            body = f"Hi {applicant.full_name},\n\nPlease confirm your email address: {link}\n"
        if not self.mailer.send(applicant.email, subject, body):
            logger.warning("Verification email not sent applicant_id=%s", applicant.id)

    def _notify_admin(self, applicant: Applicant) -> None:
        recipient = self.settings.admin_notify_email
        if not recipient:
            return
        body = (
            f"New application from {applicant.full_name} <{applicant.email}>\n"
            f"Positions: {', '.join(applicant.positions_interested)}\n"
            f"Experience: {applicant.experience_years} years\n"
        )
        if self.mailer.send(recipient, f"New applicant: {applicant.full_name}", body):
            self.repo.update_applicant(applicant.id, {"admin_notified_at": utcnow()})
