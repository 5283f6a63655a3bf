from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from uniquestaffing.db.base import utcnow
from uniquestaffing.db.models import Applicant, EmailVerificationLog
from uniquestaffing.errors import DuplicateApplicant, NotFound
from uniquestaffing.types import APPLICANT_STATUSES

logger = logging.getLogger(__name__)


def applicant_summary(applicant: Applicant) -> dict[str, Any]:
    return {
        "id": applicant.id,
        "full_name": applicant.full_name,
        "email": applicant.email,
        "created_at": applicant.created_at.isoformat() if applicant.created_at else None,
        "email_verified": applicant.email_verified,
    }


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def create_applicant(self, **values: Any) -> Applicant:
        applicant = Applicant(**values)
        self.session.add(applicant)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            existing = self.get_applicant_by_email(values.get("email", ""))
            field = "email"
            if existing is None:
                existing = self.get_applicant_by_phone(values.get("phone_normalized", ""))
                field = "phone"
            if existing is None:
                raise
            logger.info("Rejected duplicate applicant field=%s", field)
            raise DuplicateApplicant(field, applicant_summary(existing)) from exc
        self.session.refresh(applicant)
        return applicant

    def get_applicant(self, applicant_id: str) -> Applicant | None:
        return self.session.get(Applicant, applicant_id)

    def require_applicant(self, applicant_id: str) -> Applicant:
        applicant = self.get_applicant(applicant_id)
        if not applicant:
            raise NotFound(f"applicant {applicant_id} not found")
        return applicant

    def get_applicant_by_email(self, email: str) -> Applicant | None:
        if not email:
            return None
        return self.session.scalar(select(Applicant).where(Applicant.email == email.strip().lower()))

    def get_applicant_by_phone(self, phone_normalized: str) -> Applicant | None:
        if not phone_normalized:
            return None
        return self.session.scalar(select(Applicant).where(Applicant.phone_normalized == phone_normalized))

    def get_applicant_by_token(self, token: str) -> Applicant | None:
        return self.session.scalar(select(Applicant).where(Applicant.email_verification_token == token))

    def list_applicants(self, status: str | None = None, limit: int | None = None) -> list[Applicant]:
        statement = select(Applicant).order_by(Applicant.created_at.desc())
        if status:
            statement = statement.where(Applicant.status == status)
        if limit:
            statement = statement.limit(limit)
        return list(self.session.scalars(statement).all())

    def count_applicants(self) -> int:
        return int(self.session.scalar(select(func.count()).select_from(Applicant)) or 0)

    def update_applicant(self, applicant_id: str, values: dict[str, Any]) -> Applicant:
        applicant = self.require_applicant(applicant_id)
        for key, value in values.items():
            setattr(applicant, key, value)
        self.session.commit()
        self.session.refresh(applicant)
        return applicant

    def set_applicant_status(self, applicant_id: str, status: str) -> Applicant:
        if status not in APPLICANT_STATUSES:
            raise ValueError(f"unsupported applicant status '{status}'")
        return self.update_applicant(applicant_id, {"status": status})

    def set_applicant_notes(self, applicant_id: str, notes: str) -> Applicant:
        return self.update_applicant(applicant_id, {"notes": notes or None})

    def delete_applicant(self, applicant_id: str) -> None:
        applicant = self.require_applicant(applicant_id)
        self.session.execute(
            update(EmailVerificationLog)
            .where(EmailVerificationLog.applicant_id == applicant_id)
            .values(applicant_id=None)
        )
        self.session.delete(applicant)
        self.session.commit()

    def create_verification_log(
        self,
        *,
        email: str,
        token: str,
        applicant_id: str | None = None,
    ) -> EmailVerificationLog:
        row = EmailVerificationLog(applicant_id=applicant_id, email=email, token=token, sent_at=utcnow())
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def get_verification_log(self, token: str) -> EmailVerificationLog | None:
        return self.session.scalar(select(EmailVerificationLog).where(EmailVerificationLog.token == token))

    def mark_email_verified(self, applicant: Applicant, token: str, verified_at: datetime) -> Applicant:
        applicant.email_verified = True
        applicant.email_confirmed = verified_at
        applicant.email_verification_token = None
        applicant.token_expiry = None

        log_row = self.get_verification_log(token)
        if log_row and not log_row.verified_at:
            log_row.verified_at = verified_at

        self.session.commit()
        self.session.refresh(applicant)
        return applicant
