from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from uniquestaffing.db.base import Base, TimestampMixin, utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class Applicant(TimestampMixin, Base):
    __tablename__ = "applicants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    phone_normalized: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    position_interested: Mapped[str] = mapped_column(String(255), nullable=False)
    positions_interested: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    experience_years: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resume_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    resume_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cover_letter: Mapped[str | None] = mapped_column(Text, nullable=True)
    job_posting_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    portfolio_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="new", index=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_confirmed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    email_verification_token: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    token_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    preferred_language: Mapped[str] = mapped_column(String(5), default="en", nullable=False)
    browser_language: Mapped[str] = mapped_column(String(35), default="", nullable=False)
    sms_opt_in: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    marketing_opt_in: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    utm_source: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    utm_medium: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    utm_campaign: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    utm_term: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    utm_content: Mapped[str] = mapped_column(String(255), default="", nullable=False)

    admin_notified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class EmailVerificationLog(Base):
    __tablename__ = "email_verification_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    applicant_id: Mapped[str | None] = mapped_column(
        ForeignKey("applicants.id", ondelete="SET NULL"), index=True, nullable=True
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
