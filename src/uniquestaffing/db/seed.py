from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from uniquestaffing.db.base import utcnow
from uniquestaffing.db.models import Applicant


def demo_applicants(now: datetime) -> list[dict[str, Any]]:
    day = timedelta(days=1)
    return [
        {
            "created_at": now - day,
            "full_name": "Maria Garcia",
            "email": "maria.garcia@email.com",
            "phone": "301-555-1234",
            "phone_normalized": "+13015551234",
            "position_interested": "Warehouse Associate",
            "positions_interested": ["Warehouse Associate", "Forklift Operator"],
            "experience_years": 3,
            "resume_filename": "maria_garcia_resume.pdf",
            "status": "new",
            "preferred_language": "es",
            "browser_language": "es-US",
        },
        {
            "created_at": now - 2 * day,
            "full_name": "James Wilson",
            "email": "james.wilson@email.com",
            "phone": "202-555-5678",
            "phone_normalized": "+12025555678",
            "position_interested": "Customer Service Representative",
            "positions_interested": ["Customer Service Representative", "Call Center Agent"],
            "experience_years": 5,
            "resume_url": "https://example.com/resume.pdf",
            "resume_filename": "james_wilson_resume.pdf",
            "cover_letter": "I am excited to apply for this position...",
            "linkedin_url": "https://linkedin.com/in/jameswilson",
            "status": "reviewing",
            "notes": "Strong candidate, schedule phone interview",
            "email_verified": True,
            "email_confirmed": now,
            "admin_notified_at": now,
            "browser_language": "en-US",
        },
        {
            "created_at": now - 4 * day,
            "full_name": "Aisha Thompson",
            "email": "aisha.thompson@email.com",
            "phone": "240-555-9012",
            "phone_normalized": "+12405559012",
            "position_interested": "Medical Receptionist",
            "positions_interested": ["Medical Receptionist"],
            "experience_years": 2,
            "status": "shortlisted",
            "email_verified": True,
            "email_confirmed": now - 3 * day,
            "sms_opt_in": True,
            "browser_language": "en-US",
        },
        {
            "created_at": now - 9 * day,
            "full_name": "Luis Hernandez",
            "email": "luis.hernandez@email.com",
            "phone": "410-555-3456",
            "phone_normalized": "+14105553456",
            "position_interested": "Forklift Operator",
            "positions_interested": ["Forklift Operator"],
            "experience_years": 7,
            "status": "hired",
            "notes": "Started at the Baltimore site",
            "email_verified": True,
            "email_confirmed": now - 8 * day,
            "preferred_language": "es",
            "browser_language": "es-MX",
        },
        {
            "created_at": now - 12 * day,
            "full_name": "Emily Chen",
            "email": "emily.chen@email.com",
            "phone": "571-555-7890",
            "phone_normalized": "+15715557890",
            "position_interested": "Administrative Assistant",
            "positions_interested": ["Administrative Assistant", "Data Entry Clerk"],
            "experience_years": 1,
            "status": "rejected",
            "browser_language": "en-US",
        },
    ]


def seed_demo_applicants(session: Session, now: datetime | None = None) -> int:
    """Insert the sample applicants shown in demo mode when the store is empty."""
    if session.scalar(select(Applicant.id).limit(1)) is not None:
        return 0

    rows = demo_applicants(now or utcnow())
    for values in rows:
        session.add(Applicant(updated_at=values["created_at"], **values))
    session.commit()
    return len(rows)
