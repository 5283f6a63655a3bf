from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from uniquestaffing.core.storage import StorageClient
from uniquestaffing.db.base import as_utc, utcnow
from uniquestaffing.db.models import Applicant
from uniquestaffing.errors import NotFound
from uniquestaffing.types import APPLICANT_STATUSES, ApplicantStats, ResumeLink

CSV_HEADERS = ["Name", "Email", "Phone", "Position", "Experience (Years)", "Status", "Applied Date", "Notes"]
SORT_KEYS = ("created_at_desc", "created_at_asc", "name_asc", "name_desc")


def applicant_positions(applicant: Applicant) -> list[str]:
    if applicant.positions_interested:
        return list(applicant.positions_interested)
    return [applicant.position_interested] if applicant.position_interested else []


def filter_applicants(
    rows: Iterable[Applicant],
    *,
    query: str = "",
    status: str = "all",
    position: str = "all",
    sort: str = "created_at_desc",
) -> list[Applicant]:
    filtered = list(rows)

    if status and status != "all":
        filtered = [row for row in filtered if row.status == status]

    if position and position != "all":
        filtered = [row for row in filtered if position in applicant_positions(row)]

    needle = (query or "").strip().lower()
    if needle:
        filtered = [
            row
            for row in filtered
            if needle in row.full_name.lower()
            or needle in row.email.lower()
            or needle in row.position_interested.lower()
        ]

    if sort == "created_at_asc":
        filtered.sort(key=lambda row: as_utc(row.created_at))
    elif sort == "name_asc":
        filtered.sort(key=lambda row: row.full_name.casefold())
    elif sort == "name_desc":
        filtered.sort(key=lambda row: row.full_name.casefold(), reverse=True)
    else:
        filtered.sort(key=lambda row: as_utc(row.created_at), reverse=True)
    return filtered


def unique_positions(rows: Iterable[Applicant]) -> list[str]:
    positions = {position for row in rows for position in applicant_positions(row) if position}
    return sorted(positions)


def applicant_stats(rows: Iterable[Applicant], now: datetime | None = None) -> ApplicantStats:
    rows = list(rows)
    cutoff = (now or utcnow()) - timedelta(days=7)
    by_status = {status: 0 for status in APPLICANT_STATUSES}
    for row in rows:
        by_status[row.status] = by_status.get(row.status, 0) + 1
    return ApplicantStats(
        total=len(rows),
        by_status=by_status,
        verified=sum(1 for row in rows if row.email_verified),
        last_7_days=sum(1 for row in rows if as_utc(row.created_at) >= cutoff),
    )


def export_filename(today: date | None = None) -> str:
    return f"applicants_{(today or utcnow().date()).isoformat()}.csv"


def export_csv(rows: Iterable[Applicant]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write(",".join(CSV_HEADERS) + "\n")
    for row in rows:
        writer.writerow(
            [
                row.full_name,
                row.email,
                row.phone,
                "; ".join(applicant_positions(row)),
                row.experience_years,
                row.status,
                as_utc(row.created_at).date().isoformat() if row.created_at else "",
                row.notes or "",
            ]
        )
    return buffer.getvalue()


def resolve_resume_link(
    applicant: Applicant,
    storage: StorageClient,
    *,
    is_demo: bool,
    expires_in: int = 60,
) -> ResumeLink:
    """Work out how an admin downloads an applicant's resume."""
    if not applicant.resume_url:
        raise NotFound(f"applicant {applicant.id} has no resume on file")

    filename = applicant.resume_filename or "resume"
    if is_demo or applicant.resume_url.startswith("demo://"):
        return ResumeLink(
            simulated=True,
            message=f"Demo mode: Resume download simulated. Would download: {filename}",
        )
    if applicant.resume_url.startswith(("http://", "https://")):
        return ResumeLink(url=applicant.resume_url)

    url = storage.create_signed_url("resumes", applicant.resume_url, expires_in)
    return ResumeLink(url=url)
