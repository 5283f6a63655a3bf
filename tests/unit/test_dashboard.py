from __future__ import annotations

import csv
import io
from datetime import UTC, date, datetime, timedelta

import pytest

from uniquestaffing.config import get_settings
from uniquestaffing.core.dashboard import (
    CSV_HEADERS,
    applicant_stats,
    export_csv,
    export_filename,
    filter_applicants,
    resolve_resume_link,
    unique_positions,
)
from uniquestaffing.core.storage import StorageClient
from uniquestaffing.db.models import Applicant
from uniquestaffing.errors import NotFound

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def _applicant(name: str, email: str, status: str, days_ago: int, positions: list[str], **extra) -> Applicant:
    return Applicant(
        id=email,
        full_name=name,
        email=email,
        phone="410-555-0100",
        phone_normalized=f"+1410555{days_ago:04d}",
        position_interested=positions[0],
        positions_interested=positions,
        experience_years=2,
        status=status,
        email_verified=extra.pop("email_verified", False),
        created_at=NOW - timedelta(days=days_ago),
        **extra,
    )


@pytest.fixture
def rows() -> list[Applicant]:
    return [
        _applicant("Maria Garcia", "maria@example.com", "new", 1, ["Warehouse Associate", "Forklift Operator"]),
        _applicant("james Wilson", "james@example.com", "reviewing", 3, ["Call Center Agent"], email_verified=True),
        _applicant("Aisha Thompson", "aisha@example.com", "hired", 10, ["Medical Receptionist"], notes='Says "hi"'),
    ]


def test_filter_by_status_position_and_query(rows: list[Applicant]) -> None:
    assert [row.full_name for row in filter_applicants(rows, status="hired")] == ["Aisha Thompson"]
    assert [row.full_name for row in filter_applicants(rows, position="Forklift Operator")] == ["Maria Garcia"]
    assert [row.full_name for row in filter_applicants(rows, query="CALL center")] == ["james Wilson"]
    assert [row.full_name for row in filter_applicants(rows, query="aisha@")] == ["Aisha Thompson"]
    assert filter_applicants(rows, status="rejected") == []


def test_sorting(rows: list[Applicant]) -> None:
    names = lambda sort: [row.full_name for row in filter_applicants(rows, sort=sort)]  # noqa: E731
    assert names("created_at_desc") == ["Maria Garcia", "james Wilson", "Aisha Thompson"]
    assert names("created_at_asc") == ["Aisha Thompson", "james Wilson", "Maria Garcia"]
    assert names("name_asc") == ["Aisha Thompson", "james Wilson", "Maria Garcia"]
    assert names("name_desc") == ["Maria Garcia", "james Wilson", "Aisha Thompson"]


def test_stats_and_positions(rows: list[Applicant]) -> None:
    stats = applicant_stats(rows, now=NOW)
    assert stats.total == 3
    assert stats.by_status == {"new": 1, "reviewing": 1, "shortlisted": 0, "rejected": 0, "hired": 1}
    assert stats.verified == 1
    assert stats.last_7_days == 2
    assert unique_positions(rows) == [
        "Call Center Agent",
        "Forklift Operator",
        "Medical Receptionist",
        "Warehouse Associate",
    ]


def test_csv_export(rows: list[Applicant]) -> None:
    content = export_csv(rows)
    lines = content.splitlines()
    assert lines[0] == ",".join(CSV_HEADERS)

    parsed = list(csv.reader(io.StringIO(content)))
    assert parsed[1][0] == "Maria Garcia"
    assert parsed[1][3] == "Warehouse Associate; Forklift Operator"
    assert parsed[1][6] == "2026-03-09"
    assert parsed[3][7] == 'Says "hi"'
    assert export_filename(date(2026, 3, 10)) == "applicants_2026-03-10.csv"


def test_resume_link_resolution(rows: list[Applicant]) -> None:
    storage = StorageClient(get_settings())
    maria = rows[0]

    with pytest.raises(NotFound):
        resolve_resume_link(maria, storage, is_demo=False)

    maria.resume_url = "https://files.example.com/maria.pdf"
    maria.resume_filename = "maria.pdf"
    simulated = resolve_resume_link(maria, storage, is_demo=True)
    assert simulated.simulated
    assert simulated.message == "Demo mode: Resume download simulated. Would download: maria.pdf"
    assert resolve_resume_link(maria, storage, is_demo=False).url == "https://files.example.com/maria.pdf"

    maria.resume_url = storage.upload("resumes", "maria.pdf", b"%PDF-1.4")
    signed = resolve_resume_link(maria, storage, is_demo=False, expires_in=60)
    assert signed.url.startswith(f"/storage/resumes/{maria.resume_url}?expires=")
