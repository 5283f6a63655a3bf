from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from uniquestaffing.cli.app import app
from uniquestaffing.db.repositories import Repository
from uniquestaffing.db.session import SessionLocal

runner = CliRunner()


def test_seed_list_and_export(tmp_path: Path) -> None:
    seeded = runner.invoke(app, ["seed-demo"])
    assert seeded.exit_code == 0, seeded.output
    assert json.loads(seeded.stdout)["seeded_applicants"] == 5

    listed = runner.invoke(app, ["applicants", "list", "--status", "new"])
    assert listed.exit_code == 0, listed.output
    rows = json.loads(listed.stdout)
    assert [row["full_name"] for row in rows] == ["Maria Garcia"]

    out = tmp_path / "applicants.csv"
    exported = runner.invoke(app, ["applicants", "export", "--out", str(out)])
    assert exported.exit_code == 0, exported.output
    assert json.loads(exported.stdout)["rows"] == 5
    assert out.read_text(encoding="utf-8").startswith("Name,Email,Phone")


def test_set_status_and_delete() -> None:
    runner.invoke(app, ["seed-demo"])
    with SessionLocal() as db:
        applicant_id = Repository(db).list_applicants(status="new")[0].id

    updated = runner.invoke(app, ["applicants", "set-status", "--id", applicant_id, "--status", "hired"])
    assert updated.exit_code == 0, updated.output
    assert json.loads(updated.stdout)["status"] == "hired"

    invalid = runner.invoke(app, ["applicants", "set-status", "--id", applicant_id, "--status", "archived"])
    assert invalid.exit_code != 0

    deleted = runner.invoke(app, ["applicants", "delete", "--id", applicant_id])
    assert deleted.exit_code == 0, deleted.output
    missing = runner.invoke(app, ["applicants", "delete", "--id", applicant_id])
    assert missing.exit_code != 0


def test_verify_document(tmp_path: Path) -> None:
    good = tmp_path / "resume.pdf"
    good.write_bytes(b"%PDF-1.4\nresume\n")
    result = runner.invoke(app, ["verify-document", "--file", str(good)])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["valid"] is True

    bad = tmp_path / "resume.docx"
    bad.write_bytes(b"%PDF-1.4\nnot a docx\n")
    docx_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    result = runner.invoke(app, ["verify-document", "--file", str(bad), "--content-type", docx_type])
    assert result.exit_code == 1
    assert "does not match expected format" in json.loads(result.stdout)["error"]
