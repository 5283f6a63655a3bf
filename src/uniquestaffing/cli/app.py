from __future__ import annotations

import json
import mimetypes
from pathlib import Path

import typer
import uvicorn

from uniquestaffing.api.app import create_app
from uniquestaffing.config import get_settings
from uniquestaffing.core.dashboard import applicant_positions, export_csv, filter_applicants
from uniquestaffing.core.documents import ALLOWED_BUCKETS, verify_document
from uniquestaffing.db.init import init_database
from uniquestaffing.db.repositories import Repository
from uniquestaffing.db.seed import seed_demo_applicants
from uniquestaffing.db.session import SessionLocal
from uniquestaffing.errors import NotFound
from uniquestaffing.logging_config import configure_logging
from uniquestaffing.types import APPLICANT_STATUSES

app = typer.Typer(help="Unique Staffing Professionals CLI")
applicants_app = typer.Typer(help="Review and manage applicants")

app.add_typer(applicants_app, name="applicants")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Create data directories, storage buckets and tables; seed demo data in demo mode."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("seed-demo")
def seed_demo() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        inserted = seed_demo_applicants(db)
    typer.echo(json.dumps({"seeded_applicants": inserted}, indent=2))


@applicants_app.command("list")
def applicants_list(
    status: str = typer.Option("all", "--status"),
    search: str = typer.Option("", "--search"),
    limit: int = typer.Option(50, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        rows = filter_applicants(Repository(db).list_applicants(), query=search, status=status)
        typer.echo(
            json.dumps(
                [
                    {
                        "id": row.id,
                        "full_name": row.full_name,
                        "email": row.email,
                        "positions": applicant_positions(row),
                        "status": row.status,
                        "email_verified": row.email_verified,
                        "created_at": row.created_at.isoformat() if row.created_at else None,
                    }
                    for row in rows[:limit]
                ],
                indent=2,
            )
        )


@applicants_app.command("export")
def applicants_export(
    out: Path = typer.Option(..., "--out"),
    status: str = typer.Option("all", "--status"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        rows = filter_applicants(Repository(db).list_applicants(), status=status)
        out.write_text(export_csv(rows), encoding="utf-8")
    typer.echo(json.dumps({"path": str(out), "rows": len(rows)}, indent=2))


@applicants_app.command("set-status")
def applicants_set_status(
    applicant_id: str = typer.Option(..., "--id"),
    status: str = typer.Option(..., "--status"),
) -> None:
    configure_logging()
    ensure_initialized()
    if status not in APPLICANT_STATUSES:
        raise typer.BadParameter(f"status must be one of: {', '.join(APPLICANT_STATUSES)}")
    with SessionLocal() as db:
        try:
            applicant = Repository(db).set_applicant_status(applicant_id, status)
        except NotFound as exc:
            raise typer.BadParameter(str(exc)) from exc
        typer.echo(json.dumps({"id": applicant.id, "status": applicant.status}, indent=2))


@applicants_app.command("delete")
def applicants_delete(applicant_id: str = typer.Option(..., "--id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            Repository(db).delete_applicant(applicant_id)
        except NotFound as exc:
            raise typer.BadParameter(str(exc)) from exc
    typer.echo(json.dumps({"id": applicant_id, "deleted": True}, indent=2))


@app.command("verify-document")
def verify_document_cmd(
    file: Path = typer.Option(..., "--file", exists=True, readable=True, dir_okay=False),
    bucket: str = typer.Option("resumes", "--bucket"),
    content_type: str | None = typer.Option(None, "--content-type"),
) -> None:
    configure_logging()
    if bucket not in ALLOWED_BUCKETS:
        raise typer.BadParameter(f"bucket must be one of: {', '.join(ALLOWED_BUCKETS)}")
    guessed = content_type or mimetypes.guess_type(file.name)[0] or "application/octet-stream"
    result = verify_document(file.name, guessed, file.read_bytes(), bucket)
    typer.echo(json.dumps(result.model_dump(), indent=2))
    if not result.valid:
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
