from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

_WORKDIR = Path(tempfile.mkdtemp(prefix="uniquestaffing-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_WORKDIR / 'test.db'}"
os.environ["DATA_DIR"] = str(_WORKDIR)
os.environ["STORAGE_DIR"] = str(_WORKDIR / "storage")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BACKEND_URL"] = ""
os.environ["BACKEND_ANON_KEY"] = ""
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["ADMIN_NOTIFY_EMAIL"] = ""
os.environ["SMTP_HOST"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from uniquestaffing.api.app import create_app  # noqa: E402
from uniquestaffing.core.runtime import get_mailer  # noqa: E402
from uniquestaffing.db.base import Base  # noqa: E402
from uniquestaffing.db.init import ensure_data_directories  # noqa: E402
from uniquestaffing.db.session import SessionLocal, engine  # noqa: E402

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"


@pytest.fixture(autouse=True)
def reset_db() -> Iterator[None]:
    ensure_data_directories()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    get_mailer().outbox.clear()
    yield


@pytest.fixture
def db() -> Iterator:
    with SessionLocal() as session:
        yield session


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def admin_client(client: TestClient) -> TestClient:
    response = client.post(
        "/api/auth/login",
        json={"email": "demo@uniquestaffing.com", "password": "demo123"},
    )
    assert response.status_code == 200
    return client


@pytest.fixture
def application_values() -> dict:
    return {
        "full_name": "Dana Brooks",
        "email": "dana.brooks@example.com",
        "phone": "(410) 555-0199",
        "positions_interested": ["Warehouse Associate"],
        "experience_years": 4,
        "cover_letter": "Reliable and punctual.",
    }
