from __future__ import annotations

from bs4 import BeautifulSoup
from fastapi.testclient import TestClient
from sqlalchemy import select

from uniquestaffing.api.app import create_app
from uniquestaffing.core.preferences import dismissal_stamp
from uniquestaffing.core.runtime import get_mailer
from uniquestaffing.db.models import Applicant
from uniquestaffing.db.session import SessionLocal

PDF = b"%PDF-1.4\nresume\n"


def _soup(response) -> BeautifulSoup:
    return BeautifulSoup(response.text, "html.parser")


def _form(**overrides: object) -> dict:
    values = {
        "full_name": "Keisha Moore",
        "email": "keisha@example.com",
        "phone": "443-555-0142",
        "positions_interested": ["Medical Receptionist"],
        "experience_years": "2",
    }
    values.update(overrides)
    return values


def test_home_page_renders_sections(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    soup = _soup(response)

    assert soup.html["lang"] == "en"
    assert soup.select_one('[data-testid="navigation"]') is not None
    assert soup.select_one('[data-testid="hero"]') is not None
    assert soup.select_one("#services") is not None
    assert soup.select_one("form#apply-form") is not None
    assert soup.select_one('[data-testid="cookie-banner"]') is not None
    assert soup.select_one('[data-testid="talent-modal"]') is not None


def test_static_pages_and_favicon(client: TestClient) -> None:
    for path in ("/apply", "/employers", "/forms"):
        assert client.get(path).status_code == 200
    assert client.get("/favicon.ico").status_code == 200
    assert client.get("/static/site.css").status_code == 200


def test_spanish_from_header_and_cookie(client: TestClient) -> None:
    soup = _soup(client.get("/", headers={"Accept-Language": "es-MX,es;q=0.9"}))
    assert soup.html["lang"] == "es"
    assert "Aceptar todas" in soup.select_one('[data-testid="cookie-banner"]').get_text()

    response = client.post("/preferences/language", data={"language": "en", "next": "/apply"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/apply"
    soup = _soup(client.get("/", headers={"Accept-Language": "es-MX"}))
    assert soup.html["lang"] == "en"

    assert client.post("/preferences/language", data={"language": "fr"}).status_code == 400


def test_theme_toggle_persists(client: TestClient) -> None:
    client.post("/preferences/theme", data={"next": "/"}, follow_redirects=False)
    assert _soup(client.get("/")).html["class"] == ["dark"]
    client.post("/preferences/theme", data={"next": "/"}, follow_redirects=False)
    assert _soup(client.get("/")).html["class"] == ["light"]


def test_cookie_consent_hides_banner(client: TestClient) -> None:
    response = client.post(
        "/preferences/consent",
        data={"choice": "custom", "analytics": "true", "next": "https://evil.example.com"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert "cookie_consent" in response.headers["set-cookie"]
    assert _soup(client.get("/")).select_one('[data-testid="cookie-banner"]') is None
    assert client.post("/preferences/consent", data={"choice": "bogus"}).status_code == 400


def test_talent_modal_dismissal(client: TestClient) -> None:
    client.post("/talent-modal/dismiss", data={"next": "/"}, follow_redirects=False)
    assert _soup(client.get("/")).select_one('[data-testid="talent-modal"]') is None

    expired = TestClient(create_app(), cookies={"talent_network_dismissed": "0"})
    assert _soup(expired.get("/")).select_one('[data-testid="talent-modal"]') is not None

    recent = TestClient(create_app(), cookies={"talent_network_dismissed": dismissal_stamp()})
    assert _soup(recent.get("/")).select_one('[data-testid="talent-modal"]') is None


def test_apply_success_with_tracking_and_resume(client: TestClient) -> None:
    client.get("/", params={"utm_source": "facebook", "utm_medium": "social", "utm_campaign": "fall"})
    response = client.post(
        "/apply",
        data=_form(),
        files={"resume": ("keisha.pdf", PDF, "application/pdf")},
    )
    assert response.status_code == 200
    success = _soup(response).select_one('[data-testid="apply-success"]')
    assert success is not None
    assert "Thank you, Keisha Moore!" in success.get_text()

    with SessionLocal() as session:
        applicant = session.scalars(select(Applicant)).one()
        assert applicant.utm_source == "facebook"
        assert applicant.utm_campaign == "fall"
        assert applicant.resume_filename == "keisha.pdf"
    assert get_mailer().outbox[0].to == "keisha@example.com"


def test_apply_shows_field_errors(client: TestClient) -> None:
    response = client.post("/apply", data=_form(email="nope", positions_interested=[]))
    assert response.status_code == 400
    soup = _soup(response)
    assert soup.select_one('[data-field="email"]').get_text() == "Please enter a valid email address"
    assert soup.select_one('[data-field="positions_interested"]').get_text() == "Please select at least one position"
    assert soup.select_one("#full_name")["value"] == "Keisha Moore"


def test_apply_rejects_duplicates_and_bad_resume(client: TestClient) -> None:
    assert client.post("/apply", data=_form()).status_code == 200

    duplicate = client.post("/apply", data=_form(email="someone.else@example.com"))
    assert duplicate.status_code == 409
    message = _soup(duplicate).select_one('[data-field="phone"]').get_text()
    assert message.startswith("An application with this phone number already exists (submitted on ")

    bad_resume = client.post(
        "/apply",
        data=_form(email="third@example.com", phone="443-555-0199"),
        files={"resume": ("cv.pdf", b"<script>alert(1)</script>", "application/pdf")},
    )
    assert bad_resume.status_code == 400
    assert _soup(bad_resume).select_one('[data-field="resume"]') is not None


def test_verify_email_page(client: TestClient) -> None:
    client.post("/apply", data=_form())
    token = get_mailer().outbox[0].body.split("token=")[1].strip()

    failed = client.get("/verify-email", params={"token": "bogus"})
    assert failed.status_code == 400
    assert "Verification failed" in failed.text

    verified = client.get("/verify-email", params={"token": token})
    assert verified.status_code == 200
    assert "Email verified" in verified.text


def test_pages_render_with_out_of_range_dismissal_cookie() -> None:
    visitor = TestClient(create_app(), cookies={"talent_network_dismissed": "9" * 30})
    for path in ("/", "/apply", "/employers", "/admin/login"):
        assert visitor.get(path).status_code == 200
    assert _soup(visitor.get("/")).select_one('[data-testid="talent-modal"]') is not None
