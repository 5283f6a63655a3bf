from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from uniquestaffing.core.validation import (
    ApplicationForm,
    form_errors,
    generate_verification_token,
    normalize_phone,
    to_e164,
    token_expiry,
    validate_email,
    validate_linkedin_url,
    validate_url,
)


def _errors(**values: object) -> dict[str, str]:
    base = {
        "full_name": "Dana Brooks",
        "email": "dana@example.com",
        "phone": "410-555-0199",
        "positions_interested": ["Warehouse Associate"],
    }
    base.update(values)
    with pytest.raises(ValidationError) as exc_info:
        ApplicationForm.model_validate(base)
    return form_errors(exc_info.value)


def test_phone_normalization_to_e164() -> None:
    assert normalize_phone("(410) 555-0199") == "4105550199"
    assert to_e164("(410) 555-0199") == "+14105550199"
    assert to_e164("1-410-555-0199") == "+14105550199"
    assert to_e164("+44 20 7946 0958") == "+442079460958"
    assert to_e164("555-0199") is None
    assert to_e164("") is None


def test_email_and_url_checks() -> None:
    assert validate_email("someone@example.com")
    assert not validate_email("someone@example")
    assert not validate_email("not an email")
    assert validate_url("")
    assert validate_url("https://example.com/jobs/1")
    assert not validate_url("ftp://example.com")
    assert validate_linkedin_url("https://www.linkedin.com/in/dana")
    assert not validate_linkedin_url("https://example.com/in/dana")


def test_form_normalizes_values() -> None:
    form = ApplicationForm.model_validate(
        {
            "full_name": "  Dana   Brooks ",
            "email": "Dana@Example.COM ",
            "phone": "410.555.0199",
            "positions_interested": ["Forklift Operator", "Forklift Operator", " ", "Data Entry Clerk"],
            "cover_letter": "   ",
        }
    )
    assert form.full_name == "Dana Brooks"
    assert form.email == "dana@example.com"
    assert form.phone_normalized == "+14105550199"
    assert form.positions_interested == ["Forklift Operator", "Data Entry Clerk"]
    assert form.position_interested == "Forklift Operator"
    assert form.cover_letter is None


def test_form_reports_field_messages() -> None:
    assert _errors(full_name="D") == {"full_name": "Please enter your full name"}
    assert _errors(email="nope") == {"email": "Please enter a valid email address"}
    assert _errors(phone="123") == {"phone": "Please enter a valid phone number"}
    assert _errors(positions_interested=[]) == {"positions_interested": "Please select at least one position"}
    assert "experience_years" in _errors(experience_years=61)


def test_form_rejects_bad_links() -> None:
    assert _errors(linkedin_url="https://example.com/me") == {
        "linkedin_url": "Please enter a LinkedIn profile URL"
    }
    assert _errors(portfolio_url="javascript:alert(1)") == {"portfolio_url": "Please enter a valid http(s) URL"}


def test_missing_fields_are_required() -> None:
    with pytest.raises(ValidationError) as exc_info:
        ApplicationForm.model_validate({})
    errors = form_errors(exc_info.value)
    assert errors["full_name"] == "This field is required"
    assert errors["email"] == "This field is required"
    assert errors["phone"] == "This field is required"


def test_verification_token_and_expiry() -> None:
    token = generate_verification_token()
    assert len(token) == 64
    assert token != generate_verification_token()
    now = datetime(2026, 1, 1, tzinfo=UTC)
    assert token_expiry(now) == now + timedelta(hours=24)
