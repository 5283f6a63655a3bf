from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from uniquestaffing.core.preferences import (
    build_consent,
    dismissal_stamp,
    extract_tracking,
    negotiate_language,
    parse_consent,
    resolve_language,
    resolve_theme,
    serialize_consent,
    should_show_talent_modal,
    toggle_theme,
    translate,
)

NOW = datetime(2026, 5, 1, 9, 0, tzinfo=UTC)


def test_consent_choices() -> None:
    everything = build_consent("all", now=NOW)
    assert (everything.essential, everything.analytics, everything.marketing) == (True, True, True)
    essential = build_consent("essential", now=NOW)
    assert (essential.analytics, essential.marketing) == (False, False)
    custom = build_consent("custom", analytics=True, now=NOW)
    assert (custom.analytics, custom.marketing) == (True, False)
    assert custom.timestamp == NOW.isoformat()
    with pytest.raises(ValueError):
        build_consent("none")


def test_consent_cookie_parsing() -> None:
    stored = serialize_consent(build_consent("custom", marketing=True, now=NOW))
    parsed = parse_consent(stored)
    assert parsed is not None and parsed.marketing and not parsed.analytics
    assert parse_consent('{"essential": false, "analytics": true}').essential is True
    assert parse_consent(None) is None
    assert parse_consent("not json") is None


def test_theme_helpers() -> None:
    assert resolve_theme(None) == "light"
    assert resolve_theme("purple") == "light"
    assert resolve_theme("dark") == "dark"
    assert toggle_theme("light") == "dark"
    assert toggle_theme("dark") == "light"


def test_language_negotiation() -> None:
    assert negotiate_language("es-MX,es;q=0.9,en;q=0.8") == "es"
    assert negotiate_language("fr-FR,en;q=0.5,es;q=0.7") == "es"
    assert negotiate_language("de-DE") == "en"
    assert negotiate_language(None) == "en"
    assert resolve_language("en", "es-ES") == "en"
    assert resolve_language("xx", "es-ES") == "es"


def test_translation_falls_back_to_english() -> None:
    assert translate("es", "cookies.acceptAll") == "Aceptar todas"
    assert translate("fr", "cookies.acceptAll") == "Accept all"
    assert translate("es", "missing.key") == "missing.key"


def test_talent_modal_cooldown() -> None:
    assert should_show_talent_modal(None, 24, now=NOW)
    assert should_show_talent_modal("garbage", 24, now=NOW)
    recent = dismissal_stamp(NOW - timedelta(hours=2))
    assert not should_show_talent_modal(recent, 24, now=NOW)
    old = dismissal_stamp(NOW - timedelta(hours=25))
    assert should_show_talent_modal(old, 24, now=NOW)


def test_tracking_extraction() -> None:
    assert extract_tracking({}) is None
    tracking = extract_tracking({"utm_source": " facebook ", "utm_campaign": "spring", "other": "x"})
    assert tracking is not None
    assert tracking.utm_source == "facebook"
    assert tracking.utm_campaign == "spring"
    assert tracking.utm_medium == ""


def test_talent_modal_ignores_out_of_range_stamp() -> None:
    assert should_show_talent_modal("9" * 30, 24, now=NOW)
    assert should_show_talent_modal("-" + "9" * 30, 24, now=NOW)
