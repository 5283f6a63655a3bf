from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta

from pydantic import ValidationError

from uniquestaffing.db.base import utcnow
from uniquestaffing.types import LANGUAGES, UTM_FIELDS, CookieConsent, TrackingParams

logger = logging.getLogger(__name__)

CONSENT_COOKIE = "cookie_consent"
THEME_COOKIE = "theme"
LANGUAGE_COOKIE = "language"
TALENT_MODAL_COOKIE = "talent_network_dismissed"
PREFERENCE_COOKIE_MAX_AGE = 365 * 24 * 3600
DEFAULT_LANGUAGE = "en"
DEFAULT_THEME = "light"

LABELS: dict[str, dict[str, str]] = {
    "en": {
        "nav.home": "Home",
        "nav.services": "Services",
        "nav.employers": "Employers",
        "nav.apply": "Apply",
        "nav.admin": "Admin",
        "language.select": "Select language",
        "theme.toggle": "Toggle theme",
        "theme.light": "Light",
        "theme.dark": "Dark",
        "cookies.message": "We use cookies to improve your experience. Choose which cookies you allow.",
        "cookies.acceptAll": "Accept all",
        "cookies.essentialOnly": "Essential only",
        "talentModal.title": "Join our talent network",
        "talentModal.joinNow": "Join now",
        "talentModal.dismiss": "Maybe later",
        "apply.submit": "Submit application",
    },
    "es": {
        "nav.home": "Inicio",
        "nav.services": "Servicios",
        "nav.employers": "Empleadores",
        "nav.apply": "Aplicar",
        "nav.admin": "Administración",
        "language.select": "Seleccionar idioma",
        "theme.toggle": "Cambiar tema",
        "theme.light": "Claro",
        "theme.dark": "Oscuro",
        "cookies.message": "Usamos cookies para mejorar su experiencia. Elija qué cookies permite.",
        "cookies.acceptAll": "Aceptar todas",
        "cookies.essentialOnly": "Solo esenciales",
        "talentModal.title": "Únase a nuestra red de talento",
        "talentModal.joinNow": "Únase ahora",
        "talentModal.dismiss": "Quizás después",
        "apply.submit": "Enviar solicitud",
    },
}


def translate(language: str, key: str) -> str:
    return LABELS.get(language, LABELS[DEFAULT_LANGUAGE]).get(key) or LABELS[DEFAULT_LANGUAGE].get(key, key)


def parse_consent(raw: str | None) -> CookieConsent | None:
    if not raw:
        return None
    try:
        return CookieConsent.model_validate(json.loads(raw))
    except (ValueError, ValidationError):
        logger.info("Ignoring unparsable cookie consent value")
        return None


def build_consent(choice: str, *, analytics: bool = False, marketing: bool = False, now: datetime | None = None) -> CookieConsent:
    timestamp = (now or utcnow()).isoformat()
    if choice == "all":
        return CookieConsent(analytics=True, marketing=True, timestamp=timestamp)
    if choice == "essential":
        return CookieConsent(timestamp=timestamp)
    if choice == "custom":
        return CookieConsent(analytics=analytics, marketing=marketing, timestamp=timestamp)
    raise ValueError(f"unsupported consent choice '{choice}'")


def serialize_consent(consent: CookieConsent) -> str:
    return json.dumps(consent.model_dump(), separators=(",", ":"))


def resolve_theme(raw: str | None) -> str:
    return raw if raw in {"light", "dark"} else DEFAULT_THEME


def toggle_theme(current: str | None) -> str:
    return "light" if resolve_theme(current) == "dark" else "dark"


def negotiate_language(accept_language: str | None) -> str:
    """Pick the first supported language from an Accept-Language header, honouring q-values."""
    candidates: list[tuple[float, int, str]] = []
    for index, part in enumerate((accept_language or "").split(",")):
        pieces = part.strip().split(";")
        tag = pieces[0].strip().lower()
        if not tag:
            continue
        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        candidates.append((-quality, index, tag.split("-")[0]))

    for quality, _, primary in sorted(candidates):
        if quality < 0 and primary in LANGUAGES:
            return primary
    return DEFAULT_LANGUAGE


def resolve_language(cookie_value: str | None, accept_language: str | None) -> str:
    if cookie_value in LANGUAGES:
        return cookie_value
    return negotiate_language(accept_language)


def validate_language(language: str) -> str:
    if language not in LANGUAGES:
        raise ValueError(f"unsupported language '{language}'")
    return language


def should_show_talent_modal(dismissed_at: str | None, cooldown_hours: int, now: datetime | None = None) -> bool:
    if not dismissed_at:
        return True
    now = now or utcnow()
    try:
        dismissed = datetime.fromtimestamp(int(dismissed_at) / 1000, tz=now.tzinfo)
    except (ValueError, OverflowError, OSError):
        return True
    elapsed = now - dismissed
    return elapsed >= timedelta(hours=cooldown_hours)


def dismissal_stamp(now: datetime | None = None) -> str:
    return str(int((now or utcnow()).timestamp() * 1000))


def extract_tracking(params: Mapping[str, str]) -> TrackingParams | None:
    values = {name: params.get(name, "").strip()[:255] for name in UTM_FIELDS}
    tracking = TrackingParams(**values)
    return None if tracking.is_empty() else tracking
