from __future__ import annotations

from uniquestaffing.config import get_settings
from uniquestaffing.core.mailer import Mailer

_MAILER: Mailer | None = None


def get_mailer() -> Mailer:
    global _MAILER
    if _MAILER is None:
        _MAILER = Mailer(get_settings())
    return _MAILER
