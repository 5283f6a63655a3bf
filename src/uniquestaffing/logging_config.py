from __future__ import annotations

import logging

from uniquestaffing.config import get_settings

# Libraries that log every request at INFO.
QUIET_LOGGERS = ("urllib3", "httpx", "multipart", "sqlalchemy.engine")

_LOG_CONFIGURED = False


def configure_logging() -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=f"%(asctime)s %(levelname)s [{settings.app_env}] [%(name)s] %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    _LOG_CONFIGURED = True
