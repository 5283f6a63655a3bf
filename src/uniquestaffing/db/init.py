from __future__ import annotations

import logging
from pathlib import Path

from uniquestaffing.config import get_settings
from uniquestaffing.core.storage import StorageClient
from uniquestaffing.db import models  # noqa: F401
from uniquestaffing.db.base import Base
from uniquestaffing.db.seed import seed_demo_applicants
from uniquestaffing.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir, settings.storage_dir]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)
    StorageClient(settings).ensure_buckets()


def init_database() -> dict[str, int]:
    settings = get_settings()
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)

    inserted = 0
    if settings.is_demo_mode and settings.seed_demo_data:
        with SessionLocal() as session:
            inserted = seed_demo_applicants(session)
        if inserted:
            logger.info("Seeded %s demo applicants", inserted)
    return {"seeded_applicants": inserted}
