from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest

from uniquestaffing.config import get_settings
from uniquestaffing.core.storage import StorageClient
from uniquestaffing.errors import NotFound


def test_upload_and_signed_url_round_trip() -> None:
    storage = StorageClient(get_settings())
    path = storage.upload("resumes", "cv.pdf", b"%PDF-1.4", folder="2026")
    assert path.startswith("2026/") and path.endswith(".pdf")
    assert storage.open("resumes", path).read_bytes() == b"%PDF-1.4"

    url = storage.create_signed_url("resumes", path, expires_in=60, now=1_000)
    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    expires = int(params["expires"][0])
    signature = params["signature"][0]

    assert parsed.path == f"/storage/resumes/{path}"
    assert expires == 1_060
    assert storage.verify_signature("resumes", path, expires, signature, now=1_030)
    assert not storage.verify_signature("resumes", path, expires, signature, now=1_061)
    assert not storage.verify_signature("resumes", path, expires, "0" * 64, now=1_030)
    assert not storage.verify_signature("resumes", "other.pdf", expires, signature, now=1_030)


def test_rejects_unknown_bucket_and_path_escape() -> None:
    storage = StorageClient(get_settings())
    with pytest.raises(NotFound):
        storage.upload("public", "cv.pdf", b"%PDF")
    with pytest.raises(NotFound):
        storage.open("resumes", "../documents/secret.pdf")
    with pytest.raises(NotFound):
        storage.create_signed_url("resumes", "missing.pdf")


def test_remove_object() -> None:
    storage = StorageClient(get_settings())
    path = storage.upload("documents", "id.png", b"\x89PNG")
    assert storage.remove("documents", path)
    assert not storage.remove("documents", path)
