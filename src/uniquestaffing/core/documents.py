from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from uniquestaffing.types import DocumentCheck, DocumentDetails

logger = logging.getLogger(__name__)

MB = 1024 * 1024
SCAN_BYTES = 10 * 1024
ALLOWED_BUCKETS = ("resumes", "documents")


@dataclass(frozen=True, slots=True)
class FileTypeRule:
    mime_types: tuple[str, ...]
    max_size_mb: int
    signatures: tuple[bytes, ...] = field(default_factory=tuple)

    @property
    def max_bytes(self) -> int:
        return self.max_size_mb * MB


ALLOWED_FILE_TYPES: dict[str, FileTypeRule] = {
    "pdf": FileTypeRule(("application/pdf",), 5, (b"%PDF",)),
    "doc": FileTypeRule(("application/msword",), 5, (b"\xd0\xcf\x11\xe0",)),
    "docx": FileTypeRule(
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",),
        5,
        (b"PK\x03\x04",),
    ),
    "jpg": FileTypeRule(("image/jpeg",), 10, (b"\xff\xd8\xff",)),
    "jpeg": FileTypeRule(("image/jpeg",), 10, (b"\xff\xd8\xff",)),
    "png": FileTypeRule(("image/png",), 10, (b"\x89PNG",)),
}

SUSPICIOUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<%[^>]*script", re.IGNORECASE),
    re.compile(r"<script[^>]*>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
    re.compile(r"__proto__", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
)


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = 0
    while size >= 1024 ** (index + 1) and index < len(units) - 1:
        index += 1
    value = round(size / 1024**index, 2)
    return f"{value:g} {units[index]}"


def file_extension(filename: str) -> str:
    parts = filename.rsplit(".", 1)
    return parts[1].lower() if len(parts) == 2 else ""


def signature_matches(extension: str, head: bytes) -> bool:
    rule = ALLOWED_FILE_TYPES.get(extension)
    if not rule or not rule.signatures:
        return True
    return any(head[: len(signature)] == signature for signature in rule.signatures)


def has_suspicious_content(data: bytes) -> bool:
    text = data[:SCAN_BYTES].decode("utf-8", errors="ignore")
    return any(pattern.search(text) for pattern in SUSPICIOUS_PATTERNS)


def _rejected(message: str) -> DocumentCheck:
    logger.info("Document rejected: %s", message)
    return DocumentCheck(valid=False, error=message)


def _check_metadata(filename: str, content_type: str, size: int, bucket: str) -> DocumentCheck | None:
    extension = file_extension(filename)
    rule = ALLOWED_FILE_TYPES.get(extension)
    if not extension or rule is None:
        allowed = ", ".join(ALLOWED_FILE_TYPES)
        return _rejected(f"File type '.{extension or 'unknown'}' is not allowed. Allowed types: {allowed}")

    if (content_type or "").lower() not in rule.mime_types:
        return _rejected(f"Content type '{content_type}' does not match file extension '.{extension}'")

    if size > rule.max_bytes:
        return _rejected(
            f"File size ({format_bytes(size)}) exceeds maximum allowed size ({format_bytes(rule.max_bytes)})"
        )

    if size == 0:
        return _rejected("File is empty")

    if bucket not in ALLOWED_BUCKETS:
        return _rejected(f"Upload to bucket '{bucket}' is not allowed")
    return None


def _accepted(filename: str, content_type: str, size: int) -> DocumentCheck:
    return DocumentCheck(
        valid=True,
        details=DocumentDetails(
            filename=filename,
            extension=file_extension(filename),
            content_type=content_type,
            size=size,
            size_formatted=format_bytes(size),
            signature_valid=True,
        ),
    )


def verify_document(filename: str, content_type: str, data: bytes, bucket: str = "resumes") -> DocumentCheck:
    """Validate an uploaded file's type, size, magic bytes and content before it is stored."""
    rejected = _check_metadata(filename, content_type, len(data), bucket)
    if rejected:
        return rejected

    extension = file_extension(filename)
    if not signature_matches(extension, data):
        return _rejected(
            f"File content does not match expected format for '.{extension}' files. "
            "The file may be corrupted or misnamed."
        )

    if has_suspicious_content(data):
        return _rejected("File contains potentially malicious content")

    return _accepted(filename, content_type, len(data))


def verify_signature_only(
    filename: str,
    content_type: str,
    size: int,
    signature: list[int] | None = None,
    bucket: str = "resumes",
) -> DocumentCheck:
    """Validate an upload from its metadata and leading bytes, before the body is sent."""
    rejected = _check_metadata(filename, content_type, size, bucket)
    if rejected:
        return rejected

    if signature:
        extension = file_extension(filename)
        head = bytes(value & 0xFF for value in signature)
        if not signature_matches(extension, head):
            return _rejected(
                f"File content does not match expected format for '.{extension}' files. "
                "The file may be corrupted or misnamed."
            )

    return _accepted(filename, content_type, size)
