from __future__ import annotations

from typing import Any


class StaffingError(Exception):
    """Base class for errors raised by the applicant and auth services."""


class ValidationFailed(StaffingError):
    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{key}: {value}" for key, value in errors.items()))


class DuplicateApplicant(StaffingError):
    def __init__(self, field: str, existing: dict[str, Any] | None = None):
        self.field = field
        self.existing = existing or {}
        super().__init__(f"an application with this {field} already exists")


class AuthenticationFailed(StaffingError):
    pass


class NotFound(StaffingError):
    pass


class DocumentRejected(StaffingError):
    pass


class BackendUnavailable(StaffingError):
    pass
