"""Exception hierarchy for manuscript operations.

Each error carries the HTTP status the API answers with. Store failures are
not wrapped: they arrive as `django.db.DatabaseError` and are reported as 500.
"""

from typing import Optional


class ManuscriptError(Exception):
    """Base exception for manuscript operations."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ValidationFailed(ManuscriptError):
    """Request fields are missing or malformed. Nothing was written."""

    status_code = 400


class NotFound(ManuscriptError):
    """The referenced row is absent from the expected parent scope."""

    status_code = 404
