"""
Query errors.

Every failure a submission can end in is a ``QueryError`` subclass with a
``kind`` tag. ``QueryController`` catches them and stores the equivalent
``QueryFailure`` in its state; only the web layer turns that into a plain string.
"""

from __future__ import annotations

from typing import Optional

from core.models import QueryFailure


class QueryError(Exception):
    """Base class for failures surfaced to the user."""

    kind = "transport"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_failure(self) -> QueryFailure:
        return QueryFailure(kind=self.kind, message=self.message, status_code=self.status_code)


class InputValidationError(QueryError):
    """Missing credential or missing/conflicting search target. No request was sent."""

    kind = "validation"


class TransportError(QueryError):
    """Network failure, timeout, or an undecodable response body."""

    kind = "transport"


class ApiError(QueryError):
    """The API answered with a non-success HTTP status."""

    kind = "api"
