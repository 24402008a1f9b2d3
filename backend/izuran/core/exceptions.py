"""
Ticketing error taxonomy.

Each error is an HTTPException so services can raise them directly and
FastAPI renders them. `reason` is a stable machine-readable code that
clients (and the scanner UI) switch on; `detail` is the human message.
"""

from typing import Optional

from fastapi import HTTPException, status


class TicketingError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    reason: str = "error"
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class NotFound(TicketingError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"
    default_detail = "Not found"


class SoldOut(TicketingError):
    status_code = status.HTTP_409_CONFLICT
    reason = "sold_out"
    default_detail = "No tickets available"


class AlreadyUsed(TicketingError):
    status_code = status.HTTP_409_CONFLICT
    reason = "already_used"
    default_detail = "Ticket has already been used"


class TicketVoid(TicketingError):
    status_code = status.HTTP_409_CONFLICT
    reason = "void"
    default_detail = "Ticket is void"


class Unauthorized(TicketingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "unauthorized"
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(TicketingError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "forbidden"
    default_detail = "Access denied"


class ValidationError(TicketingError):
    """Well-formed input that violates a business rule."""

    status_code = status.HTTP_400_BAD_REQUEST
    reason = "validation_error"
    default_detail = "Invalid request"
