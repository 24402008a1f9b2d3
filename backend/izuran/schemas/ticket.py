"""
Pydantic schemas for purchases, issued tickets and door scans.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from izuran.schemas.event import EventSummary
from izuran.schemas.ticket_limit import TICKET_TYPE_PATTERN


class AttendeeInfo(BaseModel):
    attendee_name: str = Field(..., min_length=1, max_length=255)
    attendee_email: EmailStr
    attendee_phone: Optional[str] = Field(None, max_length=50)


class TicketPurchase(AttendeeInfo):
    ticket_type: str = Field(..., pattern=TICKET_TYPE_PATTERN)
    quantity: int = Field(default=1, gt=0)


class TicketResponse(BaseModel):
    id: int
    ticket_id: str
    event_id: int
    ticket_type: str
    owner_user_id: int
    attendee_name: str
    attendee_email: str
    attendee_phone: Optional[str]
    price: Decimal
    currency: str
    status: str
    code: str
    used_at: Optional[datetime]
    used_by: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketWithEvent(TicketResponse):
    event: EventSummary


class PurchaseResponse(BaseModel):
    message: str
    event_id: int
    ticket_type: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    currency: str
    tickets: list[TicketResponse]


class QRCodeResponse(BaseModel):
    ticket_id: str
    qr_code_data_url: str


class ScanRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=2048)
    scanner_id: Optional[str] = Field(None, min_length=1, max_length=100)


class ScanOutcome(str, Enum):
    ACCEPTED = "accepted"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    VOID = "void"


class ScanResult(BaseModel):
    accepted: bool
    reason: ScanOutcome
    message: str
    ticket: Optional[TicketResponse] = None
    scanned_at: datetime


class VoidResponse(BaseModel):
    message: str
    ticket_id: str
    status: str
