from izuran.schemas.user import UserCreate, UserResponse, UserLogin, Token
from izuran.schemas.event import EventCreate, EventResponse, EventListResponse, EventSummary
from izuran.schemas.ticket_limit import (
    TicketLimitCreate, TicketLimitUpdate, TicketLimitResponse, TicketAvailability,
)
from izuran.schemas.ticket import (
    AttendeeInfo, TicketPurchase, TicketResponse, TicketWithEvent, PurchaseResponse,
    QRCodeResponse, ScanRequest, ScanOutcome, ScanResult, VoidResponse,
)

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventResponse", "EventListResponse", "EventSummary",
    "TicketLimitCreate", "TicketLimitUpdate", "TicketLimitResponse", "TicketAvailability",
    "AttendeeInfo", "TicketPurchase", "TicketResponse", "TicketWithEvent", "PurchaseResponse",
    "QRCodeResponse", "ScanRequest", "ScanOutcome", "ScanResult", "VoidResponse",
]
