"""
Pydantic schemas for ticket inventory.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

TICKET_TYPE_PATTERN = r"^[a-z][a-z0-9_]{1,31}$"


class TicketLimitCreate(BaseModel):
    ticket_type: str = Field(..., pattern=TICKET_TYPE_PATTERN)
    max_tickets: int = Field(..., ge=0, le=1_000_000)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    currency: str = Field("USD", pattern=r"^[A-Z]{3}$")
    is_active: bool = True


class TicketLimitUpdate(BaseModel):
    max_tickets: Optional[int] = Field(None, ge=0, le=1_000_000)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(None, pattern=r"^[A-Z]{3}$")
    is_active: Optional[bool] = None


class TicketLimitResponse(BaseModel):
    id: int
    event_id: int
    ticket_type: str
    max_tickets: int
    sold_tickets: int
    available: int
    price: Decimal
    currency: str
    is_active: bool

    model_config = {"from_attributes": True}


class TicketAvailability(BaseModel):
    """Public view of an active limit; capacity internals stay admin-only."""

    ticket_type: str
    price: Decimal
    currency: str
    available: int
    sold_out: bool

    model_config = {"from_attributes": True}
