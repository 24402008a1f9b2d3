"""
Ticket confirmation interface.
Purchases hand issued tickets to a notifier after the transaction commits.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class IssuedTicket:
    """Detached snapshot of a ticket, safe to use after the session closes."""

    ticket_id: str
    ticket_type: str
    code: str
    price: Decimal
    currency: str


@dataclass(frozen=True)
class TicketConfirmation:
    attendee_name: str
    attendee_email: str
    event_name: str
    event_date: datetime
    event_location: Optional[str]
    tickets: tuple[IssuedTicket, ...]


class TicketNotifier(ABC):
    """
    Delivers a purchase confirmation with each ticket's code in scannable form.

    Implementations:
    - LoggingNotifier: structured log line per confirmation (development)
    - EmailNotifier: SMTP message with one QR PNG attachment per ticket
    """

    @abstractmethod
    async def send_confirmation(self, confirmation: TicketConfirmation) -> None:
        """
        Deliver the confirmation. May raise; callers log and count failures
        but never undo the purchase.
        """
