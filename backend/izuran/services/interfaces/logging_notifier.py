"""
Notifier that only logs. Default outside production.
"""

from izuran.services.interfaces.notifier import TicketNotifier, TicketConfirmation
from izuran.core.logging import get_logger

logger = get_logger(__name__)


class LoggingNotifier(TicketNotifier):

    async def send_confirmation(self, confirmation: TicketConfirmation) -> None:
        logger.info(
            "ticket_confirmation_logged",
            attendee_email=confirmation.attendee_email,
            event=confirmation.event_name,
            ticket_ids=[t.ticket_id for t in confirmation.tickets],
        )
