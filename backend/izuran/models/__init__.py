from izuran.models.user import User
from izuran.models.event import Event
from izuran.models.ticket_limit import TicketLimit
from izuran.models.ticket import Ticket
from izuran.models.validation_log import TicketValidationLog

__all__ = ["User", "Event", "TicketLimit", "Ticket", "TicketValidationLog"]
