"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notifier import TicketNotifier, TicketConfirmation, IssuedTicket
from .logging_notifier import LoggingNotifier

__all__ = ['TicketNotifier', 'TicketConfirmation', 'IssuedTicket', 'LoggingNotifier']
