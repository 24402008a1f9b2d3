"""
Notifier factory.
Configures which confirmation channel purchases use.
"""

from typing import Optional

from izuran.services.interfaces.notifier import TicketNotifier
from izuran.services.interfaces.logging_notifier import LoggingNotifier
from izuran.services.email_notifier import EmailNotifier
from izuran.core.config import get_settings


def build_notifier() -> TicketNotifier:
    """
    NOTIFIER=smtp sends real e-mail; anything else logs only.
    """
    settings = get_settings()
    if settings.NOTIFIER == "smtp":
        return EmailNotifier(settings)
    return LoggingNotifier()


_notifier: Optional[TicketNotifier] = None


def get_notifier() -> TicketNotifier:
    """FastAPI dependency returning the process-wide notifier."""
    global _notifier
    if _notifier is None:
        _notifier = build_notifier()
    return _notifier
