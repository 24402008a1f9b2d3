"""
SMTP ticket confirmations.

One message per purchase, plain text plus HTML, with a QR PNG attachment
per ticket. smtplib is blocking, so the send runs in a worker thread.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from html import escape

from izuran.core.config import Settings
from izuran.core.logging import get_logger
from izuran.services.interfaces.notifier import TicketNotifier, TicketConfirmation
from izuran.services.ticket_codes import render_qr_png

logger = get_logger(__name__)


def build_message(confirmation: TicketConfirmation, sender: str) -> EmailMessage:
    when = confirmation.event_date.strftime("%A %d %B %Y, %H:%M UTC")
    where = confirmation.event_location or "TBA"
    count = len(confirmation.tickets)

    msg = EmailMessage()
    msg["Subject"] = f"Your ticket{'s' if count > 1 else ''} for {confirmation.event_name} - Izuran Events"
    msg["From"] = sender
    msg["To"] = confirmation.attendee_email

    lines = [
        f"Hi {confirmation.attendee_name},",
        "",
        f"Thank you for your purchase. You are going to {confirmation.event_name}.",
        f"When: {when}",
        f"Where: {where}",
        "",
    ]
    for ticket in confirmation.tickets:
        lines.append(f"- {ticket.ticket_id} ({ticket.ticket_type}) {ticket.price} {ticket.currency}")
    lines += ["", "Show the attached QR code at the entrance. Each code admits once.", "", "Izuran"]
    msg.set_content("\n".join(lines))

    items = "".join(
        f"<li><strong>{escape(t.ticket_id)}</strong> &middot; {escape(t.ticket_type)} &middot; "
        f"{t.price} {escape(t.currency)}</li>"
        for t in confirmation.tickets
    )
    msg.add_alternative(
        f"<p>Hi {escape(confirmation.attendee_name)},</p>"
        f"<p>Thank you for your purchase. You are going to "
        f"<strong>{escape(confirmation.event_name)}</strong>.</p>"
        f"<p>When: {escape(when)}<br>Where: {escape(where)}</p>"
        f"<ul>{items}</ul>"
        f"<p>Show the attached QR code at the entrance. Each code admits once.</p>"
        f"<p>Izuran</p>",
        subtype="html",
    )

    for ticket in confirmation.tickets:
        msg.add_attachment(
            render_qr_png(ticket.code),
            maintype="image",
            subtype="png",
            filename=f"ticket-{ticket.ticket_id}.png",
        )
    return msg


class EmailNotifier(TicketNotifier):

    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.sender = settings.SMTP_FROM
        self.starttls = settings.SMTP_STARTTLS

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)

    async def send_confirmation(self, confirmation: TicketConfirmation) -> None:
        msg = build_message(confirmation, self.sender)
        await asyncio.to_thread(self._send, msg)
        logger.info(
            "ticket_email_sent",
            attendee_email=confirmation.attendee_email,
            event=confirmation.event_name,
            tickets=len(confirmation.tickets),
        )
