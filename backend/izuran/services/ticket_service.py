"""
Ticket issuance, purchase orchestration and ticket lookups.

A purchase is one transaction: reserve inventory, then issue one ticket row
per unit. The confirmation goes out only after the caller commits, so a
failed purchase never e-mails a code and a failed e-mail never undoes a
purchase.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from izuran.models.event import Event
from izuran.models.ticket import Ticket
from izuran.schemas.ticket import AttendeeInfo, TicketPurchase
from izuran.services.event_service import get_event, has_ended
from izuran.services.inventory_service import Reservation, reserve, release
from izuran.services.interfaces.notifier import (
    TicketNotifier,
    TicketConfirmation,
    IssuedTicket,
)
from izuran.services.ticket_codes import generate_ticket_id, mint_ticket_code
from izuran.core.config import get_settings
from izuran.core.exceptions import NotFound, Forbidden, AlreadyUsed, TicketVoid, ValidationError
from izuran.core.metrics import tickets_issued, tickets_voided, record_notification
from izuran.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


async def issue_ticket(
    db: AsyncSession,
    reservation: Reservation,
    owner_user_id: int,
    attendee: AttendeeInfo,
) -> Ticket:
    """
    Create one valid ticket against a successful reservation.
    The code is signed and unique; the row is flushed but not committed.
    """
    ticket_id = generate_ticket_id()
    ticket = Ticket(
        ticket_id=ticket_id,
        event_id=reservation.event_id,
        ticket_type=reservation.ticket_type,
        owner_user_id=owner_user_id,
        attendee_name=attendee.attendee_name,
        attendee_email=attendee.attendee_email,
        attendee_phone=attendee.attendee_phone,
        price=reservation.unit_price,
        currency=reservation.currency,
        status="valid",
        code=mint_ticket_code(ticket_id, reservation.event_id),
    )
    db.add(ticket)
    await db.flush()
    await db.refresh(ticket)

    tickets_issued.labels(ticket_type=ticket.ticket_type).inc()
    logger.info(
        "ticket_issued",
        ticket_id=ticket.ticket_id,
        event_id=ticket.event_id,
        ticket_type=ticket.ticket_type,
        owner_user_id=owner_user_id,
    )
    return ticket


async def purchase_tickets(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    purchase: TicketPurchase,
) -> tuple[Event, Reservation, list[Ticket]]:
    """Reserve and issue `purchase.quantity` tickets in the caller's transaction."""
    if purchase.quantity > settings.MAX_TICKETS_PER_ORDER:
        raise ValidationError(
            f"At most {settings.MAX_TICKETS_PER_ORDER} tickets can be bought per order"
        )

    event = await get_event(db, event_id)
    if has_ended(event):
        raise ValidationError("Event has already taken place")

    reservation = await reserve(db, event_id, purchase.ticket_type, purchase.quantity)

    attendee = AttendeeInfo(
        attendee_name=purchase.attendee_name,
        attendee_email=purchase.attendee_email,
        attendee_phone=purchase.attendee_phone,
    )
    tickets = [
        await issue_ticket(db, reservation, user_id, attendee)
        for _ in range(reservation.quantity)
    ]

    logger.info(
        "tickets_purchased",
        user_id=user_id,
        event_id=event_id,
        ticket_type=reservation.ticket_type,
        quantity=reservation.quantity,
        total=str(reservation.total),
        currency=reservation.currency,
    )
    return event, reservation, tickets


def build_confirmation(event: Event, tickets: list[Ticket]) -> TicketConfirmation:
    first = tickets[0]
    return TicketConfirmation(
        attendee_name=first.attendee_name,
        attendee_email=first.attendee_email,
        event_name=event.name,
        event_date=event.date,
        event_location=event.location,
        tickets=tuple(
            IssuedTicket(
                ticket_id=t.ticket_id,
                ticket_type=t.ticket_type,
                code=t.code,
                price=t.price,
                currency=t.currency,
            )
            for t in tickets
        ),
    )


async def dispatch_confirmation(notifier: TicketNotifier, confirmation: TicketConfirmation) -> None:
    """Background task: deliver a committed purchase's confirmation."""
    try:
        await notifier.send_confirmation(confirmation)
    except Exception as e:
        record_notification(False)
        logger.error(
            "ticket_confirmation_failed",
            attendee_email=confirmation.attendee_email,
            ticket_ids=[t.ticket_id for t in confirmation.tickets],
            error=str(e),
        )
        return
    record_notification(True)


async def get_ticket(db: AsyncSession, ticket_id: str) -> Ticket:
    result = await db.execute(select(Ticket).where(Ticket.ticket_id == ticket_id))
    ticket = result.scalar_one_or_none()
    if ticket is None:
        raise NotFound("Ticket not found")
    return ticket


async def get_owned_ticket(db: AsyncSession, ticket_id: str, user_id: int) -> Ticket:
    ticket = await get_ticket(db, ticket_id)
    if ticket.owner_user_id != user_id:
        raise Forbidden("Access denied")
    return ticket


async def get_user_tickets(db: AsyncSession, user_id: int) -> list[Ticket]:
    result = await db.execute(
        select(Ticket)
        .options(selectinload(Ticket.event))
        .where(Ticket.owner_user_id == user_id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
    )
    return list(result.scalars().all())


async def get_event_tickets(db: AsyncSession, event_id: int) -> list[Ticket]:
    await get_event(db, event_id)
    result = await db.execute(
        select(Ticket)
        .where(Ticket.event_id == event_id)
        .order_by(Ticket.id.asc())
    )
    return list(result.scalars().all())


async def void_ticket(db: AsyncSession, ticket_id: str) -> Ticket:
    """
    Cancel a valid ticket and return its unit to inventory.
    Used tickets cannot be voided; voiding twice is rejected.
    """
    result = await db.execute(
        update(Ticket)
        .where(Ticket.ticket_id == ticket_id, Ticket.status == "valid")
        .values(status="void")
        .execution_options(synchronize_session=False)
    )

    ticket = (
        await db.execute(
            select(Ticket)
            .where(Ticket.ticket_id == ticket_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()

    if ticket is None:
        raise NotFound("Ticket not found")
    if result.rowcount == 0:
        if ticket.status == "used":
            raise AlreadyUsed("Ticket has already been used and cannot be voided")
        raise TicketVoid("Ticket is already void")

    await release(db, ticket.event_id, ticket.ticket_type, 1)

    tickets_voided.inc()
    logger.info("ticket_voided", ticket_id=ticket.ticket_id, event_id=ticket.event_id)
    return ticket
