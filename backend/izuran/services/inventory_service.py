"""
Ticket inventory with concurrency-safe reservation.

CONCURRENCY STRATEGY: Conditional Increment
===========================================

Problem:
  Two buyers ask for the last early-bird ticket at the same moment.
  Both read sold_tickets=99 of max_tickets=100, both write 100.
  Result: 101 tickets issued against a capacity of 100.

Solution:
  The check and the increment are one statement:

    UPDATE ticket_limits
       SET sold_tickets = sold_tickets + :q
     WHERE event_id = :e AND ticket_type = :t AND is_active
       AND sold_tickets + :q <= max_tickets

  rows_affected == 1 -> admitted, rows_affected == 0 -> rejected. A second
  read only decides *why* it was rejected (no active limit vs sold out).

  On PostgreSQL the UPDATE takes the row lock; a concurrent UPDATE waits and
  then re-evaluates the WHERE clause against the committed row, so it can
  never push sold_tickets past max_tickets. No retry loop, no version column.
  On SQLite the session layer opens every transaction with BEGIN IMMEDIATE,
  which serialises writers outright.

  The CHECK (sold_tickets <= max_tickets) constraint stays as the final
  safety net.
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from izuran.models.ticket_limit import TicketLimit
from izuran.schemas.ticket_limit import TicketLimitCreate, TicketLimitUpdate
from izuran.services.event_service import get_event
from izuran.core.exceptions import NotFound, SoldOut, ValidationError
from izuran.core.metrics import record_reservation, reservation_latency
from izuran.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Reservation:
    """Admission granted by `reserve`; the precondition for issuing tickets."""

    limit_id: int
    event_id: int
    ticket_type: str
    quantity: int
    unit_price: Decimal
    currency: str

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


async def _find_active_limit(db: AsyncSession, event_id: int, ticket_type: str) -> Optional[TicketLimit]:
    result = await db.execute(
        select(TicketLimit)
        .where(
            TicketLimit.event_id == event_id,
            TicketLimit.ticket_type == ticket_type,
            TicketLimit.is_active.is_(True),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def reserve(
    db: AsyncSession,
    event_id: int,
    ticket_type: str,
    quantity: int = 1,
) -> Reservation:
    """
    Atomically claim `quantity` tickets of a type for an event.

    Raises NotFound if no active limit matches, SoldOut if the claim would
    exceed capacity. On success sold_tickets has already been incremented in
    the caller's transaction.
    """
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    start = time.perf_counter()
    update_result = await db.execute(
        update(TicketLimit)
        .where(
            TicketLimit.event_id == event_id,
            TicketLimit.ticket_type == ticket_type,
            TicketLimit.is_active.is_(True),
            TicketLimit.sold_tickets + quantity <= TicketLimit.max_tickets,
        )
        .values(sold_tickets=TicketLimit.sold_tickets + quantity)
        .execution_options(synchronize_session=False)
    )
    reservation_latency.observe(time.perf_counter() - start)

    limit = await _find_active_limit(db, event_id, ticket_type)

    if limit is None:
        record_reservation("not_found")
        logger.warning("reservation_rejected", reason="not_found", event_id=event_id, ticket_type=ticket_type)
        raise NotFound(f"Ticket type '{ticket_type}' is not available for event {event_id}")

    if update_result.rowcount == 0:
        record_reservation("sold_out")
        logger.warning(
            "reservation_rejected",
            reason="sold_out",
            event_id=event_id,
            ticket_type=ticket_type,
            requested=quantity,
            available=limit.available,
        )
        raise SoldOut(
            f"Not enough {ticket_type} tickets. Requested: {quantity}, Available: {limit.available}"
        )

    record_reservation("reserved")
    logger.info(
        "ticket_reserved",
        event_id=event_id,
        ticket_type=ticket_type,
        quantity=quantity,
        sold=limit.sold_tickets,
        max=limit.max_tickets,
    )
    return Reservation(
        limit_id=limit.id,
        event_id=event_id,
        ticket_type=ticket_type,
        quantity=quantity,
        unit_price=limit.price,
        currency=limit.currency,
    )


async def release(db: AsyncSession, event_id: int, ticket_type: str, quantity: int = 1) -> None:
    """Hand `quantity` units back to a limit, never dropping below zero."""
    await db.execute(
        update(TicketLimit)
        .where(
            TicketLimit.event_id == event_id,
            TicketLimit.ticket_type == ticket_type,
            TicketLimit.sold_tickets >= quantity,
        )
        .values(sold_tickets=TicketLimit.sold_tickets - quantity)
        .execution_options(synchronize_session=False)
    )
    logger.info("tickets_released", event_id=event_id, ticket_type=ticket_type, quantity=quantity)


async def create_limit(db: AsyncSession, event_id: int, data: TicketLimitCreate) -> TicketLimit:
    await get_event(db, event_id)

    limit = TicketLimit(
        event_id=event_id,
        ticket_type=data.ticket_type,
        max_tickets=data.max_tickets,
        sold_tickets=0,
        price=data.price,
        currency=data.currency,
        is_active=data.is_active,
    )
    # The unique (event_id, ticket_type) constraint decides, so two admins
    # adding the same type at once get one row and one 409.
    try:
        async with db.begin_nested():
            db.add(limit)
            await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Ticket type '{data.ticket_type}' already exists for event {event_id}",
        )
    await db.refresh(limit)

    logger.info(
        "ticket_limit_created",
        limit_id=limit.id,
        event_id=event_id,
        ticket_type=limit.ticket_type,
        max=limit.max_tickets,
    )
    return limit


async def update_limit(
    db: AsyncSession,
    event_id: int,
    limit_id: int,
    data: TicketLimitUpdate,
) -> TicketLimit:
    result = await db.execute(
        select(TicketLimit)
        .where(TicketLimit.id == limit_id, TicketLimit.event_id == event_id)
        .with_for_update()
    )
    limit = result.scalar_one_or_none()
    if limit is None:
        raise NotFound("Ticket limit not found")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "max_tickets" in changes and changes["max_tickets"] < limit.sold_tickets:
        raise ValidationError(
            f"max_tickets cannot be lower than tickets already sold ({limit.sold_tickets})"
        )

    for field, value in changes.items():
        setattr(limit, field, value)
    await db.flush()
    await db.refresh(limit)

    logger.info("ticket_limit_updated", limit_id=limit.id, changes=sorted(changes))
    return limit


async def list_limits(db: AsyncSession, event_id: int, active_only: bool = False) -> list[TicketLimit]:
    query = select(TicketLimit).where(TicketLimit.event_id == event_id)
    if active_only:
        query = query.where(TicketLimit.is_active.is_(True))
    result = await db.execute(query.order_by(TicketLimit.price.asc(), TicketLimit.id.asc()))
    return list(result.scalars().all())
