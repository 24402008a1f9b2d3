"""
Ticket purchase and holder endpoints.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from izuran.db.session import get_db
from izuran.schemas.ticket import (
    TicketPurchase,
    PurchaseResponse,
    TicketResponse,
    TicketWithEvent,
    QRCodeResponse,
)
from izuran.services.ticket_service import (
    purchase_tickets,
    build_confirmation,
    dispatch_confirmation,
    get_user_tickets,
    get_owned_ticket,
)
from izuran.services.interfaces.notifier import TicketNotifier
from izuran.services.notifier_factory import get_notifier
from izuran.services.ticket_codes import render_qr_data_url
from izuran.core.security import get_current_user_id

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post(
    "/purchase/{event_id}",
    response_model=PurchaseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def purchase(
    event_id: int,
    purchase_data: TicketPurchase,
    background_tasks: BackgroundTasks,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: TicketNotifier = Depends(get_notifier),
):
    """
    Buy `quantity` tickets of one type.

    Inventory is claimed atomically, so concurrent buyers can never exceed the
    ticket limit; the loser gets 409 sold_out. The confirmation e-mail is sent
    in the background once the purchase has been committed.
    """
    event, reservation, tickets = await purchase_tickets(db, user_id, event_id, purchase_data)
    await db.commit()

    background_tasks.add_task(dispatch_confirmation, notifier, build_confirmation(event, tickets))

    return PurchaseResponse(
        message="Tickets purchased successfully",
        event_id=event.id,
        ticket_type=reservation.ticket_type,
        quantity=reservation.quantity,
        unit_price=reservation.unit_price,
        total=reservation.total,
        currency=reservation.currency,
        tickets=[TicketResponse.model_validate(t) for t in tickets],
    )


@router.get("/mine", response_model=list[TicketWithEvent])
async def my_tickets(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """All tickets owned by the authenticated user, newest first."""
    return await get_user_tickets(db, user_id)


@router.get("/{ticket_id}/qr-code", response_model=QRCodeResponse)
async def ticket_qr_code(
    ticket_id: str,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    ticket = await get_owned_ticket(db, ticket_id, user_id)
    return QRCodeResponse(ticket_id=ticket.ticket_id, qr_code_data_url=render_qr_data_url(ticket.code))
