"""
Admin endpoints: events, ticket limits and per-event ticket lists.
All routes require an admin account.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from izuran.db.session import get_db
from izuran.schemas.event import EventCreate, EventResponse
from izuran.schemas.ticket import TicketResponse
from izuran.schemas.ticket_limit import TicketLimitCreate, TicketLimitUpdate, TicketLimitResponse
from izuran.services.event_service import create_event, get_event
from izuran.services.inventory_service import create_limit, update_limit, list_limits
from izuran.services.ticket_service import get_event_tickets
from izuran.services.cache_service import invalidate_event_cache
from izuran.core.security import require_admin

router = APIRouter(prefix="/admin/events", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(event_data: EventCreate, db: AsyncSession = Depends(get_db)):
    event = await create_event(db, event_data)
    await invalidate_event_cache()
    return event


@router.post(
    "/{event_id}/ticket-limits",
    response_model=TicketLimitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_ticket_limit(
    event_id: int,
    data: TicketLimitCreate,
    db: AsyncSession = Depends(get_db),
):
    return await create_limit(db, event_id, data)


@router.get("/{event_id}/ticket-limits", response_model=list[TicketLimitResponse])
async def list_ticket_limits(event_id: int, db: AsyncSession = Depends(get_db)):
    await get_event(db, event_id)
    return await list_limits(db, event_id)


@router.put("/{event_id}/ticket-limits/{limit_id}", response_model=TicketLimitResponse)
async def update_ticket_limit(
    event_id: int,
    limit_id: int,
    data: TicketLimitUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await update_limit(db, event_id, limit_id, data)


@router.get("/{event_id}/tickets", response_model=list[TicketResponse])
async def list_event_tickets(event_id: int, db: AsyncSession = Depends(get_db)):
    return await get_event_tickets(db, event_id)
