"""
Public event endpoints with Redis caching on list operations.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from izuran.db.session import get_db
from izuran.schemas.event import EventResponse, EventListResponse
from izuran.schemas.ticket_limit import TicketAvailability
from izuran.services.event_service import get_event, get_event_by_slug, list_events
from izuran.services.inventory_service import list_limits
from izuran.services.cache_service import get_cached_events, set_cached_events
from izuran.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination, soonest first.
    Results are cached in Redis; the cache is invalidated when events change.
    """
    cached = await get_cached_events(page, page_size, upcoming_only)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, page, page_size, upcoming_only)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }

    await set_cached_events(page, page_size, upcoming_only, response_data)

    return EventListResponse(**response_data)


@router.get("/slug/{slug}", response_model=EventResponse)
async def get_event_by_slug_endpoint(slug: str, db: AsyncSession = Depends(get_db)):
    return await get_event_by_slug(db, slug)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    return await get_event(db, event_id)


@router.get("/{event_id}/tickets", response_model=list[TicketAvailability])
async def event_ticket_availability(event_id: int, db: AsyncSession = Depends(get_db)):
    """Active ticket types with live availability. Never cached."""
    await get_event(db, event_id)
    limits = await list_limits(db, event_id, active_only=True)
    return [
        TicketAvailability(
            ticket_type=limit.ticket_type,
            price=limit.price,
            currency=limit.currency,
            available=limit.available,
            sold_out=limit.available == 0,
        )
        for limit in limits
    ]
