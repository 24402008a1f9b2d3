"""
Event service handling creation and lookups.
"""

import re
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from izuran.models.event import Event
from izuran.schemas.event import EventCreate
from izuran.core.exceptions import NotFound, ValidationError
from izuran.core.logging import get_logger

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; everything is stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "event"


def has_ended(event: Event, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return as_utc(event.end_date or event.date) < now


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create an event; the slug is derived from the name unless given."""
    start = as_utc(event_data.date)
    if start <= datetime.now(timezone.utc):
        raise ValidationError("Event date must be in the future")

    slug = event_data.slug or slugify(event_data.name)
    event = Event(
        name=event_data.name,
        slug=slug,
        description=event_data.description,
        location=event_data.location,
        date=start,
        end_date=as_utc(event_data.end_date) if event_data.end_date else None,
    )
    try:
        async with db.begin_nested():
            db.add(event)
            await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Event slug '{slug}' already exists",
        )
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, slug=event.slug)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")
    return event


async def get_event_by_slug(db: AsyncSession, slug: str) -> Event:
    result = await db.execute(select(Event).where(Event.slug == slug))
    event = result.scalar_one_or_none()
    if not event:
        raise NotFound(f"Event '{slug}' not found")
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = True,
) -> tuple[list[Event], int]:
    """
    List events with pagination, soonest first.
    "Upcoming" keeps events that have not finished yet.
    """
    query = select(Event)

    if upcoming_only:
        now = datetime.now(timezone.utc)
        query = query.where(func.coalesce(Event.end_date, Event.date) >= now)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.date.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total
