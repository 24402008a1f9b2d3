"""
Tests for ORM mapping details that the services rely on.
"""

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import InvalidRequestError

from izuran.models.event import Event
from izuran.models.user import User


@pytest.mark.parametrize("model, name", [
    (Event, "ticket_limits"),
    (Event, "tickets"),
    (User, "tickets"),
])
def test_unused_collections_raise_instead_of_loading(model, name):
    assert inspect(model).relationships[name].lazy == "raise"


@pytest.mark.asyncio
async def test_event_tickets_access_raises(sessionmaker, test_event):
    async with sessionmaker() as session:
        event = await session.get(Event, test_event.id)
        with pytest.raises(InvalidRequestError):
            event.tickets
        await session.rollback()
