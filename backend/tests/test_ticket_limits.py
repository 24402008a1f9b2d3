"""
Tests for admin ticket-limit management.
"""

import asyncio

import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from conftest import add_limit
from izuran.schemas.ticket_limit import TicketLimitCreate
from izuran.services.inventory_service import create_limit, list_limits


@pytest.mark.asyncio
async def test_create_ticket_limit(client: AsyncClient, admin_headers, test_event):
    response = await client.post(
        f"/api/v1/admin/events/{test_event.id}/ticket-limits",
        json={"ticket_type": "early_bird", "max_tickets": 50, "price": "15.00"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["ticket_type"] == "early_bird"
    assert data["sold_tickets"] == 0
    assert data["available"] == 50
    assert data["currency"] == "USD"


@pytest.mark.asyncio
async def test_duplicate_ticket_type_rejected(client: AsyncClient, admin_headers, general_limit, test_event):
    response = await client.post(
        f"/api/v1/admin/events/{test_event.id}/ticket-limits",
        json={"ticket_type": "general", "max_tickets": 10, "price": "5.00"},
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_concurrent_duplicate_ticket_type(client: AsyncClient, admin_headers, sessionmaker, test_event):
    """Two admins add the same type at once: one row, one 409, no 500."""

    async def add():
        response = await client.post(
            f"/api/v1/admin/events/{test_event.id}/ticket-limits",
            json={"ticket_type": "balcony", "max_tickets": 40, "price": "30.00"},
            headers=admin_headers,
        )
        return response.status_code

    statuses = await asyncio.gather(add(), add())
    assert sorted(statuses) == [201, 409]

    async with sessionmaker() as session:
        limits = await list_limits(session, test_event.id)
    assert [limit.ticket_type for limit in limits] == ["balcony"]


@pytest.mark.asyncio
async def test_duplicate_ticket_type_keeps_session_usable(db_session, sessionmaker, test_event, general_limit):
    with pytest.raises(HTTPException) as exc_info:
        await create_limit(
            db_session, test_event.id,
            TicketLimitCreate(ticket_type="general", max_tickets=10, price="5.00"),
        )
    assert exc_info.value.status_code == 409

    await create_limit(
        db_session, test_event.id,
        TicketLimitCreate(ticket_type="vip", max_tickets=10, price="90.00"),
    )
    await db_session.commit()

    async with sessionmaker() as session:
        limits = await list_limits(session, test_event.id)
    assert sorted(limit.ticket_type for limit in limits) == ["general", "vip"]


@pytest.mark.asyncio
async def test_limit_for_unknown_event(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/admin/events/424242/ticket-limits",
        json={"ticket_type": "general", "max_tickets": 10, "price": "5.00"},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"ticket_type": "General Admission", "max_tickets": 10, "price": "5.00"},
    {"ticket_type": "general", "max_tickets": -1, "price": "5.00"},
    {"ticket_type": "general", "max_tickets": 10, "price": "-5.00"},
    {"ticket_type": "general", "max_tickets": 10, "price": "5.00", "currency": "usd"},
])
async def test_invalid_limit_payloads(client: AsyncClient, admin_headers, test_event, body):
    response = await client.post(
        f"/api/v1/admin/events/{test_event.id}/ticket-limits",
        json=body,
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_limits_includes_inactive(client: AsyncClient, admin_headers, sessionmaker, test_event):
    await add_limit(sessionmaker, test_event.id, "general")
    await add_limit(sessionmaker, test_event.id, "vip", is_active=False, price="99.00")

    response = await client.get(
        f"/api/v1/admin/events/{test_event.id}/ticket-limits", headers=admin_headers
    )
    assert response.status_code == 200
    assert [row["ticket_type"] for row in response.json()] == ["general", "vip"]


@pytest.mark.asyncio
async def test_update_limit(client: AsyncClient, admin_headers, test_event, general_limit):
    response = await client.put(
        f"/api/v1/admin/events/{test_event.id}/ticket-limits/{general_limit.id}",
        json={"max_tickets": 150, "is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["max_tickets"] == 150
    assert data["is_active"] is False
    assert data["price"] == "25.00"


@pytest.mark.asyncio
async def test_update_limit_below_sold(client: AsyncClient, admin_headers, sessionmaker, test_event):
    limit = await add_limit(sessionmaker, test_event.id, "general", max_tickets=10, sold_tickets=6)

    response = await client.put(
        f"/api/v1/admin/events/{test_event.id}/ticket-limits/{limit.id}",
        json={"max_tickets": 5},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["reason"] == "validation_error"


@pytest.mark.asyncio
async def test_update_limit_of_other_event(client: AsyncClient, admin_headers, general_limit, past_event):
    response = await client.put(
        f"/api/v1/admin/events/{past_event.id}/ticket-limits/{general_limit.id}",
        json={"max_tickets": 5},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_limits_require_admin(client: AsyncClient, auth_headers, test_event):
    response = await client.get(
        f"/api/v1/admin/events/{test_event.id}/ticket-limits", headers=auth_headers
    )
    assert response.status_code == 403
