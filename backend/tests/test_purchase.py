"""
Tests for the purchase flow, ticket ownership and QR codes.
"""

import asyncio
import base64

import pytest
from httpx import AsyncClient

from conftest import add_limit, fetch_limit, purchase_body
from izuran.core.config import get_settings


@pytest.mark.asyncio
async def test_purchase_issues_tickets(
    client: AsyncClient, auth_headers, test_event, general_limit, sessionmaker, notifier
):
    response = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body(quantity=2),
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["quantity"] == 2
    assert data["unit_price"] == "25.00"
    assert data["total"] == "50.00"
    assert len(data["tickets"]) == 2

    ids = {t["ticket_id"] for t in data["tickets"]}
    codes = {t["code"] for t in data["tickets"]}
    assert len(ids) == 2 and len(codes) == 2
    assert all(t["status"] == "valid" for t in data["tickets"])
    assert all(t["ticket_id"].startswith("TKT-") for t in data["tickets"])

    limit = await fetch_limit(sessionmaker, general_limit.id)
    assert limit.sold_tickets == 2

    # Confirmation is dispatched after commit as a background task.
    assert len(notifier.sent) == 1
    assert {t.ticket_id for t in notifier.sent[0].tickets} == ids
    assert notifier.sent[0].attendee_email == "amina@example.com"


@pytest.mark.asyncio
async def test_purchase_unauthenticated(client: AsyncClient, test_event, general_limit):
    response = await client.post(f"/api/v1/tickets/purchase/{test_event.id}", json=purchase_body())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_purchase_sold_out(client: AsyncClient, auth_headers, test_event, last_ticket_limit, notifier):
    first = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body("vip"),
        headers=auth_headers,
    )
    assert first.status_code == 201

    second = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body("vip"),
        headers=auth_headers,
    )
    assert second.status_code == 409
    assert second.json()["reason"] == "sold_out"
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
async def test_purchase_more_than_available_is_all_or_nothing(
    client: AsyncClient, auth_headers, sessionmaker, test_event
):
    limit = await add_limit(sessionmaker, test_event.id, "general", max_tickets=3, sold_tickets=2)

    response = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body(quantity=2),
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert (await fetch_limit(sessionmaker, limit.id)).sold_tickets == 2

    mine = await client.get("/api/v1/tickets/mine", headers=auth_headers)
    assert mine.json() == []


@pytest.mark.asyncio
async def test_purchase_unknown_ticket_type(client: AsyncClient, auth_headers, test_event, general_limit):
    response = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body("backstage"),
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_purchase_inactive_ticket_type(client: AsyncClient, auth_headers, sessionmaker, test_event):
    await add_limit(sessionmaker, test_event.id, "vip", is_active=False)
    response = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body("vip"),
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_purchase_past_event(client: AsyncClient, auth_headers, sessionmaker, past_event):
    await add_limit(sessionmaker, past_event.id, "general")
    response = await client.post(
        f"/api/v1/tickets/purchase/{past_event.id}",
        json=purchase_body(),
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_purchase_zero_quantity(client: AsyncClient, auth_headers, test_event, general_limit):
    response = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body(quantity=0),
        headers=auth_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_purchase_over_order_cap(client: AsyncClient, auth_headers, test_event, general_limit):
    response = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body(quantity=get_settings().MAX_TICKETS_PER_ORDER + 1),
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_failed_notification_keeps_purchase(
    client: AsyncClient, auth_headers, test_event, general_limit, notifier
):
    notifier.fail = True
    response = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}",
        json=purchase_body(),
        headers=auth_headers,
    )
    assert response.status_code == 201

    mine = await client.get("/api/v1/tickets/mine", headers=auth_headers)
    assert len(mine.json()) == 1


@pytest.mark.asyncio
async def test_my_tickets_include_event(client: AsyncClient, auth_headers, other_headers, test_event, general_limit):
    await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}", json=purchase_body(), headers=auth_headers
    )

    mine = await client.get("/api/v1/tickets/mine", headers=auth_headers)
    assert mine.status_code == 200
    tickets = mine.json()
    assert len(tickets) == 1
    assert tickets[0]["event"]["slug"] == "izuran-summer-festival"

    theirs = await client.get("/api/v1/tickets/mine", headers=other_headers)
    assert theirs.json() == []


@pytest.mark.asyncio
async def test_qr_code_for_owner_only(client: AsyncClient, auth_headers, other_headers, test_event, general_limit):
    purchase = await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}", json=purchase_body(), headers=auth_headers
    )
    ticket_id = purchase.json()["tickets"][0]["ticket_id"]

    response = await client.get(f"/api/v1/tickets/{ticket_id}/qr-code", headers=auth_headers)
    assert response.status_code == 200
    data_url = response.json()["qr_code_data_url"]
    assert data_url.startswith("data:image/png;base64,")
    assert base64.b64decode(data_url.split(",", 1)[1]).startswith(b"\x89PNG")

    response = await client.get(f"/api/v1/tickets/{ticket_id}/qr-code", headers=other_headers)
    assert response.status_code == 403

    response = await client.get("/api/v1/tickets/TKT-000000000000/qr-code", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_concurrent_purchases_never_oversell(
    client: AsyncClient, auth_headers, sessionmaker, test_event
):
    """Ten buyers race for five tickets: exactly five win."""
    limit = await add_limit(sessionmaker, test_event.id, "early_bird", max_tickets=5, price="10.00")

    async def buy():
        response = await client.post(
            f"/api/v1/tickets/purchase/{test_event.id}",
            json=purchase_body("early_bird"),
            headers=auth_headers,
        )
        return response.status_code

    statuses = await asyncio.gather(*[buy() for _ in range(10)])

    assert statuses.count(201) == 5
    assert statuses.count(409) == 5
    assert (await fetch_limit(sessionmaker, limit.id)).sold_tickets == 5


@pytest.mark.asyncio
async def test_admin_lists_event_tickets(client: AsyncClient, auth_headers, admin_headers, test_event, general_limit):
    await client.post(
        f"/api/v1/tickets/purchase/{test_event.id}", json=purchase_body(quantity=3), headers=auth_headers
    )
    response = await client.get(f"/api/v1/admin/events/{test_event.id}/tickets", headers=admin_headers)
    assert response.status_code == 200
    assert len(response.json()) == 3
