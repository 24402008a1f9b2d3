"""
Tests for IzuranClient against a mocked API (httpx.MockTransport).
"""

import asyncio

import httpx
import pytest

from izuran.client import IzuranClient


class FakeAPI:
    """Serves login, refresh and one protected route."""

    def __init__(self, refresh_ok: bool = True, refresh_delay: float = 0.0, refresh_raises: bool = False):
        self.refresh_ok = refresh_ok
        self.refresh_delay = refresh_delay
        self.refresh_raises = refresh_raises
        self.refresh_calls = 0
        self.protected_calls = 0
        self.valid_token = "stale"

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/v1/auth/login":
            return httpx.Response(
                200,
                json={"access_token": "stale", "token_type": "bearer"},
                headers={"set-cookie": "refresh_token=r1; HttpOnly; Path=/api/v1/auth"},
            )
        if path == "/api/v1/auth/refresh-token":
            self.refresh_calls += 1
            await asyncio.sleep(self.refresh_delay)
            if self.refresh_raises:
                raise httpx.ConnectError("connection refused", request=request)
            if not self.refresh_ok or "refresh_token=r1" not in request.headers.get("cookie", ""):
                return httpx.Response(401, json={"detail": "Invalid or expired refresh token"})
            self.valid_token = "fresh"
            return httpx.Response(200, json={"access_token": "fresh", "token_type": "bearer"})
        if path == "/api/v1/tickets/mine":
            self.protected_calls += 1
            if request.headers.get("authorization") != f"Bearer {self.valid_token}":
                return httpx.Response(401, json={"detail": "Invalid or expired token"})
            return httpx.Response(200, json=[])
        return httpx.Response(404)


def _client(api: FakeAPI) -> IzuranClient:
    return IzuranClient("http://izuran.test", transport=httpx.MockTransport(api))


async def _login_and_expire(client: IzuranClient, api: FakeAPI) -> None:
    await client.login("amina@example.com", "testpassword123")
    # The server has moved on; the held access token is now rejected.
    api.valid_token = "something-else"


@pytest.mark.asyncio
async def test_login_stores_token_and_session():
    api = FakeAPI()
    async with _client(api) as client:
        token = await client.login("amina@example.com", "testpassword123")
        assert token == "stale"
        assert client.has_session is True
        assert await client.my_tickets() == []


@pytest.mark.asyncio
async def test_401_refreshes_and_retries_once():
    api = FakeAPI()
    async with _client(api) as client:
        await _login_and_expire(client, api)

        assert await client.my_tickets() == []
        assert client.access_token == "fresh"
        assert api.refresh_calls == 1
        assert api.protected_calls == 2


@pytest.mark.asyncio
async def test_concurrent_401s_share_one_refresh():
    api = FakeAPI(refresh_delay=0.05)
    async with _client(api) as client:
        await _login_and_expire(client, api)

        results = await asyncio.gather(*[client.my_tickets() for _ in range(5)])

        assert results == [[]] * 5
        assert api.refresh_calls == 1


@pytest.mark.asyncio
async def test_rejected_refresh_clears_session():
    api = FakeAPI(refresh_ok=False)
    async with _client(api) as client:
        await _login_and_expire(client, api)

        response = await client.request("GET", "/tickets/mine")
        assert response.status_code == 401
        assert client.has_session is False
        assert client.access_token is None
        assert api.refresh_calls == 1

        # Without a session hint there is nothing to refresh.
        response = await client.request("GET", "/tickets/mine")
        assert response.status_code == 401
        assert api.refresh_calls == 1


@pytest.mark.asyncio
async def test_refresh_transport_error_yields_original_401():
    api = FakeAPI(refresh_raises=True)
    async with _client(api) as client:
        await _login_and_expire(client, api)

        response = await client.request("GET", "/tickets/mine")
        assert response.status_code == 401
        assert api.refresh_calls == 1


@pytest.mark.asyncio
async def test_no_refresh_without_login():
    api = FakeAPI()
    async with _client(api) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.my_tickets()
        assert api.refresh_calls == 0
