"""
IzuranClient: a thin httpx wrapper for frontends, door scanners and scripts.

It keeps the access token in memory and lets httpx's cookie jar hold the
refresh-token cookie. A 401 triggers one coalesced refresh and a single
retry of the original request.
"""

from typing import Any, Optional

import httpx

from izuran.client.refresh import TokenRefreshCoordinator
from izuran.core.logging import get_logger

logger = get_logger(__name__)


class IzuranClient:
    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._prefix = api_prefix.rstrip("/")
        self.access_token: Optional[str] = None
        # Cleared when a refresh is rejected so later 401s skip the refresh call.
        self.has_session = False
        self.refresher = TokenRefreshCoordinator(self._refresh_access_token)

    @property
    def refresh_path(self) -> str:
        return f"{self._prefix}/auth/refresh-token"

    async def __aenter__(self) -> "IzuranClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, extra: Optional[dict] = None) -> dict:
        headers = dict(extra or {})
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _refresh_access_token(self) -> Optional[str]:
        try:
            response = await self._http.post(self.refresh_path)
        except httpx.HTTPError as e:
            logger.warning("token_refresh_transport_error", error=str(e))
            return None

        if not response.is_success:
            logger.info("token_refresh_rejected", status_code=response.status_code)
            self.has_session = False
            self.access_token = None
            return None

        self.access_token = response.json()["access_token"]
        return self.access_token

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request under the API prefix. On 401 refresh the access token
        once and replay the request with it.
        """
        url = f"{self._prefix}{path}"
        extra_headers = kwargs.pop("headers", None)
        response = await self._http.request(method, url, headers=self._headers(extra_headers), **kwargs)

        if response.status_code != 401 or url == self.refresh_path or not self.has_session:
            return response

        token = await self.refresher.ensure_fresh_token()
        if token is None:
            return response
        return await self._http.request(method, url, headers=self._headers(extra_headers), **kwargs)

    async def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()

    # Auth

    async def register(self, email: str, username: str, password: str) -> dict:
        return await self._json(
            "POST", "/auth/register",
            json={"email": email, "username": username, "password": password},
        )

    async def login(self, email: str, password: str) -> str:
        response = await self._http.post(
            f"{self._prefix}/auth/login", json={"email": email, "password": password}
        )
        response.raise_for_status()
        self.access_token = response.json()["access_token"]
        self.has_session = True
        return self.access_token

    async def logout(self) -> None:
        await self.request("POST", "/auth/logout")
        self.access_token = None
        self.has_session = False

    async def me(self) -> dict:
        return await self._json("GET", "/auth/me")

    # Events and tickets

    async def list_events(self, page: int = 1, page_size: int = 20, upcoming_only: bool = True) -> dict:
        params = {"page": page, "page_size": page_size, "upcoming_only": str(upcoming_only).lower()}
        return await self._json("GET", "/events/", params=params)

    async def ticket_availability(self, event_id: int) -> list:
        return await self._json("GET", f"/events/{event_id}/tickets")

    async def purchase(
        self,
        event_id: int,
        ticket_type: str,
        attendee_name: str,
        attendee_email: str,
        quantity: int = 1,
        attendee_phone: Optional[str] = None,
    ) -> dict:
        payload = {
            "ticket_type": ticket_type,
            "quantity": quantity,
            "attendee_name": attendee_name,
            "attendee_email": attendee_email,
            "attendee_phone": attendee_phone,
        }
        return await self._json("POST", f"/tickets/purchase/{event_id}", json=payload)

    async def my_tickets(self) -> list:
        return await self._json("GET", "/tickets/mine")

    async def qr_code(self, ticket_id: str) -> str:
        data = await self._json("GET", f"/tickets/{ticket_id}/qr-code")
        return data["qr_code_data_url"]

    # Door

    async def validate(self, code: str, scanner_id: Optional[str] = None) -> dict:
        return await self._json("POST", "/admin/tickets/validate", json={"code": code, "scanner_id": scanner_id})

    async def void(self, ticket_id: str) -> dict:
        return await self._json("POST", f"/admin/tickets/{ticket_id}/void")
