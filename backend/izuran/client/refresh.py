"""
Coalesced access-token refresh.

When several requests fail with 401 at once, only the first one calls the
refresh endpoint. The others park a future in the coordinator's queue and
are handed the same result when that single refresh finishes.

    Idle --ensure_fresh_token()--> Refreshing --done--> Idle
                                    (later callers queue up)

A failed refresh resolves every queued caller to None and empties the
queue; callers never see the exception.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from izuran.core.logging import get_logger

logger = get_logger(__name__)

RefreshFunc = Callable[[], Awaitable[Optional[str]]]


class RefreshState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class TokenRefreshCoordinator:
    """One per client. Not thread-safe; share it within one event loop."""

    def __init__(self, refresh: RefreshFunc):
        self._refresh = refresh
        self.state = RefreshState.IDLE
        self._waiters: list[asyncio.Future] = []

    @property
    def pending(self) -> int:
        return len(self._waiters)

    async def ensure_fresh_token(self) -> Optional[str]:
        if self.state is RefreshState.REFRESHING:
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        self.state = RefreshState.REFRESHING
        token: Optional[str] = None
        try:
            token = await self._refresh()
        except Exception as e:
            logger.warning("token_refresh_error", error=str(e))
            token = None
        finally:
            waiters, self._waiters = self._waiters, []
            self.state = RefreshState.IDLE
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(token)

        logger.debug("token_refresh_finished", refreshed=token is not None, waiters=len(waiters))
        return token
