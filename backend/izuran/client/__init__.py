"""Async Python client for the ticketing API."""

from izuran.client.refresh import RefreshState, TokenRefreshCoordinator
from izuran.client.api import IzuranClient

__all__ = ["RefreshState", "TokenRefreshCoordinator", "IzuranClient"]
