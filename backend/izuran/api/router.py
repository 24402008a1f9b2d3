"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from izuran.api.routes import auth, events, tickets, admin, scanner
from izuran.core.config import get_settings

settings = get_settings()

api_router = APIRouter(prefix=settings.API_PREFIX)
api_router.include_router(auth.router)
api_router.include_router(events.router)
api_router.include_router(tickets.router)
api_router.include_router(admin.router)
api_router.include_router(scanner.router)
