"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from concert_tickets.api.routes import concerts, reservations, users
from concert_tickets.core.config import get_settings

api_router = APIRouter(prefix=get_settings().API_PREFIX)
api_router.include_router(concerts.router)
api_router.include_router(users.router)
api_router.include_router(reservations.router)
