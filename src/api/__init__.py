"""API router aggregation."""

from fastapi import APIRouter

from src.api.auth import router as auth_router
from src.api.contracts import router as contracts_router
from src.api.dashboard import router as dashboard_router
from src.api.health import router as health_router
from src.api.rates import router as rates_router
from src.api.users import router as users_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(rates_router)
api_router.include_router(contracts_router)
api_router.include_router(dashboard_router)

__all__ = ["api_router"]
