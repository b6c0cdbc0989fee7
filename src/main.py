"""
Prodboard - production and commission tracking for insurance operators

Main FastAPI application with:
- Role-based authentication (admin/operator)
- Contract entry with server-side commission calculation
- Per-operator commission rate tables
- Production dashboard (monthly series, categories, leaderboard)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import select

from src.api import api_router
from src.config import settings
from src.db import get_db_context
from src.models import User, UserRole
from src.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the admin account if no admin exists
    """
    logger.info("Starting Prodboard...")

    async with get_db_context() as db:
        result = await db.execute(
            select(User).where(User.role == UserRole.ADMIN).limit(1)
        )
        admin = result.scalar_one_or_none()

        if not admin:
            logger.info("Creating admin account...")
            db.add(
                User(
                    username=settings.admin_username,
                    password_hash=hash_password(settings.admin_password),
                    role=UserRole.ADMIN,
                    display_name="Admin",
                    is_active=True,
                )
            )
            logger.info(f"Admin account created: {settings.admin_username}")

    logger.info("Prodboard started successfully!")

    yield

    logger.info("Shutting down Prodboard...")


app = FastAPI(
    title="Prodboard",
    description="Production and commission tracking",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
