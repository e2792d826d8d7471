"""Database initialization script for the chat store tables."""

import argparse
import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from app.services.store.db import DATABASE_URL, build_engine, build_sessionmaker
from app.services.store.models import ROLE_ADMIN, Base, User

logger = logging.getLogger(__name__)


async def init_database(engine: Optional[AsyncEngine] = None) -> bool:
    """Initialize database tables if they don't exist."""
    owned = engine is None
    engine = engine or build_engine(DATABASE_URL)
    try:
        logger.info(f"Initializing database at {engine.url.render_as_string(hide_password=True)}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return False
    finally:
        if owned:
            await engine.dispose()


async def promote_admin(email: str, engine: Optional[AsyncEngine] = None) -> bool:
    """Give the user registered under ``email`` the admin role."""
    owned = engine is None
    engine = engine or build_engine(DATABASE_URL)
    try:
        async with build_sessionmaker(engine)() as db:
            res = await db.execute(select(User).where(User.email == email.strip().lower()))
            user = res.scalar_one_or_none()
            if user is None:
                logger.error(f"No user registered with email {email}")
                return False
            user.role = ROLE_ADMIN
            await db.commit()
            logger.info(f"User {user.id} promoted to admin")
            return True
    finally:
        if owned:
            await engine.dispose()


async def _main(promote: Optional[str]) -> int:
    if not await init_database():
        return 1
    if promote and not await promote_admin(promote):
        return 1
    return 0


if __name__ == "__main__":
    from core.logging import configure_logging

    configure_logging()
    parser = argparse.ArgumentParser(description="Create chat store tables")
    parser.add_argument("--promote", metavar="EMAIL", help="grant the admin role to this user")
    args = parser.parse_args()
    raise SystemExit(asyncio.run(_main(args.promote)))
