from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.modules.admin.schema.stats import UsageStats
from app.modules.admin.services.stats_service import StatsService
from app.modules.auth.dependencies import require_admin
from app.modules.auth.schema.auth import UserOut
from app.services.store.db import get_db

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/users", response_model=List[UserOut])
async def list_users(db: AsyncSession = Depends(get_db)) -> List[UserOut]:
    """
    List all users (Admin only). Password hashes are never returned.
    """
    users = await StatsService(db).list_users()
    return [UserOut.from_user(u) for u in users]


@router.get("/stats", response_model=UsageStats)
async def usage_stats(db: AsyncSession = Depends(get_db)) -> UsageStats:
    return UsageStats(**await StatsService(db).usage_stats())
