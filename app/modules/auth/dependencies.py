from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth.services.security import decode_access_token
from app.services.store import repo
from app.services.store.db import get_db
from app.services.store.models import User
from core.config import Settings, get_settings
from core.exceptions import AuthError, ForbiddenError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve ``Authorization: Bearer <token>`` to a stored user."""
    if credentials is None or not credentials.credentials:
        raise AuthError("Not authorized, no token")

    user_id = decode_access_token(credentials.credentials, settings)
    user = await repo.get_user(db, user_id)
    if user is None:
        raise AuthError("Not authorized, user not found")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError("Not authorized as an admin")
    return user
