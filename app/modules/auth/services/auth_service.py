"""
Auth Service Module
Registration, login and user lookup
"""

import logging
from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.modules.auth.schema.auth import LoginRequest, RegisterRequest
from app.modules.auth.services.security import create_access_token, hash_password, verify_password
from app.services.store import repo
from app.services.store.models import ROLE_USER, User
from core.config import Settings
from core.exceptions import AuthError, ConflictError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def register(self, payload: RegisterRequest) -> Tuple[User, str]:
        if await repo.get_user_by_email(self.db, payload.email):
            raise ConflictError("User already exists")

        # bcrypt is deliberately slow; keep it off the event loop
        password_hash = await run_in_threadpool(hash_password, payload.password)
        try:
            user = await repo.add_user(self.db, payload.name, payload.email, password_hash, ROLE_USER)
            await self.db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise ConflictError("User already exists")

        logger.info(f"Registered user {user.id}")
        return user, create_access_token(user.id, self.settings)

    async def login(self, payload: LoginRequest) -> Tuple[User, str]:
        user = await repo.get_user_by_email(self.db, payload.email)
        if user is None:
            raise AuthError("Invalid email or password")

        ok = await run_in_threadpool(verify_password, payload.password, user.password_hash)
        if not ok:
            logger.info(f"Failed login for user {user.id}")
            raise AuthError("Invalid email or password")
        return user, create_access_token(user.id, self.settings)
