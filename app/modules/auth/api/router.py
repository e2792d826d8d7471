from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.modules.auth.dependencies import get_current_user
from app.modules.auth.schema.auth import AuthResponse, LoginRequest, RegisterRequest, UserOut
from app.modules.auth.services.auth_service import AuthService
from app.services.store.db import get_db
from app.services.store.models import User
from core.config import Settings, get_settings
from core.exceptions import AppError, UnhandledError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(id=user.id, name=user.name, email=user.email, role=user.role, token=token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """Create an account and return it together with a bearer token."""
    try:
        user, token = await AuthService(db, settings).register(payload)
        return _auth_response(user, token)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Registration failed: {e}", exc_info=True)
        raise UnhandledError() from e


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    try:
        user, token = await AuthService(db, settings).login(payload)
        return _auth_response(user, token)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}", exc_info=True)
        raise UnhandledError() from e


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.from_user(user)
