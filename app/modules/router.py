# app/modules/router.py
from fastapi import APIRouter
from app.modules.admin.api.router import router as admin_router
from app.modules.auth.api.router import router as auth_router
from app.modules.chat.api.router import router as chat_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(chat_router)
router.include_router(admin_router)
