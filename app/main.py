# app/main.py
import logging
import os
import time
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from app.modules.router import router as modules_router
from core.config import Settings, settings as default_settings
from core.exceptions import register_exception_handlers
from core.logging import configure_logging, get_logger

logger = get_logger(__name__)

_UI_CANDIDATES = [
    Path("./client"),
    Path("./ui"),
    Path(__file__).resolve().parents[1] / "client",
]


def _ui_root() -> Optional[Path]:
    return next((p.resolve() for p in _UI_CANDIDATES if p.exists()), None)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    is_dev = settings.ENVIRONMENT == "dev"
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        docs_url="/docs" if is_dev else None,
        redoc_url="/redoc" if is_dev else None,
        openapi_url="/openapi.json" if is_dev else None,
    )
    app.state.settings = settings
    register_exception_handlers(app)

    # Reject oversized bodies (base64 images) before they are parsed.
    # Only a declared Content-Length is checked; chunked uploads are not capped here.
    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.MAX_REQUEST_BYTES:
            return JSONResponse(status_code=413, content={"message": "Request body too large"})
        return await call_next(request)

    # Middleware to log every request
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        logger.info(f"Incoming request: {request.method} {request.url.path}")

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        logger.info(f"Response status: {response.status_code} | Time: {process_time:.2f}ms")
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(modules_router, prefix=settings.API_PREFIX)

    ui_root = _ui_root() if settings.SERVE_FRONTEND else None
    if ui_root:
        app.mount("/ui", StaticFiles(directory=str(ui_root), html=True), name="frontend")

    @app.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
    async def root():
        if ui_root:
            return RedirectResponse(url="/ui/index.html", status_code=302)
        return JSONResponse({"message": f"Welcome to {settings.PROJECT_NAME} API!", "ui": "not-mounted"})

    @app.api_route("/healthz", methods=["GET", "HEAD"], include_in_schema=False)
    async def healthz():
        return JSONResponse({"status": "ok"})

    @app.on_event("startup")
    async def startup_event():
        """Application startup event handler."""
        logger.info(f"Starting {settings.PROJECT_NAME} API...")
        from app.services.store.init_db import init_database

        if not await init_database():
            logger.warning("Database initialization failed; requests touching storage will error")
        logger.info("Application startup completed successfully")

    @app.on_event("shutdown")
    async def shutdown_event():
        from app.modules.chat.services.providers import close_http_client

        await close_http_client()
        logger.info("Application stopped")

    for route in app.routes:
        methods = ",".join(sorted(getattr(route, "methods", None) or []))
        logging.getLogger("router.map").debug("ROUTE %s %s", methods, route.path)

    return app


app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port)
