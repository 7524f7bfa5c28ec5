# backend/parkops/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from parkops import config
from parkops.db import healthcheck
from parkops.errors import MissionServiceError
from parkops.routers.auth import router as auth_router
from parkops.routers.missions import router as missions_router
from parkops.routers.users import router as users_router
from parkops.services.expo_push import ExpoPushNotifier, Notifier

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request"
    first = errs[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid value")
    return f"Invalid request: {loc}: {msg}" if loc else f"Invalid request: {msg}"


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MissionServiceError)
    async def _service_error(request: Request, exc: MissionServiceError):
        if exc.status_code >= 500:
            logger.error(f"[api] {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def _db_error(request: Request, exc: SQLAlchemyError):
        logger.error(f"[api] Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Server error while accessing the database"})


def build_app(notifier: Optional[Notifier] = None) -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    owned = None if notifier is not None else ExpoPushNotifier()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # injected notifiers belong to the caller
        if owned is not None:
            owned.close()

    app = FastAPI(
        lifespan=lifespan,
        title="Parking Payment Machine API",
        version="1.0.0",
        description="Backend API for the Parking Payment Machine Assistant mobile application",
    )
    app.state.notifier = notifier if notifier is not None else owned

    # CORS (mobile dev server + configured frontend)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_ORIGIN],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    _register_error_handlers(app)

    # Health
    @app.get("/health")
    def health():
        return {"ok": True, **healthcheck()}

    app.include_router(auth_router)
    app.include_router(missions_router)
    app.include_router(users_router)

    return app


app = build_app()
