"""
target_gate.api.app

FastAPI app factory for the Target Gate service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine/session factory, order locks).
- Render registry rejections as structured JSON errors.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from target_gate import __version__
from target_gate.api.routers.dev_auth import router as dev_auth_router
from target_gate.api.routers.gate import router as gate_router
from target_gate.api.routers.health import router as health_router
from target_gate.api.routers.orders import router as orders_router
from target_gate.db.init_db import init_db
from target_gate.db.session import create_engine, create_sessionmaker
from target_gate.gate.errors import GateError
from target_gate.gate.locks import OrderLocks
from target_gate.observability.logging import configure_logging, get_logger
from target_gate.observability.middleware import RequestContextMiddleware
from target_gate.settings import Settings

log = get_logger(__name__)


async def _gate_error_handler(_: Request, exc: GateError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json=settings.env != "dev",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod uses Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Target Gate",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # One lock table per process; every request's registry shares it.
    app.state.order_locks = OrderLocks()

    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(GateError, _gate_error_handler)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(gate_router)
    app.include_router(orders_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; gate semantics live in `services.target_registry`.
