"""
tests.conftest

Shared fixtures: a file-backed SQLite store per test, the registry service, and the app
served over httpx's ASGI transport.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import timedelta

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from target_gate.api.app import create_app
from target_gate.auth.jwt import JwtConfig, issue_token
from target_gate.db.init_db import init_db
from target_gate.db.session import create_engine, create_sessionmaker
from target_gate.gate.locks import OrderLocks
from target_gate.services.target_registry import TargetAuthorizationRegistry
from target_gate.settings import Settings


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'gate.db'}",
        jwt_secret="test-secret",
    )


@pytest_asyncio.fixture
async def sessionmaker(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def locks() -> OrderLocks:
    return OrderLocks()


@pytest_asyncio.fixture
async def registry(
    sessionmaker: async_sessionmaker[AsyncSession], locks: OrderLocks
) -> AsyncIterator[TargetAuthorizationRegistry]:
    async with sessionmaker() as session:
        yield TargetAuthorizationRegistry(session=session, locks=locks)


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx's ASGITransport does not run lifespan events; enter it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def http(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers(settings: Settings):
    def _headers(subject: str, *roles: str) -> dict[str, str]:
        token = issue_token(
            cfg=JwtConfig.from_settings(settings),
            subject=subject,
            roles=list(roles),
            ttl=timedelta(minutes=5),
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
