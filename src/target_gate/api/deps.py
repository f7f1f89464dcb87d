"""
target_gate.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the registry service.
- Encapsulate app.state access patterns (settings/sessionmaker/order locks).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from target_gate.gate.locks import OrderLocks
from target_gate.services.target_registry import TargetAuthorizationRegistry
from target_gate.settings import Settings, get_settings


def settings_dep(request: Request) -> Settings:
    # Settings passed to `create_app` win over the env-derived cached instance.
    return getattr(request.app.state, "settings", None) or get_settings()


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


def order_locks_from_app(request: Request) -> OrderLocks:
    return request.app.state.order_locks  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def registry_dep(
    session: AsyncSession = Depends(db_session),
    locks: OrderLocks = Depends(order_locks_from_app),
) -> TargetAuthorizationRegistry:
    return TargetAuthorizationRegistry(session=session, locks=locks)
