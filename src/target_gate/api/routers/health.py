"""
target_gate.api.routers.health

Health and readiness endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from target_gate.api.deps import db_session
from target_gate.db.models import OrderAuthorization

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Readiness: the authorization table must exist and be queryable.
    await session.execute(select(func.count()).select_from(OrderAuthorization))
    return {"status": "ready"}
