"""
target_gate.db.init_db

DB initialization helpers (dev/test convenience).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from target_gate.db import models  # noqa: F401  # registers tables on Base.metadata
from target_gate.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Create the gate tables if they don't exist. Production runs Alembic migrations instead.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
