"""
target_gate.db.repositories.events

Repository for `GateEvent` entities.

Responsibilities:
- Append gate notifications in the same transaction as the state change they describe.
- Query the trail of an order newest-first.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from target_gate.db.models import GateEvent, GateEventType


class GateEventRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        order_id: str,
        event_type: GateEventType,
        actor: str,
        details: dict[str, Any],
    ) -> GateEvent:
        ev = GateEvent(order_id=order_id, event_type=event_type, actor=actor, details=details)
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def list_for_order(self, order_id: str, *, limit: int = 200) -> list[GateEvent]:
        stmt = (
            select(GateEvent)
            .where(GateEvent.order_id == order_id)
            .order_by(desc(GateEvent.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())
