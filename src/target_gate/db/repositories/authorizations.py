"""
target_gate.db.repositories.authorizations

Repository for `OrderAuthorization` rows.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from target_gate.db.models import OrderAuthorization


class OrderAuthorizationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, order_id: str) -> OrderAuthorization | None:
        # populate_existing: other sessions may have changed the row since it was loaded here.
        stmt = (
            select(OrderAuthorization)
            .where(OrderAuthorization.order_id == order_id)
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_for_update(self, order_id: str) -> OrderAuthorization | None:
        # Row lock on backends that support it; SQLite ignores FOR UPDATE.
        stmt = (
            select(OrderAuthorization)
            .where(OrderAuthorization.order_id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert_target(
        self,
        *,
        existing: OrderAuthorization | None,
        order_id: str,
        target: str,
        registrant: str,
        via_fallback: bool = False,
    ) -> OrderAuthorization:
        if existing is not None:
            existing.target = target
            existing.registrant = registrant
            existing.via_fallback = via_fallback
            await self._session.flush()
            return existing

        record = OrderAuthorization(
            order_id=order_id,
            target=target,
            registrant=registrant,
            fulfilled=False,
            via_fallback=via_fallback,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def mark_fulfilled(self, record: OrderAuthorization) -> None:
        record.fulfilled = True
        record.fulfilled_at = datetime.now(UTC).replace(tzinfo=None)
        await self._session.flush()

    async def delete(self, order_id: str) -> None:
        await self._session.execute(
            delete(OrderAuthorization).where(OrderAuthorization.order_id == order_id)
        )
