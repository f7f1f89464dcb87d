"""
target_gate.services.target_registry

TargetAuthorizationRegistry: the single-use, single-counterparty authorization gate.

Responsibilities:
- Register (upsert) the intended fulfiller of an order.
- Authorize completion of an order exactly once, for the registered target only, with an
  explicit fallback branch that registers the target from the completion's extra data.
- Let the registrant cancel an unfulfilled registration.
- Answer target / fulfilled lookups.
- Own transaction boundaries: every operation is one locked read-modify-write + commit.

Caller identities (registrant, completer, originator, canceller) are trusted input from the
authentication layer in front of this service; they are never re-derived here.
Order ids are normalized to lower-case hex on entry, so record and lock keys ignore case.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from target_gate.db.models import GateEvent, GateEventType, OrderAuthorization
from target_gate.db.repositories.authorizations import OrderAuthorizationRepo
from target_gate.db.repositories.events import GateEventRepo
from target_gate.gate.addresses import (
    ZERO_ADDRESS,
    decode_address,
    is_zero_address,
    normalize_order_id,
)
from target_gate.gate.errors import (
    GateError,
    InvalidTargetAddress,
    NotFound,
    OrderAlreadyFulfilled,
    OrderNotTargeted,
    Unauthorized,
    UnauthorizedFulfiller,
)
from target_gate.gate.locks import OrderLocks
from target_gate.gate.metadata import AUTHORIZATION_SUCCESS_MARKER
from target_gate.gate.state import OrderAuthorizationView
from target_gate.observability.logging import get_logger

log = get_logger(__name__)


class TargetAuthorizationRegistry:
    def __init__(self, *, session: AsyncSession, locks: OrderLocks) -> None:
        self._session = session
        self._locks = locks
        self._records = OrderAuthorizationRepo(session)
        self._events = GateEventRepo(session)

    @asynccontextmanager
    async def _atomic(self, order_id: str, operation: str) -> AsyncIterator[None]:
        # Lock is held until commit so no other task sees the record mid-update.
        async with self._locks.hold(order_id):
            try:
                yield
            except GateError as e:
                await self._session.rollback()
                log.info(
                    f"{operation}_rejected",
                    order_id=order_id,
                    error=e.code,
                    **{k: v for k, v in e.details().items() if k != "order_id"},
                )
                raise
            except Exception:
                await self._session.rollback()
                raise
            else:
                await self._session.commit()

    async def register(self, *, order_id: str, registrant: str, raw_target: bytes) -> None:
        order_id, registrant = normalize_order_id(order_id), registrant.lower()
        async with self._atomic(order_id, "register"):
            try:
                target = decode_address(raw_target)
            except InvalidTargetAddress as e:
                raise InvalidTargetAddress(e.message, order_id=order_id) from e
            if is_zero_address(target):
                raise InvalidTargetAddress(
                    "target must not be the zero address", order_id=order_id
                )

            existing = await self._records.get_for_update(order_id)
            if existing is not None and existing.fulfilled:
                raise OrderAlreadyFulfilled(
                    "order is fulfilled; its target can no longer change", order_id=order_id
                )
            if existing is not None:
                # Re-registration overwrites silently; surfaced in logs for review.
                log.warning(
                    "target_overwritten",
                    order_id=order_id,
                    previous_target=existing.target,
                    previous_registrant=existing.registrant,
                    target=target,
                    registrant=registrant,
                )
            await self._records.upsert_target(
                existing=existing, order_id=order_id, target=target, registrant=registrant
            )
            await self._emit_targeted(
                order_id=order_id, registrant=registrant, target=target, via_fallback=False
            )

    async def authorize_completion(
        self,
        *,
        order_id: str,
        completer: str,
        originator: str,
        raw_extra: bytes = b"",
    ) -> str:
        """
        Gate a completion attempt. Returns `AUTHORIZATION_SUCCESS_MARKER` on success.

        `originator` is only used by the fallback branch, where it becomes the registrant.
        """

        order_id = normalize_order_id(order_id)
        completer, originator = completer.lower(), originator.lower()

        async with self._atomic(order_id, "authorize_completion"):
            record = await self._records.get_for_update(order_id)
            if record is None:
                target = self._fallback_target(order_id=order_id, raw_extra=raw_extra)
                self._check_fulfiller(order_id=order_id, completer=completer, target=target)
                record = await self._register_from_completion(
                    order_id=order_id, target=target, originator=originator
                )
            else:
                if record.fulfilled:
                    raise OrderAlreadyFulfilled("order already fulfilled", order_id=order_id)
                self._check_fulfiller(order_id=order_id, completer=completer, target=record.target)

            await self._records.mark_fulfilled(record)
            await self._events.add(
                order_id=order_id,
                event_type=GateEventType.fulfilled,
                actor=completer,
                details={"fulfiller": completer},
            )
            log.info("order_fulfilled", order_id=order_id, fulfiller=completer)
        return AUTHORIZATION_SUCCESS_MARKER

    @staticmethod
    def _fallback_target(*, order_id: str, raw_extra: bytes) -> str:
        try:
            target = decode_address(raw_extra)
        except InvalidTargetAddress:
            target = ZERO_ADDRESS
        if is_zero_address(target):
            raise OrderNotTargeted(
                "order has no registered target and no usable fallback target",
                order_id=order_id,
            )
        return target

    async def _register_from_completion(
        self, *, order_id: str, target: str, originator: str
    ) -> OrderAuthorization:
        """
        Fallback registration: the target comes from the completion's extra data and the
        order's originator becomes the registrant.
        """

        record = await self._records.upsert_target(
            existing=None,
            order_id=order_id,
            target=target,
            registrant=originator,
            via_fallback=True,
        )
        await self._emit_targeted(
            order_id=order_id, registrant=originator, target=target, via_fallback=True
        )
        return record

    @staticmethod
    def _check_fulfiller(*, order_id: str, completer: str, target: str) -> None:
        if completer.lower() != target.lower():
            raise UnauthorizedFulfiller(
                "completer is not the order's target",
                attempted=completer,
                expected=target,
                order_id=order_id,
            )

    async def cancel(self, *, order_id: str, caller: str) -> None:
        order_id, caller = normalize_order_id(order_id), caller.lower()
        async with self._atomic(order_id, "cancel"):
            record = await self._records.get_for_update(order_id)
            if record is None:
                raise NotFound("order has no registered target", order_id=order_id)
            if caller != record.registrant.lower():
                raise Unauthorized("only the registrant may cancel", order_id=order_id)
            if record.fulfilled:
                raise OrderAlreadyFulfilled(
                    "fulfilled orders cannot be cancelled", order_id=order_id
                )

            previous_target = record.target
            await self._records.delete(order_id)
            await self._events.add(
                order_id=order_id,
                event_type=GateEventType.cancelled,
                actor=caller,
                details={"registrant": caller, "target": previous_target},
            )
            log.info("order_target_cancelled", order_id=order_id, registrant=caller)

    async def get_target(self, order_id: str) -> str:
        record = await self._records.get(normalize_order_id(order_id))
        return record.target if record is not None else ZERO_ADDRESS

    async def is_fulfilled(self, order_id: str) -> bool:
        record = await self._records.get(normalize_order_id(order_id))
        return record is not None and record.fulfilled

    async def describe(self, order_id: str) -> OrderAuthorizationView:
        order_id = normalize_order_id(order_id)
        record = await self._records.get(order_id)
        if record is None:
            return OrderAuthorizationView.unregistered(order_id)
        return OrderAuthorizationView(
            order_id=record.order_id,
            target=record.target,
            registrant=record.registrant,
            fulfilled=record.fulfilled,
            via_fallback=record.via_fallback,
            fulfilled_at=record.fulfilled_at,
        )

    async def events(self, order_id: str, *, limit: int = 200) -> list[GateEvent]:
        return await self._events.list_for_order(normalize_order_id(order_id), limit=limit)

    async def _emit_targeted(
        self, *, order_id: str, registrant: str, target: str, via_fallback: bool
    ) -> None:
        details: dict[str, Any] = {
            "registrant": registrant,
            "target": target,
            "via_fallback": via_fallback,
        }
        await self._events.add(
            order_id=order_id,
            event_type=GateEventType.targeted,
            actor=registrant,
            details=details,
        )
        log.info("order_targeted", order_id=order_id, **details)


# --- Module Notes -----------------------------------------------------------
# Every rejection is raised before the first write of its operation, and `_atomic` rolls
# back on any error, so a failed call never leaves a partial record behind.
