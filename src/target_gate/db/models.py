"""
target_gate.db.models

Persistence schema for the gate.

Responsibilities:
- OrderAuthorization: one row per registered order (target, registrant, fulfilled).
- GateEvent: append-only trail of TARGETED / FULFILLED / CANCELLED notifications.

A missing `OrderAuthorization` row is the UNREGISTERED state; cancellation deletes the
row and nothing else ever does.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Index, String, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column

from target_gate.db.base import Base


def _utcnow() -> datetime:
    # Naive UTC timestamps; SQLite does not keep tz info.
    return datetime.now(UTC).replace(tzinfo=None)


class GateEventType(enum.StrEnum):
    # Enum values are stored in DB; treat as stable API contract.
    targeted = "TARGETED"
    fulfilled = "FULFILLED"
    cancelled = "CANCELLED"


class OrderAuthorization(Base):
    __tablename__ = "order_authorizations"

    order_id: Mapped[str] = mapped_column(String(66), primary_key=True)

    target: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    registrant: Mapped[str] = mapped_column(String(42), nullable=False)
    fulfilled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    via_fallback: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)
    fulfilled_at: Mapped[datetime | None] = mapped_column(nullable=True)


class GateEvent(Base):
    __tablename__ = "gate_events"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    order_id: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    event_type: Mapped[GateEventType] = mapped_column(
        Enum(GateEventType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    actor: Mapped[str] = mapped_column(String(42), nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)

    __table_args__ = (Index("ix_gate_events_order_created", "order_id", "created_at"),)
