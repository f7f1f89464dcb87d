"""
target_gate.gate.state

Read-side view of a single order's authorization record.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from target_gate.gate.addresses import ZERO_ADDRESS


class AuthorizationState(enum.StrEnum):
    # UNREGISTERED -> REGISTERED -> FULFILLED; REGISTERED -> UNREGISTERED on cancel.
    unregistered = "UNREGISTERED"
    registered = "REGISTERED"
    fulfilled = "FULFILLED"


@dataclass(frozen=True, slots=True)
class OrderAuthorizationView:
    order_id: str
    target: str = ZERO_ADDRESS
    registrant: str = ZERO_ADDRESS
    fulfilled: bool = False
    via_fallback: bool = False
    fulfilled_at: datetime | None = None

    @property
    def state(self) -> AuthorizationState:
        if self.fulfilled:
            return AuthorizationState.fulfilled
        if self.target != ZERO_ADDRESS:
            return AuthorizationState.registered
        return AuthorizationState.unregistered

    @classmethod
    def unregistered(cls, order_id: str) -> OrderAuthorizationView:
        return cls(order_id=order_id)
