"""
target_gate.auth.models

Auth domain models.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_ORDER_ORIGINATOR = "order_originator"
ROLE_SETTLEMENT_ORCHESTRATOR = "settlement_orchestrator"


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity. `subject` is the caller's address as vouched for by the
    token issuer; the gate treats it as trusted.
    """

    subject: str
    roles: frozenset[str]

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles
