"""
target_gate.api.routers.orders

Order-scoped gate endpoints.

Responsibilities:
- register / cancel a target as the calling address.
- Authorization check for settlement orchestrators.
- Read APIs: target, fulfilled flag, full record, event trail.

Registry rejections propagate as `GateError` and are rendered by the app's exception handler.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field, field_validator

from target_gate.api.deps import registry_dep
from target_gate.auth.deps import caller_address, get_principal, require_roles
from target_gate.auth.models import ROLE_ORDER_ORIGINATOR, ROLE_SETTLEMENT_ORCHESTRATOR
from target_gate.gate.addresses import decode_hex, normalize_address, normalize_order_id
from target_gate.services.target_registry import TargetAuthorizationRegistry

router = APIRouter(prefix="/v1/orders", tags=["orders"])

OrderId = Annotated[
    str, Path(pattern=r"^0x[0-9a-fA-F]{64}$", description="32-byte order id as 0x-hex")
]


def _hex_bytes(value: str) -> bytes:
    try:
        return decode_hex(value)
    except ValueError as e:
        raise ValueError("extra_data must be hex") from e


class RegisterTargetRequest(BaseModel):
    extra_data: str = Field(description="0x-prefixed 32-byte encoding of the target address")

    @field_validator("extra_data")
    @classmethod
    def _check_hex(cls, v: str) -> str:
        _hex_bytes(v)
        return v


class AuthorizeCompletionRequest(BaseModel):
    completer: str
    originator: str
    extra_data: str = "0x"

    @field_validator("completer", "originator")
    @classmethod
    def _check_address(cls, v: str) -> str:
        return normalize_address(v)

    @field_validator("extra_data")
    @classmethod
    def _check_hex(cls, v: str) -> str:
        _hex_bytes(v)
        return v


class AuthorizeCompletionResponse(BaseModel):
    order_id: str
    magic: str


class OrderAuthorizationResponse(BaseModel):
    order_id: str
    state: str
    target: str
    registrant: str
    fulfilled: bool
    via_fallback: bool
    fulfilled_at: str | None = None


@router.put("/{order_id}/target", dependencies=[Depends(require_roles(ROLE_ORDER_ORIGINATOR))])
async def register_target(
    order_id: OrderId,
    body: RegisterTargetRequest,
    caller: str = Depends(caller_address),
    registry: TargetAuthorizationRegistry = Depends(registry_dep),
) -> dict[str, str]:
    order_id = normalize_order_id(order_id)
    await registry.register(
        order_id=order_id, registrant=caller, raw_target=_hex_bytes(body.extra_data)
    )
    return {"order_id": order_id, "status": "targeted"}


@router.post(
    "/{order_id}/authorize",
    response_model=AuthorizeCompletionResponse,
    dependencies=[Depends(require_roles(ROLE_SETTLEMENT_ORCHESTRATOR))],
)
async def authorize_completion(
    order_id: OrderId,
    body: AuthorizeCompletionRequest,
    registry: TargetAuthorizationRegistry = Depends(registry_dep),
) -> AuthorizeCompletionResponse:
    order_id = normalize_order_id(order_id)
    magic = await registry.authorize_completion(
        order_id=order_id,
        completer=body.completer,
        originator=body.originator,
        raw_extra=_hex_bytes(body.extra_data),
    )
    return AuthorizeCompletionResponse(order_id=order_id, magic=magic)


@router.delete("/{order_id}/target")
async def cancel_target(
    order_id: OrderId,
    caller: str = Depends(caller_address),
    registry: TargetAuthorizationRegistry = Depends(registry_dep),
) -> dict[str, str]:
    order_id = normalize_order_id(order_id)
    await registry.cancel(order_id=order_id, caller=caller)
    return {"order_id": order_id, "status": "cancelled"}


@router.get("/{order_id}/target", dependencies=[Depends(get_principal)])
async def get_target(
    order_id: OrderId,
    registry: TargetAuthorizationRegistry = Depends(registry_dep),
) -> dict[str, str]:
    order_id = normalize_order_id(order_id)
    return {"order_id": order_id, "target": await registry.get_target(order_id)}


@router.get("/{order_id}/fulfilled", dependencies=[Depends(get_principal)])
async def is_fulfilled(
    order_id: OrderId,
    registry: TargetAuthorizationRegistry = Depends(registry_dep),
) -> dict[str, Any]:
    order_id = normalize_order_id(order_id)
    return {"order_id": order_id, "fulfilled": await registry.is_fulfilled(order_id)}


@router.get(
    "/{order_id}",
    response_model=OrderAuthorizationResponse,
    dependencies=[Depends(get_principal)],
)
async def get_order_authorization(
    order_id: OrderId,
    registry: TargetAuthorizationRegistry = Depends(registry_dep),
) -> OrderAuthorizationResponse:
    view = await registry.describe(normalize_order_id(order_id))
    return OrderAuthorizationResponse(
        order_id=view.order_id,
        state=view.state.value,
        target=view.target,
        registrant=view.registrant,
        fulfilled=view.fulfilled,
        via_fallback=view.via_fallback,
        fulfilled_at=view.fulfilled_at.isoformat() if view.fulfilled_at else None,
    )


@router.get("/{order_id}/events", dependencies=[Depends(get_principal)])
async def list_order_events(
    order_id: OrderId,
    limit: Annotated[int, Query(ge=1, le=1000)] = 200,
    registry: TargetAuthorizationRegistry = Depends(registry_dep),
) -> list[dict[str, Any]]:
    events = await registry.events(normalize_order_id(order_id), limit=limit)
    return [
        {
            "id": str(e.id),
            "event_type": e.event_type.value,
            "actor": e.actor,
            "details": e.details,
            "created_at": e.created_at.isoformat(),
        }
        for e in events
    ]


# --- Module Notes -----------------------------------------------------------
# Newest events come first (see GateEventRepo); clients can reverse if desired.
