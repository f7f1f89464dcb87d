"""
target_gate.api.routers.gate

Public discovery endpoints.

Responsibilities:
- `supportsInterface`-style capability query.
- Static metadata: gate name and the `extra_data` schema it understands.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Path

from target_gate.api.deps import settings_dep
from target_gate.gate.metadata import (
    AUTHORIZATION_SUCCESS_MARKER,
    GATE_INTERFACE_ID,
    gate_metadata,
    supports_interface,
)
from target_gate.settings import Settings

router = APIRouter(prefix="/v1/gate", tags=["gate"])


@router.get("/interfaces/{interface_id}")
async def get_interface_support(
    interface_id: str = Path(pattern=r"^0x[0-9a-fA-F]{8}$"),
) -> dict[str, Any]:
    return {"interface_id": interface_id.lower(), "supported": supports_interface(interface_id)}


@router.get("/metadata")
async def get_metadata(settings: Settings = Depends(settings_dep)) -> dict[str, Any]:
    meta = gate_metadata(
        name=settings.gate_name,
        schema_id=settings.extra_data_schema_id,
        schema_version=settings.extra_data_schema_version,
    ).to_dict()
    meta["interface_id"] = GATE_INTERFACE_ID
    meta["success_marker"] = AUTHORIZATION_SUCCESS_MARKER
    return meta
