"""
target_gate.gate.metadata

Discovery data the gate advertises to orchestrators.

Responsibilities:
- Derive 4-byte operation selectors and the gate's interface id.
- Answer `supportsInterface`-style queries.
- Describe the gate name and the `extra_data` schema it understands.

Selectors are the first four bytes of SHA3-256 over the operation signature; an
interface id is the XOR of the selectors of the operations it groups.
Ids are gate-local: they are not Keccak-256 EVM selectors and must not be compared with them.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from functools import reduce
from typing import Any

SUPPORTS_INTERFACE_SIGNATURE = "supportsInterface(bytes4)"

GATE_OPERATION_SIGNATURES: tuple[str, ...] = (
    "register(bytes32,bytes)",
    "authorizeCompletion(bytes32,address,address,bytes)",
    "cancel(bytes32)",
    "getTarget(bytes32)",
    "isFulfilled(bytes32)",
    "getGateMetadata()",
)

INVALID_INTERFACE_ID = "0xffffffff"


def selector(signature: str) -> str:
    return "0x" + hashlib.sha3_256(signature.encode("ascii")).digest()[:4].hex()


def interface_id(signatures: tuple[str, ...]) -> str:
    value = reduce(lambda acc, sig: acc ^ int(selector(sig), 16), signatures, 0)
    return f"0x{value:08x}"


DISCOVERY_INTERFACE_ID = selector(SUPPORTS_INTERFACE_SIGNATURE)
GATE_INTERFACE_ID = interface_id(GATE_OPERATION_SIGNATURES)

# Returned by a successful completion check; orchestrators compare against it.
AUTHORIZATION_SUCCESS_MARKER = selector("authorizeCompletion(bytes32,address,address,bytes)")

SUPPORTED_INTERFACE_IDS = frozenset({DISCOVERY_INTERFACE_ID, GATE_INTERFACE_ID})


def supports_interface(candidate: str) -> bool:
    normalized = candidate.lower()
    if normalized == INVALID_INTERFACE_ID:
        return False
    return normalized in SUPPORTED_INTERFACE_IDS


@dataclass(frozen=True, slots=True)
class ExtraDataSchema:
    id: int
    version: str
    extra_data: str = "abi-encoded address (32 bytes)"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "version": self.version, "extra_data": self.extra_data}


@dataclass(frozen=True, slots=True)
class GateMetadata:
    name: str
    schemas: tuple[ExtraDataSchema, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "schemas": [s.to_dict() for s in self.schemas]}


def gate_metadata(*, name: str, schema_id: int, schema_version: str) -> GateMetadata:
    return GateMetadata(name=name, schemas=(ExtraDataSchema(id=schema_id, version=schema_version),))
