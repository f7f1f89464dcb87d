"""
target_gate.clients.gate_http

HTTP client used by orchestrators and originators to call the gate.

Responsibilities:
- Attach short-lived JWT credentials for the acting address.
- Encode targets into the canonical `extra_data` word.
- Turn gate error bodies back into `GateError` subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import httpx

from target_gate.auth.jwt import JwtConfig, issue_token
from target_gate.auth.models import ROLE_ORDER_ORIGINATOR, ROLE_SETTLEMENT_ORCHESTRATOR
from target_gate.gate.addresses import encode_address
from target_gate.gate.errors import error_from_body
from target_gate.settings import Settings


@dataclass(frozen=True, slots=True)
class GateCaller:
    # Address the gate will see as the token subject.
    address: str
    roles: tuple[str, ...] = (ROLE_ORDER_ORIGINATOR,)


def orchestrator(address: str) -> GateCaller:
    return GateCaller(address=address, roles=(ROLE_SETTLEMENT_ORCHESTRATOR,))


class TargetGateClient:
    def __init__(
        self,
        *,
        settings: Settings,
        http: httpx.AsyncClient,
        caller: GateCaller,
    ) -> None:
        self._settings = settings
        self._http = http
        self._caller = caller

    def _authz(self) -> dict[str, str]:
        token = issue_token(
            cfg=JwtConfig.from_settings(self._settings),
            subject=self._caller.address,
            roles=list(self._caller.roles),
            ttl=timedelta(minutes=5),
        )
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _check(r: httpx.Response) -> dict[str, Any]:
        if r.is_error:
            try:
                body: Any = r.json()
            except ValueError:
                body = None
            # Gate rejections carry an "error" code; anything else is a transport/HTTP failure.
            if isinstance(body, dict) and "error" in body:
                raise error_from_body(body)
            r.raise_for_status()
        return r.json()

    async def register_target(self, *, order_id: str, target: str) -> None:
        await self.register_raw(order_id=order_id, extra_data="0x" + encode_address(target).hex())

    async def register_raw(self, *, order_id: str, extra_data: str) -> None:
        r = await self._http.put(
            f"/v1/orders/{order_id}/target",
            headers=self._authz(),
            json={"extra_data": extra_data},
        )
        self._check(r)

    async def authorize_completion(
        self,
        *,
        order_id: str,
        completer: str,
        originator: str,
        fallback_target: str | None = None,
    ) -> str:
        extra = "0x" + encode_address(fallback_target).hex() if fallback_target else "0x"
        r = await self._http.post(
            f"/v1/orders/{order_id}/authorize",
            headers=self._authz(),
            json={"completer": completer, "originator": originator, "extra_data": extra},
        )
        return str(self._check(r)["magic"])

    async def cancel(self, *, order_id: str) -> None:
        r = await self._http.delete(f"/v1/orders/{order_id}/target", headers=self._authz())
        self._check(r)

    async def get_target(self, *, order_id: str) -> str:
        r = await self._http.get(f"/v1/orders/{order_id}/target", headers=self._authz())
        return str(self._check(r)["target"])

    async def is_fulfilled(self, *, order_id: str) -> bool:
        r = await self._http.get(f"/v1/orders/{order_id}/fulfilled", headers=self._authz())
        return bool(self._check(r)["fulfilled"])

    async def supports_interface(self, interface_id: str) -> bool:
        r = await self._http.get(f"/v1/gate/interfaces/{interface_id}")
        return bool(self._check(r)["supported"])

    async def metadata(self) -> dict[str, Any]:
        return self._check(await self._http.get("/v1/gate/metadata"))
