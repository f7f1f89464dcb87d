"""
target_gate.gate.errors

Rejections raised by the target authorization registry.

Responsibilities:
- Give every rejection a stable machine-readable `code` and an HTTP status.
- Carry structured details (e.g., attempted vs expected fulfiller) for callers and logs.
- Map error codes back to exception types for the HTTP client.

Every rejection is raised before the operation writes anything, so a caught
`GateError` always means the stored state is unchanged.
"""

from __future__ import annotations

from typing import Any, ClassVar

from starlette.status import (
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)


class GateError(Exception):
    code: ClassVar[str] = "GATE_ERROR"
    status_code: ClassVar[int] = HTTP_409_CONFLICT

    def __init__(self, message: str, *, order_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.order_id = order_id

    def details(self) -> dict[str, Any]:
        return {"order_id": self.order_id} if self.order_id is not None else {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details()}


class InvalidTargetAddress(GateError):
    code = "INVALID_TARGET_ADDRESS"
    status_code = 422


class OrderNotTargeted(GateError):
    code = "ORDER_NOT_TARGETED"
    status_code = HTTP_409_CONFLICT


class OrderAlreadyFulfilled(GateError):
    code = "ORDER_ALREADY_FULFILLED"
    status_code = HTTP_409_CONFLICT


class UnauthorizedFulfiller(GateError):
    code = "UNAUTHORIZED_FULFILLER"
    status_code = HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str,
        *,
        attempted: str,
        expected: str,
        order_id: str | None = None,
    ) -> None:
        super().__init__(message, order_id=order_id)
        self.attempted = attempted
        self.expected = expected

    def details(self) -> dict[str, Any]:
        return {**super().details(), "attempted": self.attempted, "expected": self.expected}


class NotFound(GateError):
    code = "NOT_FOUND"
    status_code = HTTP_404_NOT_FOUND


class Unauthorized(GateError):
    code = "UNAUTHORIZED"
    status_code = HTTP_403_FORBIDDEN


ERRORS_BY_CODE: dict[str, type[GateError]] = {
    cls.code: cls
    for cls in (
        InvalidTargetAddress,
        OrderNotTargeted,
        OrderAlreadyFulfilled,
        UnauthorizedFulfiller,
        NotFound,
        Unauthorized,
    )
}


def error_from_body(body: dict[str, Any]) -> GateError:
    """
    Rebuild a `GateError` from the JSON body rendered by `GateError.to_dict`.
    Unknown codes come back as a plain `GateError`.
    """

    code = str(body.get("error", ""))
    message = str(body.get("detail", code or "gate error"))
    order_id = body.get("order_id")
    cls = ERRORS_BY_CODE.get(code, GateError)
    if cls is UnauthorizedFulfiller:
        return UnauthorizedFulfiller(
            message,
            attempted=str(body.get("attempted", "")),
            expected=str(body.get("expected", "")),
            order_id=order_id,
        )
    return cls(message, order_id=order_id)
