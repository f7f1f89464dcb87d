"""
tests.test_target_registry

Behavior of the registry service against a real (SQLite) store: registration, the
single-use completion check, the fallback branch, cancellation and concurrency.
"""

from __future__ import annotations

import asyncio

import pytest

from target_gate.db.models import GateEventType
from target_gate.gate.addresses import ZERO_ADDRESS, encode_address
from target_gate.gate.errors import (
    InvalidTargetAddress,
    NotFound,
    OrderAlreadyFulfilled,
    OrderNotTargeted,
    Unauthorized,
    UnauthorizedFulfiller,
)
from target_gate.gate.metadata import AUTHORIZATION_SUCCESS_MARKER
from target_gate.gate.state import AuthorizationState
from target_gate.services.target_registry import TargetAuthorizationRegistry

from tests.constants import ORDER_ID, ORIGINATOR, OTHER_ORDER_ID, STRANGER, TARGET


async def _register(registry: TargetAuthorizationRegistry, target: str = TARGET) -> None:
    await registry.register(
        order_id=ORDER_ID, registrant=ORIGINATOR, raw_target=encode_address(target)
    )


@pytest.mark.asyncio
async def test_registered_target_completes_exactly_once(registry) -> None:
    await _register(registry)

    magic = await registry.authorize_completion(
        order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR
    )
    assert magic == AUTHORIZATION_SUCCESS_MARKER
    assert await registry.is_fulfilled(ORDER_ID)

    with pytest.raises(OrderAlreadyFulfilled):
        await registry.authorize_completion(
            order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR
        )


@pytest.mark.asyncio
async def test_other_completer_is_rejected_without_fulfilling(registry) -> None:
    await _register(registry)

    with pytest.raises(UnauthorizedFulfiller) as exc_info:
        await registry.authorize_completion(
            order_id=ORDER_ID, completer=STRANGER, originator=ORIGINATOR
        )
    assert exc_info.value.attempted == STRANGER
    assert exc_info.value.expected == TARGET
    assert not await registry.is_fulfilled(ORDER_ID)

    # The real target can still complete afterwards.
    await registry.authorize_completion(order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR)


@pytest.mark.asyncio
async def test_completer_comparison_ignores_hex_case(registry) -> None:
    await _register(registry)
    await registry.authorize_completion(
        order_id=ORDER_ID, completer=TARGET.upper().replace("0X", "0x"), originator=ORIGINATOR
    )
    assert await registry.is_fulfilled(ORDER_ID)


@pytest.mark.asyncio
async def test_zero_target_is_rejected_and_nothing_is_stored(registry) -> None:
    with pytest.raises(InvalidTargetAddress):
        await registry.register(
            order_id=ORDER_ID, registrant=ORIGINATOR, raw_target=bytes(32)
        )
    assert await registry.get_target(ORDER_ID) == ZERO_ADDRESS
    assert await registry.events(ORDER_ID) == []


@pytest.mark.asyncio
async def test_zero_target_does_not_touch_existing_registration(registry) -> None:
    await _register(registry)
    with pytest.raises(InvalidTargetAddress):
        await registry.register(
            order_id=ORDER_ID, registrant=STRANGER, raw_target=bytes(32)
        )
    view = await registry.describe(ORDER_ID)
    assert view.target == TARGET
    assert view.registrant == ORIGINATOR


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [b"", bytes(20), bytes(31), bytes(33), bytes(64)])
async def test_malformed_target_encoding_is_rejected(registry, raw: bytes) -> None:
    with pytest.raises(InvalidTargetAddress) as exc_info:
        await registry.register(order_id=ORDER_ID, registrant=ORIGINATOR, raw_target=raw)
    assert exc_info.value.order_id == ORDER_ID


@pytest.mark.asyncio
async def test_reregistration_overwrites_unfulfilled_target(registry) -> None:
    await _register(registry)
    await registry.register(
        order_id=ORDER_ID, registrant=STRANGER, raw_target=encode_address(STRANGER)
    )

    view = await registry.describe(ORDER_ID)
    assert view.target == STRANGER
    assert view.registrant == STRANGER
    with pytest.raises(UnauthorizedFulfiller):
        await registry.authorize_completion(
            order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR
        )


@pytest.mark.asyncio
async def test_fulfilled_order_cannot_be_retargeted(registry) -> None:
    await _register(registry)
    await registry.authorize_completion(order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR)

    with pytest.raises(OrderAlreadyFulfilled):
        await registry.register(
            order_id=ORDER_ID, registrant=ORIGINATOR, raw_target=encode_address(STRANGER)
        )
    assert await registry.get_target(ORDER_ID) == TARGET


@pytest.mark.asyncio
async def test_fallback_registers_and_fulfills_in_one_call(registry) -> None:
    magic = await registry.authorize_completion(
        order_id=ORDER_ID,
        completer=TARGET,
        originator=ORIGINATOR,
        raw_extra=encode_address(TARGET),
    )

    assert magic == AUTHORIZATION_SUCCESS_MARKER
    assert await registry.get_target(ORDER_ID) == TARGET
    assert await registry.is_fulfilled(ORDER_ID)
    view = await registry.describe(ORDER_ID)
    assert view.registrant == ORIGINATOR
    assert view.via_fallback
    assert view.state is AuthorizationState.fulfilled


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [b"", bytes(32), bytes(31), b"\x01" + bytes(31)])
async def test_fallback_without_usable_target_is_not_targeted(registry, raw: bytes) -> None:
    with pytest.raises(OrderNotTargeted):
        await registry.authorize_completion(
            order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR, raw_extra=raw
        )
    assert await registry.get_target(ORDER_ID) == ZERO_ADDRESS


@pytest.mark.asyncio
async def test_rejected_fallback_persists_nothing(registry) -> None:
    with pytest.raises(UnauthorizedFulfiller):
        await registry.authorize_completion(
            order_id=ORDER_ID,
            completer=STRANGER,
            originator=ORIGINATOR,
            raw_extra=encode_address(TARGET),
        )
    assert await registry.get_target(ORDER_ID) == ZERO_ADDRESS
    assert not await registry.is_fulfilled(ORDER_ID)
    assert await registry.events(ORDER_ID) == []


@pytest.mark.asyncio
async def test_extra_data_is_ignored_once_registered(registry) -> None:
    await _register(registry)
    with pytest.raises(UnauthorizedFulfiller):
        await registry.authorize_completion(
            order_id=ORDER_ID,
            completer=STRANGER,
            originator=ORIGINATOR,
            raw_extra=encode_address(STRANGER),
        )
    assert await registry.get_target(ORDER_ID) == TARGET


@pytest.mark.asyncio
async def test_registrant_cancel_resets_target(registry) -> None:
    await _register(registry)

    await registry.cancel(order_id=ORDER_ID, caller=ORIGINATOR)
    assert await registry.get_target(ORDER_ID) == ZERO_ADDRESS
    assert (await registry.describe(ORDER_ID)).state is AuthorizationState.unregistered

    with pytest.raises(NotFound):
        await registry.cancel(order_id=ORDER_ID, caller=ORIGINATOR)


@pytest.mark.asyncio
async def test_cancel_by_non_registrant_leaves_record_unchanged(registry) -> None:
    await _register(registry)

    with pytest.raises(Unauthorized):
        await registry.cancel(order_id=ORDER_ID, caller=STRANGER)
    # The target is not the registrant either.
    with pytest.raises(Unauthorized):
        await registry.cancel(order_id=ORDER_ID, caller=TARGET)

    view = await registry.describe(ORDER_ID)
    assert view.target == TARGET
    assert view.registrant == ORIGINATOR


@pytest.mark.asyncio
async def test_cancel_checks_run_in_order(registry) -> None:
    with pytest.raises(NotFound):
        await registry.cancel(order_id=ORDER_ID, caller=STRANGER)

    await _register(registry)
    await registry.authorize_completion(order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR)

    # Non-registrant is rejected as Unauthorized before the fulfilled check.
    with pytest.raises(Unauthorized):
        await registry.cancel(order_id=ORDER_ID, caller=STRANGER)
    with pytest.raises(OrderAlreadyFulfilled):
        await registry.cancel(order_id=ORDER_ID, caller=ORIGINATOR)
    assert await registry.get_target(ORDER_ID) == TARGET
    assert await registry.is_fulfilled(ORDER_ID)


@pytest.mark.asyncio
async def test_fulfilled_stays_true_through_later_operations(registry) -> None:
    assert not await registry.is_fulfilled(ORDER_ID)
    await _register(registry)
    assert not await registry.is_fulfilled(ORDER_ID)
    await registry.authorize_completion(order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR)

    attempts = [
        registry.register(
            order_id=ORDER_ID, registrant=ORIGINATOR, raw_target=encode_address(STRANGER)
        ),
        registry.cancel(order_id=ORDER_ID, caller=ORIGINATOR),
        registry.authorize_completion(order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR),
        registry.authorize_completion(
            order_id=ORDER_ID,
            completer=STRANGER,
            originator=ORIGINATOR,
            raw_extra=encode_address(STRANGER),
        ),
    ]
    for attempt in attempts:
        with pytest.raises(OrderAlreadyFulfilled):
            await attempt
        assert await registry.is_fulfilled(ORDER_ID)


@pytest.mark.asyncio
async def test_orders_are_independent(registry) -> None:
    await _register(registry)
    assert await registry.get_target(OTHER_ORDER_ID) == ZERO_ADDRESS
    with pytest.raises(OrderNotTargeted):
        await registry.authorize_completion(
            order_id=OTHER_ORDER_ID, completer=TARGET, originator=ORIGINATOR
        )


@pytest.mark.asyncio
async def test_order_id_case_selects_the_same_record(registry) -> None:
    lower, upper = "0x" + "ab" * 32, "0x" + "AB" * 32
    await registry.register(
        order_id=upper, registrant=ORIGINATOR, raw_target=encode_address(TARGET)
    )
    assert await registry.get_target(lower) == TARGET
    assert (await registry.describe(upper)).order_id == lower

    await registry.authorize_completion(order_id=lower, completer=TARGET, originator=ORIGINATOR)
    with pytest.raises(OrderAlreadyFulfilled):
        await registry.authorize_completion(
            order_id=upper, completer=TARGET, originator=ORIGINATOR
        )
    assert await registry.is_fulfilled(upper)


@pytest.mark.asyncio
async def test_notifications_are_recorded(registry) -> None:
    await _register(registry)
    await registry.cancel(order_id=ORDER_ID, caller=ORIGINATOR)
    await _register(registry)
    await registry.authorize_completion(order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR)

    events = await registry.events(ORDER_ID)
    kinds = sorted(e.event_type.value for e in events)
    assert kinds == ["CANCELLED", "FULFILLED", "TARGETED", "TARGETED"]

    targeted = [e for e in events if e.event_type is GateEventType.targeted]
    expected = {"registrant": ORIGINATOR, "target": TARGET, "via_fallback": False}
    assert all(e.details == expected for e in targeted)
    fulfilled = next(e for e in events if e.event_type is GateEventType.fulfilled)
    assert fulfilled.actor == TARGET


@pytest.mark.asyncio
async def test_concurrent_completions_have_a_single_winner(sessionmaker, locks) -> None:
    async with sessionmaker() as session:
        await _register(TargetAuthorizationRegistry(session=session, locks=locks))

    async def attempt() -> str:
        async with sessionmaker() as session:
            registry = TargetAuthorizationRegistry(session=session, locks=locks)
            try:
                await registry.authorize_completion(
                    order_id=ORDER_ID, completer=TARGET, originator=ORIGINATOR
                )
            except OrderAlreadyFulfilled:
                return "rejected"
            return "authorized"

    results = await asyncio.gather(*(attempt() for _ in range(8)))
    assert results.count("authorized") == 1
    assert results.count("rejected") == 7
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_concurrent_fallback_completions_have_a_single_winner(sessionmaker, locks) -> None:
    async def attempt() -> str:
        async with sessionmaker() as session:
            registry = TargetAuthorizationRegistry(session=session, locks=locks)
            try:
                await registry.authorize_completion(
                    order_id=ORDER_ID,
                    completer=TARGET,
                    originator=ORIGINATOR,
                    raw_extra=encode_address(TARGET),
                )
            except OrderAlreadyFulfilled:
                return "rejected"
            return "authorized"

    results = await asyncio.gather(*(attempt() for _ in range(5)))
    assert sorted(results) == ["authorized"] + ["rejected"] * 4
