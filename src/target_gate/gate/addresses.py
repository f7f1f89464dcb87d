"""
target_gate.gate.addresses

Address and order-id value handling.

Responsibilities:
- Normalize textual addresses (`0x` + 40 hex) and order ids (`0x` + 64 hex).
- Decode/encode the canonical 32-byte word that carries a single address in `extra_data`
  (12 zero bytes of left padding followed by the 20 address bytes).
"""

from __future__ import annotations

import re

from target_gate.gate.errors import InvalidTargetAddress

ADDRESS_BYTES = 20
WORD_BYTES = 32
ORDER_ID_BYTES = 32

ZERO_ADDRESS = "0x" + "00" * ADDRESS_BYTES

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_ORDER_ID_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_HEX_RE = re.compile(r"[0-9a-fA-F]*")


def normalize_address(value: str) -> str:
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise ValueError(f"not an address: {value!r}")
    return value.lower()


def normalize_order_id(value: str) -> str:
    if not isinstance(value, str) or not _ORDER_ID_RE.match(value):
        raise ValueError(f"order id must be 0x-prefixed {ORDER_ID_BYTES}-byte hex")
    return value.lower()


def decode_hex(value: str) -> bytes:
    """
    Decode `0x`-prefixed (or bare) hex into bytes. Raises ValueError on malformed input.
    """

    text = value[2:] if value[:2] in ("0x", "0X") else value
    if not _HEX_RE.fullmatch(text):
        raise ValueError("not a hex string")
    if len(text) % 2:
        raise ValueError("hex string has odd length")
    return bytes.fromhex(text)


def encode_address(address: str) -> bytes:
    raw = bytes.fromhex(normalize_address(address)[2:])
    return bytes(WORD_BYTES - ADDRESS_BYTES) + raw


def decode_address(raw: bytes) -> str:
    """
    Decode exactly one canonically encoded address.

    Any other length, or non-zero padding bytes, is an `InvalidTargetAddress`. The zero
    address decodes successfully; callers decide whether it is acceptable.
    """

    if len(raw) != WORD_BYTES:
        raise InvalidTargetAddress(
            f"extra data must be exactly {WORD_BYTES} bytes, got {len(raw)}"
        )
    padding, body = raw[: WORD_BYTES - ADDRESS_BYTES], raw[WORD_BYTES - ADDRESS_BYTES :]
    if any(padding):
        raise InvalidTargetAddress("address word has non-zero padding")
    return "0x" + body.hex()


def is_zero_address(address: str | None) -> bool:
    return address is None or address.lower() == ZERO_ADDRESS
