from __future__ import annotations

from typing import Any, Sequence

from eth_abi import decode as abi_decode
from eth_utils import to_bytes

from actions_indexer.app.domain.models import BURN_ADDRESS


def hex_to_bytes(value: str | bytes | None) -> bytes:
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if value in ("", "0x"):
        return b""
    return to_bytes(hexstr=value)


def as_bytes32(topic: str | bytes) -> bytes:
    # Topic is always 32 bytes.
    b = hex_to_bytes(topic)
    if len(b) != 32:
        raise ValueError(f"Expected 32 bytes (bytes32 topic), got len={len(b)}")
    return b


def topic_as_address(topic: str | bytes | None) -> str:
    """
    Indexed address stored as a left-zero-padded 32-byte topic -> lower-case 0x address.

    A missing topic maps to the burn address.
    """
    if topic is None:
        return BURN_ADDRESS
    return "0x" + as_bytes32(topic)[-20:].hex()


def topic_as_hex32(topic: str | bytes) -> str:
    return "0x" + as_bytes32(topic).hex()


def topic_as_uint256(topic: str | bytes) -> int:
    return int.from_bytes(as_bytes32(topic), byteorder="big", signed=False)


def decode_data(data: str | bytes, types: Sequence[str], names: Sequence[str]) -> dict[str, Any]:
    """Decode non-indexed event fields from the log data payload."""
    if not types:
        return {}

    values = abi_decode(list(types), hex_to_bytes(data))

    out: dict[str, Any] = {}
    for name, typ, val in zip(names, types, values, strict=True):
        out[name] = normalize_abi_value(typ, val)
    return out


def normalize_abi_value(typ: str, val: Any) -> Any:
    if typ == "address":
        # eth_abi returns checksummed "0x..." for address
        return val.lower()

    if typ.startswith("uint") or typ.startswith("int"):
        # int256/int24 can be negative; eth_abi handles sign properly.
        return int(val)

    return val
