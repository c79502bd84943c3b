"""JSON-Cadence data interchange helpers.

Transaction arguments and script arguments travel as JSON-Cadence documents
(``{"type": ..., "value": ...}``); script results and event payloads come
back in the same shape and are decoded to plain Python values here.
"""

import json
from decimal import Decimal
from typing import Any, Final

from .network import Address

INTEGER_TYPES: Final[frozenset[str]] = frozenset(
    {
        "Int", "Int8", "Int16", "Int32", "Int64", "Int128", "Int256",
        "UInt", "UInt8", "UInt16", "UInt32", "UInt64", "UInt128", "UInt256",
        "Word8", "Word16", "Word32", "Word64",
    }
)  # fmt: skip
FIXED_POINT_TYPES: Final[frozenset[str]] = frozenset({"Fix64", "UFix64"})
COMPOSITE_TYPES: Final[frozenset[str]] = frozenset(
    {"Struct", "Resource", "Event", "Contract", "Enum"}
)
# Types that can be named directly in a transaction parameter list
SIMPLE_TYPES: Final[frozenset[str]] = (
    INTEGER_TYPES | FIXED_POINT_TYPES | {"String", "Bool", "Address", "Character"}
)


def string(value: str) -> dict[str, Any]:
    return {"type": "String", "value": value}


def address(value: Address) -> dict[str, Any]:
    return {"type": "Address", "value": value.hex_with_prefix()}


def encode_argument(value: dict[str, Any]) -> bytes:
    """Serialize a JSON-Cadence value to the bytes carried in a transaction."""
    return json.dumps(value, separators=(",", ":")).encode()


def type_name(value: dict[str, Any]) -> str:
    """Get the Cadence type to declare for a transaction parameter.

    Raises:
        ValueError: If the value is not a simple JSON-Cadence value
    """
    kind = value.get("type") if isinstance(value, dict) else None
    if kind not in SIMPLE_TYPES:
        raise ValueError(f"unsupported argument type: {kind}")
    return kind


def decode(data: bytes | str | dict[str, Any]) -> Any:
    """Decode a JSON-Cadence value into Python values.

    Integers become ``int``, fixed point numbers ``Decimal``, addresses
    ``Address``, optionals ``None`` or the wrapped value, arrays lists,
    dictionaries ``dict`` and composites a dict of their fields with the
    qualified type under ``"_type"``.
    """
    if isinstance(data, bytes | str):
        data = json.loads(data)

    kind = data.get("type")
    value = data.get("value")

    if kind == "Void":
        return None
    if kind == "Optional":
        return None if value is None else decode(value)
    if kind in ("String", "Character", "Bool"):
        return value
    if kind == "Address":
        return Address.from_hex(value)
    if kind in INTEGER_TYPES:
        return int(value)
    if kind in FIXED_POINT_TYPES:
        return Decimal(value)
    if kind == "Array":
        return [decode(item) for item in value]
    if kind == "Dictionary":
        return {decode(item["key"]): decode(item["value"]) for item in value}
    if kind in COMPOSITE_TYPES:
        fields = {field["name"]: decode(field["value"]) for field in value["fields"]}
        fields["_type"] = value["id"]
        return fields
    # Path, Type, Capability and friends are passed through untouched
    return value
