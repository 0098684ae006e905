"""Resource dimensions and Kubernetes quantity helpers.

Resource quantities are carried through the scorer as plain integers in a
dimension-specific base unit: CPU in milli-units (1000 = one CPU), memory
and ephemeral storage in bytes, every other resource in whole units.
"""

import enum
import re
from collections.abc import Mapping
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import TypeAlias

import structlog

logger = structlog.get_logger(__name__)

ResourceName: TypeAlias = str

MILLI_PER_CPU = 1000
MIB = 1024 * 1024


class ResourceDimension(str, enum.Enum):
    """Well-known resource dimensions.

    Extended resources (e.g. ``nvidia.com/gpu``) are not members; they are
    passed around as plain resource name strings.
    """

    CPU = "cpu"
    MEMORY = "memory"
    EPHEMERAL_STORAGE = "ephemeral-storage"


def resource_name(dimension: ResourceDimension | str) -> ResourceName:
    """Return the resource list key for a dimension or raw resource name."""
    if isinstance(dimension, ResourceDimension):
        return dimension.value
    return dimension


_BINARY_SUFFIXES = {
    "Ki": 2**10,
    "Mi": 2**20,
    "Gi": 2**30,
    "Ti": 2**40,
    "Pi": 2**50,
    "Ei": 2**60,
}

_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))"
    r"(?:(?P<exponent>[eE][+-]?\d+)|(?P<suffix>[KMGTPE]i|[numkMGTPE])?)$"
)


def parse_quantity(text: str | int | float) -> Decimal:
    """Parse a Kubernetes quantity string into an exact decimal value.

    Supported formats:
        "100m" -> 0.1
        "2" -> 2
        "1.5Gi" -> 1610612736
        "128974848" -> 128974848
        "1e3" -> 1000

    Args:
        text: Quantity as found in a resource list. Numbers are accepted
            for convenience.

    Returns:
        Decimal value in the quantity's canonical unit (cores, bytes, ...).

    Raises:
        ValueError: If the string does not follow the quantity grammar.
    """
    raw = str(text).strip()
    match = _QUANTITY_RE.match(raw)
    if match is None:
        msg = f"Invalid resource quantity: {text!r}"
        raise ValueError(msg)

    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as exc:
        msg = f"Invalid resource quantity: {text!r}"
        raise ValueError(msg) from exc

    if exponent := match.group("exponent"):
        return number.scaleb(int(exponent[1:]))

    suffix = match.group("suffix") or ""
    if suffix in _BINARY_SUFFIXES:
        return number * _BINARY_SUFFIXES[suffix]
    return number * _DECIMAL_SUFFIXES[suffix]


def to_base_units(dimension: ResourceDimension | str, text: str | int | float) -> int:
    """Convert a quantity to the integer base unit of its dimension.

    CPU is returned in milli-units, everything else in whole units. Fractional
    results are rounded up, matching how Kubernetes reports quantities.
    """
    value = parse_quantity(text)
    if resource_name(dimension) == ResourceDimension.CPU.value:
        value *= MILLI_PER_CPU
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def parse_resource_list(
    resources: Mapping[str, str | int | float] | None,
) -> dict[ResourceName, int]:
    """Convert a raw resource list into base-unit integers.

    Keys that are absent stay absent; entries that fail to parse are dropped
    with a warning so that one malformed object never fails a scoring pass.
    """
    if not resources:
        return {}

    parsed: dict[ResourceName, int] = {}
    for name, raw_value in resources.items():
        try:
            parsed[name] = to_base_units(name, raw_value)
        except ValueError:
            logger.warning(
                "Failed to parse resource quantity",
                resource=name,
                value=str(raw_value),
            )
    return parsed


def truncating_div(value: int, divisor: int) -> int:
    """Integer division rounding toward zero, as fixed-width integers do."""
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient
