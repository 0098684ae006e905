"""Tests for resource dimension names and Kubernetes quantity parsing."""

from decimal import Decimal

import pytest

from cluster_scorer import quantity
from cluster_scorer.quantity import ResourceDimension

# ---------------------------------------------------------------------------
# parse_quantity
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("100m", Decimal("0.1")),
        ("2", Decimal(2)),
        ("0.5", Decimal("0.5")),
        ("1Ki", Decimal(1024)),
        ("1.5Gi", Decimal(1610612736)),
        ("1G", Decimal(10**9)),
        ("129e6", Decimal(129000000)),
        ("1E3", Decimal(1000)),
        ("2Ei", Decimal(2 * 2**60)),
        ("250u", Decimal("0.00025")),
    ],
)
def test_parse_quantity_formats(text, expected):
    """Plain, decimal-suffixed, binary-suffixed and exponent quantities parse."""
    assert quantity.parse_quantity(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1Xi", "1.2.3", "Gi", "1 Gi"])
def test_parse_quantity_rejects_invalid(text):
    """Strings outside the quantity grammar raise ValueError."""
    with pytest.raises(ValueError, match="Invalid resource quantity"):
        quantity.parse_quantity(text)


# ---------------------------------------------------------------------------
# to_base_units
# ---------------------------------------------------------------------------


def test_to_base_units_cpu_in_milli_units():
    """CPU quantities are converted to milli-units."""
    assert quantity.to_base_units(ResourceDimension.CPU, "100m") == 100
    assert quantity.to_base_units(ResourceDimension.CPU, "2") == 2000
    assert quantity.to_base_units("cpu", "0.25") == 250


def test_to_base_units_cpu_rounds_up_sub_milli():
    """Sub-milli CPU amounts round up to the next milli-unit."""
    assert quantity.to_base_units(ResourceDimension.CPU, "1500u") == 2


def test_to_base_units_memory_in_bytes():
    """Memory quantities are converted to bytes."""
    assert quantity.to_base_units(ResourceDimension.MEMORY, "1Gi") == 1024**3
    assert quantity.to_base_units(ResourceDimension.MEMORY, "128974848") == 128974848


def test_to_base_units_extended_resource_whole_units():
    """Extended resources are counted in whole units."""
    assert quantity.to_base_units("nvidia.com/gpu", "4") == 4


# ---------------------------------------------------------------------------
# parse_resource_list
# ---------------------------------------------------------------------------


def test_parse_resource_list_none_is_empty():
    """A missing resource list becomes an empty mapping."""
    assert quantity.parse_resource_list(None) == {}


def test_parse_resource_list_keeps_explicit_zero():
    """An explicit zero stays present so it is not mistaken for absence."""
    parsed = quantity.parse_resource_list({"cpu": "0"})
    assert parsed == {"cpu": 0}


def test_parse_resource_list_drops_unparseable_entries():
    """Malformed entries are dropped while valid ones are kept."""
    parsed = quantity.parse_resource_list({"cpu": "500m", "memory": "lots"})
    assert parsed == {"cpu": 500}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_resource_name_for_dimension_and_string():
    """Dimensions map to their resource list key; strings pass through."""
    assert quantity.resource_name(ResourceDimension.EPHEMERAL_STORAGE) == (
        "ephemeral-storage"
    )
    assert quantity.resource_name("nvidia.com/gpu") == "nvidia.com/gpu"


@pytest.mark.parametrize(
    ("value", "divisor", "expected"),
    [(1500, 1000, 1), (-1500, 1000, -1), (999, 1000, 0), (-999, 1000, 0)],
)
def test_truncating_div_rounds_toward_zero(value, divisor, expected):
    """Division truncates toward zero for both signs."""
    assert quantity.truncating_div(value, divisor) == expected
