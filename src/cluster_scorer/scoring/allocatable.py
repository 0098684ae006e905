"""Allocatable capacity aggregation across cluster nodes."""

from collections.abc import Iterable

from ..quantity import ResourceDimension, resource_name
from ..snapshot import NodeSnapshot


def sum_allocatable(
    nodes: Iterable[NodeSnapshot],
    dimension: ResourceDimension | str,
) -> int:
    """Sum allocatable capacity of one dimension over schedulable nodes.

    Unschedulable nodes are skipped and nodes that do not report the
    dimension contribute nothing, so an empty or fully cordoned cluster
    yields 0.

    Args:
        nodes: Node snapshots.
        dimension: Resource to sum.

    Returns:
        Total allocatable in the dimension's base unit.
    """
    name = resource_name(dimension)
    return sum(
        node.allocatable.get(name, 0) for node in nodes if node.schedulable
    )
