"""Workload request aggregation.

A workload's effective request for a resource is the larger of its regular
containers' combined request and its largest single init container request.
Init containers run one at a time and before the regular containers, so
their requests are never added to each other or to the container sum.
Pod overhead, when enabled, is added on top once per workload.
"""

from collections.abc import Iterable, Mapping

import structlog

from ..quantity import MIB, ResourceDimension, ResourceName, resource_name
from ..snapshot import WorkloadSnapshot
from .config import ScoringConfig

logger = structlog.get_logger(__name__)

# Substituted for absent requests when non-zero defaults are enabled.
DEFAULT_MILLI_CPU_REQUEST = 100
DEFAULT_MEMORY_REQUEST = 200 * MIB


def effective_request(
    requests: Mapping[ResourceName, int],
    dimension: ResourceDimension | str,
    config: ScoringConfig,
) -> int:
    """Return a single container's request for one dimension.

    Only an absent key is defaulted; an explicit zero stays zero.

    Args:
        requests: Container requests in base units.
        dimension: Resource to read.
        config: Accounting policy.

    Returns:
        Request in the dimension's base unit.
    """
    name = resource_name(dimension)

    if name == ResourceDimension.CPU.value:
        if name not in requests and config.use_non_zero_defaults:
            return DEFAULT_MILLI_CPU_REQUEST
    elif name == ResourceDimension.MEMORY.value:
        if name not in requests and config.use_non_zero_defaults:
            return DEFAULT_MEMORY_REQUEST
    elif name == ResourceDimension.EPHEMERAL_STORAGE.value:
        if not config.enable_ephemeral_storage_isolation:
            return 0

    return requests.get(name, 0)


def workload_request(
    workload: WorkloadSnapshot,
    dimension: ResourceDimension | str,
    config: ScoringConfig,
) -> int:
    """Return one workload's effective request for one dimension."""
    container_sum = sum(
        effective_request(c.requests, dimension, config) for c in workload.containers
    )
    max_init = max(
        (
            effective_request(c.requests, dimension, config)
            for c in workload.init_containers
        ),
        default=0,
    )
    request = max(container_sum, max_init, 0)

    if config.enable_overhead and workload.overhead is not None:
        request += workload.overhead.get(resource_name(dimension), 0)

    return request


def sum_requests(
    workloads: Iterable[WorkloadSnapshot],
    dimension: ResourceDimension | str,
    config: ScoringConfig,
) -> int:
    """Sum effective requests of all workloads for one dimension.

    Args:
        workloads: Workload snapshots.
        dimension: Resource to sum.
        config: Accounting policy.

    Returns:
        Total requested in the dimension's base unit.
    """
    total = 0
    workload_count = 0
    for workload in workloads:
        total += workload_request(workload, dimension, config)
        workload_count += 1

    logger.debug(
        "Aggregated workload requests",
        resource=resource_name(dimension),
        workload_count=workload_count,
        requested=total,
    )
    return total
