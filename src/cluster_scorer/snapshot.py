"""Cluster snapshots consumed by the scorer.

A snapshot is a point-in-time, read-only view of the cluster's nodes and
workloads with every resource quantity already converted to base units.
Snapshots come from a SnapshotProvider; the Kubernetes-backed provider
lists nodes and pods through the API server and converts them here.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

import httpx
import pydantic
import structlog

from . import kubeapi
from .quantity import ResourceName, parse_resource_list

logger = structlog.get_logger(__name__)


class SnapshotUnavailable(Exception):
    """Raised when the node or workload collection cannot be listed."""


@dataclass(frozen=True)
class NodeSnapshot:
    """One cluster node at scoring time.

    ``allocatable`` holds capacity left for workloads after system
    reservations, in base units keyed by resource name.
    """

    name: str
    schedulable: bool = True
    allocatable: Mapping[ResourceName, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ContainerSpec:
    """Resource requests of a single container.

    A resource missing from ``requests`` is distinct from one explicitly
    requested as zero.
    """

    name: str = ""
    requests: Mapping[ResourceName, int] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkloadSnapshot:
    """One pod at scoring time."""

    name: str
    namespace: str = ""
    containers: tuple[ContainerSpec, ...] = ()
    init_containers: tuple[ContainerSpec, ...] = ()
    overhead: Mapping[ResourceName, int] | None = None


class SnapshotProvider(Protocol):
    """Source of cluster snapshots.

    Both listings may raise SnapshotUnavailable. They need not be consistent
    with each other; a small skew between nodes and workloads is tolerated.
    """

    def list_schedulable_nodes(self) -> list[NodeSnapshot]: ...

    def list_workloads(self) -> list[WorkloadSnapshot]: ...


def _transform_node(raw: kubeapi.types.RawNode) -> NodeSnapshot:
    return NodeSnapshot(
        name=raw.metadata.name,
        schedulable=not raw.spec.unschedulable,
        allocatable=parse_resource_list(raw.status.allocatable),
    )


def _transform_container(raw: kubeapi.types.RawContainer) -> ContainerSpec:
    return ContainerSpec(
        name=raw.name,
        requests=parse_resource_list(raw.resources.requests),
    )


def _transform_pod(raw: kubeapi.types.RawPod) -> WorkloadSnapshot:
    """Transform a raw pod into a WorkloadSnapshot.

    Overhead stays ``None`` when the pod declares none, so callers can tell
    an absent overhead from an empty one.
    """
    overhead = (
        parse_resource_list(raw.spec.overhead)
        if raw.spec.overhead is not None
        else None
    )
    return WorkloadSnapshot(
        name=raw.metadata.name,
        namespace=raw.metadata.namespace,
        containers=tuple(_transform_container(c) for c in raw.spec.containers),
        init_containers=tuple(
            _transform_container(c) for c in raw.spec.init_containers
        ),
        overhead=overhead,
    )


class KubeSnapshotProvider:
    """SnapshotProvider backed by the Kubernetes API server.

    Nodes marked unschedulable are left out of the node listing. Pods are
    listed in every namespace and phase.
    """

    def __init__(self, client: kubeapi.KubeApiClient):
        self._client = client

    def list_schedulable_nodes(self) -> list[NodeSnapshot]:
        """List schedulable nodes.

        Raises:
            SnapshotUnavailable: If the node list cannot be fetched or parsed.
        """
        try:
            raw_nodes = self._client.list_nodes()
        except (httpx.HTTPError, RuntimeError, pydantic.ValidationError) as exc:
            logger.exception("Failed to list nodes")
            msg = f"node list unavailable: {exc}"
            raise SnapshotUnavailable(msg) from exc

        nodes = [_transform_node(raw) for raw in raw_nodes]
        return [node for node in nodes if node.schedulable]

    def list_workloads(self) -> list[WorkloadSnapshot]:
        """List all pods as workload snapshots.

        Raises:
            SnapshotUnavailable: If the pod list cannot be fetched or parsed.
        """
        try:
            raw_pods = self._client.list_pods()
        except (httpx.HTTPError, RuntimeError, pydantic.ValidationError) as exc:
            logger.exception("Failed to list pods")
            msg = f"pod list unavailable: {exc}"
            raise SnapshotUnavailable(msg) from exc

        return [_transform_pod(raw) for raw in raw_pods]
