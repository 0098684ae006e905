"""Raw API response types for the Kubernetes API server.

Pydantic models covering the subset of the core/v1 Node and Pod objects the
scorer reads. Unknown fields are ignored and resource quantities are kept as
the strings the API returns; conversion to base units happens in the
snapshot layer.
"""

from pydantic import BaseModel, ConfigDict, Field


class _KubeModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RawObjectMeta(_KubeModel):
    """Object metadata (name and namespace only)."""

    name: str = ""
    namespace: str = ""


class RawListMeta(_KubeModel):
    """List metadata used for chunked list pagination."""

    continue_token: str | None = Field(None, alias="continue")


class RawNodeSpec(_KubeModel):
    unschedulable: bool = False


class RawNodeStatus(_KubeModel):
    # Quantity strings keyed by resource name, e.g. {"cpu": "3920m"}
    allocatable: dict[str, str] = Field(default_factory=dict)


class RawNode(_KubeModel):
    """Raw core/v1 Node."""

    metadata: RawObjectMeta = Field(default_factory=RawObjectMeta)
    spec: RawNodeSpec = Field(default_factory=RawNodeSpec)
    status: RawNodeStatus = Field(default_factory=RawNodeStatus)


class RawResourceRequirements(_KubeModel):
    requests: dict[str, str] | None = None


class RawContainer(_KubeModel):
    """Raw container entry from a pod spec."""

    name: str = ""
    resources: RawResourceRequirements = Field(
        default_factory=RawResourceRequirements,
    )


class RawPodSpec(_KubeModel):
    containers: list[RawContainer] = Field(default_factory=list)
    init_containers: list[RawContainer] = Field(
        default_factory=list,
        alias="initContainers",
    )
    overhead: dict[str, str] | None = None


class RawPod(_KubeModel):
    """Raw core/v1 Pod."""

    metadata: RawObjectMeta = Field(default_factory=RawObjectMeta)
    spec: RawPodSpec = Field(default_factory=RawPodSpec)
