"""Data models for kube-buildkit.

This module provides type-safe data structures for the application,
replacing loosely-typed dictionaries with proper Python data classes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple


class ResourceState(str, Enum):
    """Observed state of a managed resource relative to its desired state.

    Inherits from str to allow direct use in string contexts
    (e.g., console output, status tables).
    """

    ABSENT = "absent"
    MATCHING = "matching"
    STALE = "stale"


class SecretRef(NamedTuple):
    """Reference to an existing Kubernetes secret holding registry credentials.

    Attributes:
        name: The secret name.
        namespace: The namespace the secret lives in.

    """

    name: str
    namespace: str = "default"


class ReconcileResult(NamedTuple):
    """Outcome of reconciling a single resource.

    Attributes:
        state: The state observed before any write was made.
        changed: Whether the resource was created or replaced.

    """

    state: ResourceState
    changed: bool


@dataclass(frozen=True, slots=True)
class ResourceLimits:
    """CPU (millicpu) and memory (MiB) amounts for a container."""

    cpu: int
    memory: int


@dataclass(frozen=True, slots=True)
class BuilderResources:
    """Resource requests and limits for the BuildKit container."""

    limits: ResourceLimits = ResourceLimits(cpu=4000, memory=8192)
    requests: ResourceLimits = ResourceLimits(cpu=100, memory=512)


@dataclass(frozen=True, slots=True)
class ClusterBuildkitConfig:
    """Settings specific to the in-cluster BuildKit service.

    Attributes:
        rootless: Run BuildKit as an unprivileged user.
        image: Image override. When unset, the default image for the
            selected mode is used.
        node_selector: Node selector for the BuildKit pod.
        tolerations: Tolerations for the BuildKit pod.

    """

    rootless: bool = False
    image: str | None = None
    node_selector: dict[str, str] = field(default_factory=dict)
    tolerations: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Namespace-scoped configuration consumed by ensure_buildkit.

    Attributes:
        image_pull_secrets: Registry credential secrets, in priority order.
        cluster_buildkit: BuildKit service settings.
        resources: Resources for the BuildKit container.
        namespace: Default target namespace, if configured.

    """

    image_pull_secrets: list[SecretRef] = field(default_factory=list)
    cluster_buildkit: ClusterBuildkitConfig = field(default_factory=ClusterBuildkitConfig)
    resources: BuilderResources = field(default_factory=BuilderResources)
    namespace: str | None = None


@dataclass(slots=True)
class DockerAuthConfig:
    """Docker client auth configuration (the contents of config.json).

    Attributes:
        auths: Credential entries keyed by registry host.
        cred_helpers: Credential helper names keyed by registry host.

    """

    auths: dict[str, dict[str, Any]] = field(default_factory=dict)
    cred_helpers: dict[str, str] = field(default_factory=dict)

    def merge(self, other: "DockerAuthConfig") -> None:
        """Merge another config into this one, letting ``other`` win on clashes."""
        self.auths.update(other.auths)
        self.cred_helpers.update(other.cred_helpers)

    def to_dict(self) -> dict[str, Any]:
        """Return the config.json document, omitting empty sections.

        An empty config serializes to ``{}``.
        """
        result: dict[str, Any] = {}
        if self.auths:
            result["auths"] = dict(self.auths)
        if self.cred_helpers:
            result["credHelpers"] = dict(self.cred_helpers)
        return result

    def is_empty(self) -> bool:
        """Whether no registries are configured."""
        return not self.auths and not self.cred_helpers


@dataclass(frozen=True, slots=True)
class BuildkitStatus:
    """Point-in-time view of the BuildKit service in a namespace.

    Attributes:
        namespace: The namespace that was inspected.
        state: Deployment state relative to the desired manifest.
        ready_replicas: Number of ready pods.
        desired_replicas: Number of pods the deployment asks for.
        auth_secret_exists: Whether the docker auth secret exists.

    """

    namespace: str
    state: ResourceState
    ready_replicas: int
    desired_replicas: int
    auth_secret_exists: bool

    @property
    def ready(self) -> bool:
        """Whether the deployment is current and fully available."""
        return (
            self.state == ResourceState.MATCHING
            and self.desired_replicas > 0
            and self.ready_replicas >= self.desired_replicas
        )
