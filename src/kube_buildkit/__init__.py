"""kube-buildkit: keep a BuildKit service deployed in a Kubernetes namespace.

This package makes sure a BuildKit Deployment and the docker auth Secret
it uses exist in a namespace, in a configuration that matches the
provider settings, touching the cluster only when something is out of date.

Example usage:
    from kube_buildkit import KubeApi, ProviderConfig, ensure_buildkit

    api = KubeApi()
    changed = ensure_buildkit(api, "builds", ProviderConfig())
"""

__version__ = "0.1.0"

from kube_buildkit.api import KubeApi
from kube_buildkit.buildkit import build_docker_auth_config, ensure_buildkit, remove_buildkit
from kube_buildkit.cli import cli
from kube_buildkit.constants import BUILDKIT_AUTH_SECRET_NAME, BUILDKIT_DEPLOYMENT_NAME, DOCKER_AUTH_SECRET_KEY
from kube_buildkit.exceptions import (
    ApiError,
    BuildkitError,
    ClusterConnectionError,
    ConfigurationError,
    ConflictError,
    DeploymentTimeoutError,
    ResolutionError,
)
from kube_buildkit.models import ClusterBuildkitConfig, DockerAuthConfig, ProviderConfig, SecretRef

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Operations
    "KubeApi",
    "build_docker_auth_config",
    "ensure_buildkit",
    "remove_buildkit",
    # Names
    "BUILDKIT_AUTH_SECRET_NAME",
    "BUILDKIT_DEPLOYMENT_NAME",
    "DOCKER_AUTH_SECRET_KEY",
    # Models
    "ClusterBuildkitConfig",
    "DockerAuthConfig",
    "ProviderConfig",
    "SecretRef",
    # Exceptions
    "BuildkitError",
    "ApiError",
    "ClusterConnectionError",
    "ConfigurationError",
    "ConflictError",
    "DeploymentTimeoutError",
    "ResolutionError",
]
