"""BuildKit service management subpackage.

This package contains modules for docker auth config assembly, the
desired deployment manifest, reconciliation and the ensure entry point.
"""

from kube_buildkit.buildkit.auth import build_docker_auth_config, decode_docker_auth_secret
from kube_buildkit.buildkit.deployment import get_buildkit_deployment
from kube_buildkit.buildkit.ensure import ensure_buildkit
from kube_buildkit.buildkit.lifecycle import get_buildkit_status, remove_buildkit, wait_for_buildkit
from kube_buildkit.buildkit.reconcile import get_deployment_state, reconcile_deployment
from kube_buildkit.buildkit.secret import ensure_auth_secret

__all__ = [
    # auth
    "build_docker_auth_config",
    "decode_docker_auth_secret",
    # deployment
    "get_buildkit_deployment",
    # reconcile
    "get_deployment_state",
    "reconcile_deployment",
    # secret
    "ensure_auth_secret",
    # ensure
    "ensure_buildkit",
    # lifecycle
    "get_buildkit_status",
    "wait_for_buildkit",
    "remove_buildkit",
]
