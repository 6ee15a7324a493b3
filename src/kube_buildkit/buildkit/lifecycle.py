"""Status inspection, rollout waiting and teardown of the BuildKit service.

None of these are part of ensure_buildkit; they are used by the CLI and by
callers that need to verify or remove what ensure_buildkit created.
"""

import time
from typing import Any

from icecream import ic

from kube_buildkit import console
from kube_buildkit.api import KubeApi
from kube_buildkit.buildkit.deployment import get_buildkit_deployment
from kube_buildkit.buildkit.reconcile import get_deployment_state
from kube_buildkit.constants import BUILDKIT_AUTH_SECRET_NAME, BUILDKIT_DEPLOYMENT_NAME
from kube_buildkit.exceptions import DeploymentTimeoutError
from kube_buildkit.models import BuildkitStatus, ProviderConfig


def get_buildkit_status(api: KubeApi, namespace: str, provider: ProviderConfig) -> BuildkitStatus:
    """Inspect the BuildKit service without changing anything.

    Args:
        api: Cluster accessor.
        namespace: Namespace to inspect.
        provider: Provider configuration the deployment is compared against.

    Returns:
        BuildkitStatus describing the deployment and the auth secret.

    """
    desired = get_buildkit_deployment(provider, namespace)
    existing = api.read_deployment(BUILDKIT_DEPLOYMENT_NAME, namespace)
    secret = api.read_secret(BUILDKIT_AUTH_SECRET_NAME, namespace)

    spec: dict[str, Any] = (existing or {}).get("spec") or {}
    status: dict[str, Any] = (existing or {}).get("status") or {}

    result = BuildkitStatus(
        namespace=namespace,
        state=get_deployment_state(existing, desired),
        ready_replicas=status.get("readyReplicas") or 0,
        desired_replicas=spec.get("replicas") or 0,
        auth_secret_exists=secret is not None,
    )
    ic(result)
    return result


def _rollout_complete(deployment: dict[str, Any]) -> bool:
    metadata = deployment.get("metadata") or {}
    spec = deployment.get("spec") or {}
    status = deployment.get("status") or {}
    replicas = spec.get("replicas", 1)

    if (status.get("observedGeneration") or 0) < (metadata.get("generation") or 0):
        return False
    return (status.get("updatedReplicas") or 0) >= replicas and (status.get("availableReplicas") or 0) >= replicas


def wait_for_buildkit(api: KubeApi, namespace: str, *, timeout: float = 300, interval: float = 2) -> None:
    """Block until the BuildKit deployment has fully rolled out.

    Args:
        api: Cluster accessor.
        namespace: Namespace of the deployment.
        timeout: Seconds to wait before giving up.
        interval: Seconds between polls.

    Raises:
        DeploymentTimeoutError: If the rollout does not finish within ``timeout``.

    """
    deadline = time.monotonic() + timeout

    with console.spinner(f"Waiting for {BUILDKIT_DEPLOYMENT_NAME} to become ready..."):
        while True:
            deployment = api.read_deployment(BUILDKIT_DEPLOYMENT_NAME, namespace)
            if deployment is not None and _rollout_complete(deployment):
                break
            if time.monotonic() >= deadline:
                raise DeploymentTimeoutError(
                    f"Deployment {namespace}/{BUILDKIT_DEPLOYMENT_NAME} was not ready after {timeout:g}s"
                )
            time.sleep(interval)

    console.success(f"{console.highlight(BUILDKIT_DEPLOYMENT_NAME)} is ready")


def remove_buildkit(api: KubeApi, namespace: str) -> bool:
    """Delete the BuildKit deployment and its docker auth secret.

    Objects that do not exist are skipped.

    Returns:
        True if anything was deleted.

    """
    deleted_deployment = api.delete_deployment(BUILDKIT_DEPLOYMENT_NAME, namespace)
    deleted_secret = api.delete_secret(BUILDKIT_AUTH_SECRET_NAME, namespace)

    if deleted_deployment:
        console.step(f"Deleted deployment {console.highlight(BUILDKIT_DEPLOYMENT_NAME)}")
    if deleted_secret:
        console.step(f"Deleted secret {console.highlight(BUILDKIT_AUTH_SECRET_NAME)}")

    return deleted_deployment or deleted_secret
