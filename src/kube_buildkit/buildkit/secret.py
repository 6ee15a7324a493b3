"""Docker auth secret reconciliation."""

from typing import Any

from kube_buildkit import console
from kube_buildkit.api import KubeApi
from kube_buildkit.buildkit.auth import get_auth_secret_manifest
from kube_buildkit.buildkit.reconcile import create_or_replace, with_resource_version
from kube_buildkit.constants import BUILDKIT_AUTH_SECRET_NAME, DOCKER_AUTH_SECRET_KEY
from kube_buildkit.models import DockerAuthConfig, ReconcileResult, ResourceState


def _create(api: KubeApi, namespace: str, desired: dict[str, Any]) -> None:
    create_or_replace(
        namespace,
        desired,
        create=api.create_secret,
        read=api.read_secret,
        replace=api.replace_secret,
        replaceable=lambda winner: winner.get("type") == desired["type"],
    )


def ensure_auth_secret(api: KubeApi, namespace: str, auth_config: DockerAuthConfig) -> ReconcileResult:
    """Make sure the docker auth secret in ``namespace`` holds ``auth_config``.

    An existing secret with different content is replaced as a whole, so
    stale registries do not linger.

    Args:
        api: Cluster accessor.
        namespace: Target namespace.
        auth_config: The desired docker auth config.

    Returns:
        The observed state and whether the secret was written.

    Raises:
        ApiError: If reading or writing the secret fails.
        ConflictError: If another writer changed the secret concurrently.

    """
    desired = get_auth_secret_manifest(auth_config, namespace)
    existing = api.read_secret(BUILDKIT_AUTH_SECRET_NAME, namespace)

    if existing is None:
        console.step(f"Creating secret {console.highlight(BUILDKIT_AUTH_SECRET_NAME)}")
        _create(api, namespace, desired)
        return ReconcileResult(state=ResourceState.ABSENT, changed=True)

    if existing.get("type") != desired["type"]:
        # Secret type is immutable, so it cannot be fixed with a replace
        console.warning(f"Secret {console.highlight(BUILDKIT_AUTH_SECRET_NAME)} has the wrong type, recreating it")
        api.delete_secret(BUILDKIT_AUTH_SECRET_NAME, namespace)
        _create(api, namespace, desired)
        return ReconcileResult(state=ResourceState.STALE, changed=True)

    current_value = (existing.get("data") or {}).get(DOCKER_AUTH_SECRET_KEY)
    if current_value == desired["data"][DOCKER_AUTH_SECRET_KEY]:
        return ReconcileResult(state=ResourceState.MATCHING, changed=False)

    console.step(f"Updating secret {console.highlight(BUILDKIT_AUTH_SECRET_NAME)}")
    api.replace_secret(BUILDKIT_AUTH_SECRET_NAME, namespace, with_resource_version(desired, existing))
    return ReconcileResult(state=ResourceState.STALE, changed=True)
