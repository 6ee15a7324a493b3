"""Deployment reconciliation.

Compares the desired BuildKit deployment with what is in the cluster and
creates or replaces it. The comparison only looks at what the spec builder
controls; drift in other fields is left alone.
"""

import copy
from collections.abc import Callable
from typing import Any

from icecream import ic

from kube_buildkit import console
from kube_buildkit.api import KubeApi
from kube_buildkit.constants import MANIFEST_HASH_ANNOTATION
from kube_buildkit.exceptions import ConflictError
from kube_buildkit.models import ReconcileResult, ResourceState

Manifest = dict[str, Any]


def with_resource_version(desired: Manifest, existing: Manifest) -> Manifest:
    """Return a copy of ``desired`` carrying the resourceVersion of ``existing``.

    Sending the observed resourceVersion makes the replace fail with a
    conflict if someone else wrote the object in the meantime.
    """
    body = copy.deepcopy(desired)
    resource_version = (existing.get("metadata") or {}).get("resourceVersion")
    if resource_version:
        body["metadata"]["resourceVersion"] = resource_version
    return body


def create_or_replace(
    namespace: str,
    desired: Manifest,
    *,
    create: Callable[[str, Manifest], Manifest],
    read: Callable[[str, str], Manifest | None],
    replace: Callable[[str, str, Manifest], Manifest],
    replaceable: Callable[[Manifest], bool] | None = None,
) -> None:
    """Create an object, falling back to a replace if it already exists.

    Used when the object was absent at read time. If another writer created
    it in between, the create conflict is converted into a replace of the
    object that won. ``replaceable`` can reject a winner that a replace
    cannot turn into ``desired``.

    Raises:
        ConflictError: If the object vanished again, the winner was rejected
            by ``replaceable``, or the replace itself raced against another
            writer.

    """
    name = desired["metadata"]["name"]
    try:
        create(namespace, desired)
        return
    except ConflictError:
        console.warning(f"{console.highlight(name)} was created concurrently, replacing it")

    existing = read(name, namespace)
    if existing is None:
        raise ConflictError(f"{namespace}/{name} was created and deleted concurrently", status=409)
    if replaceable is not None and not replaceable(existing):
        raise ConflictError(f"{namespace}/{name} was created concurrently with an incompatible spec", status=409)
    replace(name, namespace, with_resource_version(desired, existing))


def _annotations(manifest: Manifest) -> dict[str, str]:
    return (manifest.get("metadata") or {}).get("annotations") or {}


def _security_context(manifest: Manifest) -> dict[str, Any]:
    pod_spec = ((manifest.get("spec") or {}).get("template") or {}).get("spec") or {}
    containers = pod_spec.get("containers") or []
    if not containers:
        return {}
    return containers[0].get("securityContext") or {}


def get_deployment_state(existing: Manifest | None, desired: Manifest) -> ResourceState:
    """Classify an existing deployment against the desired manifest.

    Args:
        existing: The deployment read from the cluster, or None.
        desired: The manifest from get_buildkit_deployment.

    Returns:
        ABSENT if there is no deployment, MATCHING if the manifest hash and
        the container security context agree, STALE otherwise.

    """
    if existing is None:
        return ResourceState.ABSENT

    existing_hash = _annotations(existing).get(MANIFEST_HASH_ANNOTATION)
    desired_hash = _annotations(desired).get(MANIFEST_HASH_ANNOTATION)
    ic(existing_hash, desired_hash)

    if existing_hash != desired_hash:
        return ResourceState.STALE
    if _security_context(existing) != _security_context(desired):
        return ResourceState.STALE
    return ResourceState.MATCHING


def reconcile_deployment(api: KubeApi, namespace: str, manifest: Manifest) -> ReconcileResult:
    """Converge the BuildKit deployment to ``manifest``.

    Args:
        api: Cluster accessor.
        namespace: Target namespace.
        manifest: The desired deployment.

    Returns:
        The observed state and whether the deployment was written.

    Raises:
        ApiError: If reading or writing the deployment fails.

    """
    name = manifest["metadata"]["name"]
    existing = api.read_deployment(name, namespace)
    state = get_deployment_state(existing, manifest)

    match state:
        case ResourceState.MATCHING:
            console.step(f"Deployment {console.highlight(name)} is up to date")
            return ReconcileResult(state=state, changed=False)
        case ResourceState.ABSENT:
            console.action(f"Deploying {console.highlight(name)} in {console.highlight(namespace)}")
            create_or_replace(
                namespace,
                manifest,
                create=api.create_deployment,
                read=api.read_deployment,
                replace=api.replace_deployment,
            )
        case ResourceState.STALE:
            console.action(f"Redeploying {console.highlight(name)} in {console.highlight(namespace)} (was stale)")
            api.replace_deployment(name, namespace, with_resource_version(manifest, existing))

    return ReconcileResult(state=state, changed=True)
