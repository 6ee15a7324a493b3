"""Entry point that makes sure BuildKit is deployed and current."""

from icecream import ic

from kube_buildkit import console
from kube_buildkit.api import KubeApi
from kube_buildkit.buildkit.auth import build_docker_auth_config
from kube_buildkit.buildkit.deployment import get_buildkit_deployment
from kube_buildkit.buildkit.reconcile import reconcile_deployment
from kube_buildkit.buildkit.secret import ensure_auth_secret
from kube_buildkit.models import ProviderConfig


def ensure_buildkit(api: KubeApi, namespace: str, provider: ProviderConfig) -> bool:
    """Deploy BuildKit to ``namespace`` if it is missing or out of date.

    The docker auth secret is reconciled first since the deployment mounts
    it. Whether the secret changed is not part of the returned value.

    Retrying after a failure is safe: a secret written before the
    deployment step failed is simply found matching on the next call.

    Args:
        api: Cluster accessor.
        namespace: Target namespace.
        provider: Provider configuration.

    Returns:
        True if the deployment was created or replaced, False if it was
        already up to date.

    Raises:
        ResolutionError: If an image pull secret cannot be resolved.
        ApiError: If a cluster read or write fails.

    """
    auth_config = build_docker_auth_config(provider.image_pull_secrets, api)
    secret_result = ensure_auth_secret(api, namespace, auth_config)
    ic(secret_result)

    manifest = get_buildkit_deployment(provider, namespace)
    deployment_result = reconcile_deployment(api, namespace, manifest)
    ic(deployment_result)

    if deployment_result.changed:
        console.success(f"BuildKit deployed in {console.highlight(namespace)} (was {deployment_result.state.value})")
    elif secret_result.changed:
        console.info("BuildKit is up to date, docker auth secret was updated")

    return deployment_result.changed
