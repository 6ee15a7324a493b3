"""Desired-state manifest for the BuildKit deployment.

The manifest depends only on the provider configuration and the namespace,
and carries a hash of its own spec so later runs can tell whether the
deployment in the cluster was produced from the same configuration.
"""

import copy
import hashlib
import json
from typing import Any

from kube_buildkit.constants import (
    BUILDKIT_AUTH_SECRET_NAME,
    BUILDKIT_CONTAINER_NAME,
    BUILDKIT_DEPLOYMENT_NAME,
    BUILDKIT_IMAGE,
    BUILDKIT_ROOTLESS_IMAGE,
    DOCKER_AUTH_SECRET_KEY,
    DOCKER_CONFIG_MOUNT_PATH,
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
    MANIFEST_HASH_ANNOTATION,
    ROOTLESS_USER_ID,
)
from kube_buildkit.models import BuilderResources, ProviderConfig

_DAEMON_SOCKET = "unix:///run/buildkit/buildkitd.sock"
_ROOTLESS_DAEMON_SOCKET = f"unix:///run/user/{ROOTLESS_USER_ID}/buildkit/buildkitd.sock"

# Rootless BuildKit needs to create its own user namespaces
_ROOTLESS_POD_ANNOTATIONS = {
    f"container.apparmor.security.beta.kubernetes.io/{BUILDKIT_CONTAINER_NAME}": "unconfined",
    f"container.seccomp.security.alpha.kubernetes.io/{BUILDKIT_CONTAINER_NAME}": "unconfined",
}

_WORKERS_PROBE = {"exec": {"command": ["buildctl", "debug", "workers"]}}

_BASE_DEPLOYMENT: dict[str, Any] = {
    "apiVersion": "apps/v1",
    "kind": "Deployment",
    "metadata": {
        "name": BUILDKIT_DEPLOYMENT_NAME,
        "labels": {"app": BUILDKIT_DEPLOYMENT_NAME, MANAGED_BY_LABEL: MANAGED_BY_VALUE},
        "annotations": {},
    },
    "spec": {
        "replicas": 1,
        "selector": {"matchLabels": {"app": BUILDKIT_DEPLOYMENT_NAME}},
        "template": {
            "metadata": {"labels": {"app": BUILDKIT_DEPLOYMENT_NAME}},
            "spec": {
                "containers": [
                    {
                        "name": BUILDKIT_CONTAINER_NAME,
                        "image": BUILDKIT_IMAGE,
                        "args": ["--addr", _DAEMON_SOCKET],
                        "readinessProbe": {**_WORKERS_PROBE, "initialDelaySeconds": 3, "periodSeconds": 5},
                        "livenessProbe": {**_WORKERS_PROBE, "initialDelaySeconds": 5, "periodSeconds": 30},
                        "securityContext": {"privileged": True},
                        "env": [{"name": "DOCKER_CONFIG", "value": DOCKER_CONFIG_MOUNT_PATH}],
                        "volumeMounts": [
                            {
                                "name": BUILDKIT_AUTH_SECRET_NAME,
                                "mountPath": DOCKER_CONFIG_MOUNT_PATH,
                                "readOnly": True,
                            }
                        ],
                    }
                ],
                "volumes": [
                    {
                        "name": BUILDKIT_AUTH_SECRET_NAME,
                        "secret": {
                            "secretName": BUILDKIT_AUTH_SECRET_NAME,
                            "items": [{"key": DOCKER_AUTH_SECRET_KEY, "path": "config.json"}],
                        },
                    }
                ],
            },
        },
    },
}


def stringify_resources(resources: BuilderResources) -> dict[str, dict[str, str]]:
    """Convert millicpu/MiB amounts to Kubernetes quantity strings."""
    return {
        "limits": {"cpu": f"{resources.limits.cpu}m", "memory": f"{resources.limits.memory}Mi"},
        "requests": {"cpu": f"{resources.requests.cpu}m", "memory": f"{resources.requests.memory}Mi"},
    }


def compute_manifest_hash(manifest: dict[str, Any]) -> str:
    """Return a stable hash of the deployment spec."""
    payload = json.dumps(manifest["spec"], sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode()).hexdigest()


def get_buildkit_deployment(provider: ProviderConfig, namespace: str) -> dict[str, Any]:
    """Build the desired BuildKit deployment for ``namespace``.

    Only pull secrets that live in ``namespace`` are listed in the pod's
    ``imagePullSecrets``; the others still feed the docker auth secret.

    Args:
        provider: Provider configuration.
        namespace: The namespace the deployment goes into.

    Returns:
        A complete Deployment manifest, annotated with the hash of its spec.

    """
    buildkit = provider.cluster_buildkit
    deployment = copy.deepcopy(_BASE_DEPLOYMENT)
    deployment["metadata"]["namespace"] = namespace

    template = deployment["spec"]["template"]
    pod_spec = template["spec"]
    container = pod_spec["containers"][0]

    if buildkit.rootless:
        template["metadata"]["annotations"] = dict(_ROOTLESS_POD_ANNOTATIONS)
        container["image"] = BUILDKIT_ROOTLESS_IMAGE
        container["args"] = ["--addr", _ROOTLESS_DAEMON_SOCKET, "--oci-worker-no-process-sandbox"]
        container["securityContext"] = {
            "runAsUser": ROOTLESS_USER_ID,
            "runAsGroup": ROOTLESS_USER_ID,
            "runAsNonRoot": True,
        }

    if buildkit.image:
        container["image"] = buildkit.image

    container["resources"] = stringify_resources(provider.resources)

    # the kubelet only resolves pull secrets from the pod's own namespace
    pull_secrets = [{"name": ref.name} for ref in provider.image_pull_secrets if ref.namespace == namespace]
    if pull_secrets:
        pod_spec["imagePullSecrets"] = pull_secrets
    if buildkit.node_selector:
        pod_spec["nodeSelector"] = dict(buildkit.node_selector)
    if buildkit.tolerations:
        pod_spec["tolerations"] = copy.deepcopy(buildkit.tolerations)

    deployment["metadata"]["annotations"][MANIFEST_HASH_ANNOTATION] = compute_manifest_hash(deployment)
    return deployment
