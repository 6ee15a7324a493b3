"""Docker registry auth config assembly.

Builds the docker config.json document that BuildKit uses to push and pull,
from the image pull secrets configured for the provider.
"""

import base64
import binascii
import json
from collections.abc import Sequence
from typing import Any

from icecream import ic

from kube_buildkit import console
from kube_buildkit.api import KubeApi
from kube_buildkit.constants import (
    BUILDKIT_AUTH_SECRET_NAME,
    DOCKER_AUTH_SECRET_KEY,
    DOCKER_AUTH_SECRET_TYPE,
    LEGACY_DOCKER_AUTH_SECRET_KEY,
    LEGACY_DOCKER_AUTH_SECRET_TYPE,
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
)
from kube_buildkit.exceptions import ResolutionError
from kube_buildkit.models import DockerAuthConfig, SecretRef


def _decode_secret_value(ref: SecretRef, key: str, value: str) -> Any:
    try:
        return json.loads(base64.b64decode(value, validate=True).decode())
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as err:
        raise ResolutionError(
            f"Could not parse key '{key}' of image pull secret '{ref.namespace}/{ref.name}' "
            f"as a docker auth document: {err}"
        ) from err


def _check_auths(ref: SecretRef, auths: Any) -> dict[str, dict[str, Any]]:
    if not isinstance(auths, dict):
        raise ResolutionError(f"Image pull secret '{ref.namespace}/{ref.name}' has an invalid 'auths' section")
    for registry, credentials in auths.items():
        if not isinstance(credentials, dict):
            raise ResolutionError(
                f"Image pull secret '{ref.namespace}/{ref.name}' has invalid credentials for registry '{registry}'"
            )
    return dict(auths)


def _check_cred_helpers(ref: SecretRef, cred_helpers: Any) -> dict[str, str]:
    if not isinstance(cred_helpers, dict) or not all(isinstance(helper, str) for helper in cred_helpers.values()):
        raise ResolutionError(f"Image pull secret '{ref.namespace}/{ref.name}' has an invalid 'credHelpers' section")
    return dict(cred_helpers)


def _parse_secret(ref: SecretRef, secret: dict[str, Any]) -> DockerAuthConfig:
    """Extract a DockerAuthConfig from a docker registry secret.

    Args:
        ref: The reference the secret was read through (for error messages).
        secret: The secret as returned by the API accessor.

    Returns:
        The auth config stored in the secret.

    Raises:
        ResolutionError: If the secret type or data is not a docker auth document.

    """
    secret_type = secret.get("type")
    data: dict[str, str] = secret.get("data") or {}

    if secret_type == DOCKER_AUTH_SECRET_TYPE:
        key = DOCKER_AUTH_SECRET_KEY
    elif secret_type == LEGACY_DOCKER_AUTH_SECRET_TYPE:
        key = LEGACY_DOCKER_AUTH_SECRET_KEY
    else:
        raise ResolutionError(
            f"Image pull secret '{ref.namespace}/{ref.name}' has type '{secret_type}', "
            f"expected '{DOCKER_AUTH_SECRET_TYPE}'"
        )

    if key not in data:
        raise ResolutionError(f"Image pull secret '{ref.namespace}/{ref.name}' has no '{key}' key")

    decoded = _decode_secret_value(ref, key, data[key])
    if not isinstance(decoded, dict):
        raise ResolutionError(f"Image pull secret '{ref.namespace}/{ref.name}' does not contain a JSON object")

    if key == LEGACY_DOCKER_AUTH_SECRET_KEY:
        # .dockercfg is a bare host -> credentials map
        return DockerAuthConfig(auths=_check_auths(ref, decoded))

    return DockerAuthConfig(
        auths=_check_auths(ref, decoded.get("auths", {})),
        cred_helpers=_check_cred_helpers(ref, decoded.get("credHelpers", {})),
    )


def build_docker_auth_config(image_pull_secrets: Sequence[SecretRef], api: KubeApi) -> DockerAuthConfig:
    """Merge the configured image pull secrets into one docker auth config.

    Secrets are read in order and merged by registry host, so a later secret
    overrides an earlier one for the same registry.

    Args:
        image_pull_secrets: References to docker registry secrets.
        api: Cluster accessor used to read the secrets.

    Returns:
        The merged config. Empty if no secrets are configured.

    Raises:
        ResolutionError: If a secret is missing or malformed.

    """
    config = DockerAuthConfig()

    for ref in image_pull_secrets:
        secret = api.read_secret(ref.name, ref.namespace)
        if secret is None:
            raise ResolutionError(f"Could not find image pull secret '{ref.namespace}/{ref.name}'")
        config.merge(_parse_secret(ref, secret))

    ic(sorted(config.auths))
    if config.is_empty():
        console.step("No image pull secrets configured, using an empty docker auth config")

    return config


def encode_docker_auth_config(config: DockerAuthConfig) -> str:
    """Serialize a DockerAuthConfig to base64 encoded JSON.

    Keys are sorted so the same config always encodes to the same value.
    """
    payload = json.dumps(config.to_dict(), sort_keys=True, separators=(",", ":"))
    return base64.b64encode(payload.encode()).decode()


def decode_docker_auth_secret(secret: dict[str, Any]) -> dict[str, Any]:
    """Return the decoded config.json document stored in an auth secret."""
    value = (secret.get("data") or {})[DOCKER_AUTH_SECRET_KEY]
    return json.loads(base64.b64decode(value).decode())


def get_auth_secret_manifest(config: DockerAuthConfig, namespace: str) -> dict[str, Any]:
    """Build the desired docker auth secret for a namespace."""
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": {
            "name": BUILDKIT_AUTH_SECRET_NAME,
            "namespace": namespace,
            "labels": {MANAGED_BY_LABEL: MANAGED_BY_VALUE},
        },
        "type": DOCKER_AUTH_SECRET_TYPE,
        "data": {DOCKER_AUTH_SECRET_KEY: encode_docker_auth_config(config)},
    }
