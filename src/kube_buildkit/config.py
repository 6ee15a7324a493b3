"""Provider configuration loading.

This module reads the provider configuration from a YAML file:

    namespace: builds
    imagePullSecrets:
      - name: regcred
        namespace: default
    clusterBuildkit:
      rootless: true
      nodeSelector:
        kubernetes.io/arch: amd64
    resources:
      builder:
        limits: {cpu: 4000, memory: 8192}
        requests: {cpu: 100, memory: 512}
"""

from pathlib import Path
from typing import Any

import yaml

from kube_buildkit.exceptions import ConfigurationError
from kube_buildkit.models import (
    BuilderResources,
    ClusterBuildkitConfig,
    ProviderConfig,
    ResourceLimits,
    SecretRef,
)

_DEFAULT_RESOURCES = BuilderResources()


def _expect(value: Any, expected: type | tuple[type, ...], where: str) -> Any:
    # bool is a subclass of int, keep it out of numeric fields
    if isinstance(value, bool) and expected is int:
        raise ConfigurationError(f"'{where}' must be an integer")
    if not isinstance(value, expected):
        names = " or ".join(t.__name__ for t in expected) if isinstance(expected, tuple) else expected.__name__
        raise ConfigurationError(f"'{where}' must be of type {names}, got {type(value).__name__}")
    return value


def _parse_secret_refs(raw: Any) -> list[SecretRef]:
    refs: list[SecretRef] = []
    for index, item in enumerate(_expect(raw, list, "imagePullSecrets")):
        where = f"imagePullSecrets[{index}]"
        item = _expect(item, dict, where)
        if "name" not in item:
            raise ConfigurationError(f"'{where}' is missing the 'name' field")
        refs.append(
            SecretRef(
                name=_expect(item["name"], str, f"{where}.name"),
                namespace=_expect(item.get("namespace", "default"), str, f"{where}.namespace"),
            )
        )
    return refs


def _parse_cluster_buildkit(raw: Any) -> ClusterBuildkitConfig:
    raw = _expect(raw, dict, "clusterBuildkit")
    image = raw.get("image")
    if image is not None:
        _expect(image, str, "clusterBuildkit.image")

    return ClusterBuildkitConfig(
        rootless=_expect(raw.get("rootless", False), bool, "clusterBuildkit.rootless"),
        image=image,
        node_selector=dict(_expect(raw.get("nodeSelector", {}), dict, "clusterBuildkit.nodeSelector")),
        tolerations=list(_expect(raw.get("tolerations", []), list, "clusterBuildkit.tolerations")),
    )


def _parse_limits(raw: Any, default: ResourceLimits, where: str) -> ResourceLimits:
    raw = _expect(raw, dict, where)
    return ResourceLimits(
        cpu=_expect(raw.get("cpu", default.cpu), int, f"{where}.cpu"),
        memory=_expect(raw.get("memory", default.memory), int, f"{where}.memory"),
    )


def _parse_resources(raw: Any) -> BuilderResources:
    builder = _expect(_expect(raw, dict, "resources").get("builder", {}), dict, "resources.builder")
    return BuilderResources(
        limits=_parse_limits(builder.get("limits", {}), _DEFAULT_RESOURCES.limits, "resources.builder.limits"),
        requests=_parse_limits(
            builder.get("requests", {}), _DEFAULT_RESOURCES.requests, "resources.builder.requests"
        ),
    )


def parse_provider_config(raw: dict[str, Any] | None) -> ProviderConfig:
    """Build a ProviderConfig from a parsed YAML document.

    Args:
        raw: The YAML document as a dictionary, or None for an empty file.

    Returns:
        The provider configuration, with defaults for missing sections.

    Raises:
        ConfigurationError: If a field has an invalid type.

    """
    if raw is None:
        return ProviderConfig()
    raw = _expect(raw, dict, "<root>")

    namespace = raw.get("namespace")
    if namespace is not None:
        _expect(namespace, str, "namespace")

    return ProviderConfig(
        image_pull_secrets=_parse_secret_refs(raw.get("imagePullSecrets") or []),
        cluster_buildkit=_parse_cluster_buildkit(raw.get("clusterBuildkit") or {}),
        resources=_parse_resources(raw.get("resources") or {}),
        namespace=namespace,
    )


def load_provider_config(config_path: str | Path) -> ProviderConfig:
    """Load the provider configuration from a YAML file.

    Args:
        config_path: Path to the configuration file.

    Returns:
        The parsed provider configuration.

    Raises:
        ConfigurationError: If the file does not exist or cannot be read,
            contains malformed YAML, or holds invalid values.

    """
    try:
        with open(config_path) as stream:
            raw = yaml.safe_load(stream)
    except FileNotFoundError as err:
        raise ConfigurationError(f"Config file '{config_path}' does not exist") from err
    except OSError as err:
        raise ConfigurationError(f"Could not read config file '{config_path}': {err}") from err
    except yaml.YAMLError as err:
        raise ConfigurationError(f"Config file '{config_path}' contains malformed YAML: {err}") from err

    if raw is not None and not isinstance(raw, dict):
        raise ConfigurationError(f"Config file '{config_path}' does not contain a YAML mapping")

    return parse_provider_config(raw)
