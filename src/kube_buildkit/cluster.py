"""Kubernetes cluster connection utilities.

This module provides the Cluster class for selecting a kubeconfig context
and building the API accessor used by the BuildKit operations.
"""

from typing import Any

import click
import questionary
from icecream import ic
from kubernetes import config
from kubernetes.config.config_exception import ConfigException

from kube_buildkit import console
from kube_buildkit.api import KubeApi
from kube_buildkit.exceptions import ClusterConnectionError
from kube_buildkit.styles import POINTER, PROMPT_STYLE, QMARK

_IN_CLUSTER = "in-cluster"
_DEFAULT_NAMESPACE = "default"


class Cluster:
    """Manages the connection to the Kubernetes cluster.

    Attributes:
        context: The active Kubernetes context name, or "in-cluster".
        default_namespace: The namespace configured for the context.
        api: KubeApi accessor bound to the selected context.

    """

    def __init__(self, *, select_context: bool, context: str | None = None) -> None:
        """Initialize Cluster with context selection.

        Args:
            select_context: If True, prompt user to select a context.
                           Must be passed as a keyword argument.
            context: Explicit context name. Takes precedence over the
                    current context but not over select_context.

        """
        self.default_namespace: str = _DEFAULT_NAMESPACE
        self.context: str = self._load(select_context=select_context, context=context)
        self.api: KubeApi = KubeApi()

    def _load(self, *, select_context: bool, context: str | None) -> str:
        """Load the kubeconfig for the chosen context.

        Falls back to the in-cluster service account when no kubeconfig is
        available and no context was requested.

        Returns:
            The name of the context in use.

        Raises:
            ClusterConnectionError: If no usable configuration is found.

        """
        try:
            contexts, current_context = config.list_kube_config_contexts()
        except ConfigException as e:
            if select_context or context:
                raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e
            return self._load_in_cluster(e)

        selected = self._select(contexts, current_context, select_context=select_context, context=context)
        ic(selected)

        try:
            config.load_kube_config(context=selected["name"])
        except ConfigException as e:
            raise ClusterConnectionError(f"Failed to load context '{selected['name']}': {e}") from e

        self.default_namespace = selected.get("context", {}).get("namespace") or _DEFAULT_NAMESPACE
        console.action(f"Working with {console.highlight(selected['name'])} cluster")
        return str(selected["name"])

    @staticmethod
    def _load_in_cluster(kubeconfig_error: ConfigException) -> str:
        try:
            config.load_incluster_config()
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {kubeconfig_error}") from e
        console.action(f"Working with {console.highlight(_IN_CLUSTER)} configuration")
        return _IN_CLUSTER

    @staticmethod
    def _select(
        contexts: list[dict[str, Any]],
        current_context: dict[str, Any],
        *,
        select_context: bool,
        context: str | None,
    ) -> dict[str, Any]:
        """Pick the context to work with.

        Raises:
            ClusterConnectionError: If the requested context does not exist.
            click.Abort: If user cancels context selection.

        """
        by_name = {ctx["name"]: ctx for ctx in contexts}

        if select_context:
            name: str | None = questionary.select(
                "Select context to work with",
                choices=list(by_name),
                style=PROMPT_STYLE,
                pointer=POINTER,
                qmark=QMARK,
            ).ask()
            if name is None:
                console.warning("Context selection cancelled.")
                raise click.Abort()
            return by_name[name]

        if context is not None:
            if context not in by_name:
                raise ClusterConnectionError(f"Context '{context}' not found in kubeconfig")
            return by_name[context]

        return current_context

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Cluster(context={self.context!r}, default_namespace={self.default_namespace!r})"
