#!/usr/bin/env python
"""Command-line interface for kube-buildkit.

This module provides the main CLI entry point, handling argument parsing,
configuration loading and dispatching to the BuildKit operations.
"""

import dataclasses
import sys

import click
from icecream import ic

from kube_buildkit import __version__, console
from kube_buildkit.buildkit import ensure_buildkit, get_buildkit_status, remove_buildkit, wait_for_buildkit
from kube_buildkit.cluster import Cluster
from kube_buildkit.config import load_provider_config
from kube_buildkit.constants import BUILDKIT_AUTH_SECRET_NAME, BUILDKIT_DEPLOYMENT_NAME
from kube_buildkit.exceptions import BuildkitError
from kube_buildkit.models import ProviderConfig


def resolve_provider_config(config_file: str | None, *, rootless: bool) -> ProviderConfig:
    """Load the provider config and apply command-line overrides.

    Args:
        config_file: Optional path to the YAML configuration file.
        rootless: Force rootless mode regardless of the file.

    Returns:
        The effective provider configuration.

    """
    provider = load_provider_config(config_file) if config_file else ProviderConfig()
    if rootless:
        provider = dataclasses.replace(
            provider, cluster_buildkit=dataclasses.replace(provider.cluster_buildkit, rootless=True)
        )
    ic(provider)
    return provider


def show_status(cluster: Cluster, namespace: str, provider: ProviderConfig) -> None:
    """Print the state of the BuildKit service in ``namespace``."""
    status = get_buildkit_status(cluster.api, namespace, provider)
    console.summary_panel(
        "BuildKit status",
        {
            "Namespace": namespace,
            "Deployment": f"{BUILDKIT_DEPLOYMENT_NAME} ({status.state.value})",
            "Replicas": f"{status.ready_replicas}/{status.desired_replicas} ready",
            "Auth secret": BUILDKIT_AUTH_SECRET_NAME if status.auth_secret_exists else "missing",
        },
        ok=status.ready,
    )


@click.command(help="Make sure a BuildKit service is deployed in a Kubernetes namespace")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option("--config", "-c", "config_file", required=False, type=click.Path(), help="provider config file")
@click.option("--namespace", "-n", required=False, help="target namespace")
@click.option("--context", required=False, help="kubeconfig context to use")
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option("--rootless", required=False, is_flag=True, help="run BuildKit without root privileges")
@click.option("--wait", required=False, is_flag=True, help="wait for the deployment to become ready")
@click.option("--timeout", required=False, type=float, default=300, show_default=True, help="seconds for --wait")
@click.option("--status", required=False, is_flag=True, help="show BuildKit status and exit")
@click.option("--remove", required=False, is_flag=True, help="remove BuildKit from the namespace")
def cli(
    version: bool,
    debug: bool,
    config_file: str | None,
    namespace: str | None,
    context: str | None,
    select: bool,
    rootless: bool,
    wait: bool,
    timeout: float,
    status: bool,
    remove: bool,
) -> None:
    """Process CLI arguments and execute the appropriate action.

    Args:
        version: Print version and exit.
        debug: Enable debug output.
        config_file: Path to the provider config file.
        namespace: Target namespace, overriding the config file.
        context: Kubeconfig context to use.
        select: Prompt for Kubernetes context selection.
        rootless: Force rootless mode.
        wait: Wait for the rollout after ensuring.
        timeout: Seconds to wait with --wait.
        status: Show status instead of ensuring.
        remove: Remove BuildKit instead of ensuring.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        return

    if status and remove:
        raise click.UsageError("--status and --remove are mutually exclusive")

    try:
        provider = resolve_provider_config(config_file, rootless=rootless)
        cluster = Cluster(select_context=select, context=context)
        target = namespace or provider.namespace or cluster.default_namespace
        ic(target)

        if status:
            show_status(cluster, target, provider)
            return

        if remove:
            if remove_buildkit(cluster.api, target):
                console.success(f"BuildKit removed from {console.highlight(target)}")
            else:
                console.info(f"BuildKit is not deployed in {console.highlight(target)}")
            return

        changed = ensure_buildkit(cluster.api, target, provider)
        if not changed:
            console.success(f"BuildKit is already up to date in {console.highlight(target)}")
        if wait:
            wait_for_buildkit(cluster.api, target, timeout=timeout)
    except BuildkitError as e:
        console.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    cli()
