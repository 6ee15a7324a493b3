"""Custom exceptions for kube-buildkit.

This module defines the exception hierarchy used throughout the application
to provide meaningful error messages and proper error handling.
"""


class BuildkitError(Exception):
    """Base exception for all kube-buildkit errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all kube-buildkit errors with a single
    except clause if desired.
    """

    pass


class ConfigurationError(BuildkitError):
    """Raised when the provider configuration cannot be loaded.

    This can occur when:
    - The config file does not exist
    - The file is not valid YAML
    - A field has the wrong type or an unsupported value
    """

    pass


class ClusterConnectionError(BuildkitError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    - Authentication fails
    """

    pass


class ResolutionError(BuildkitError):
    """Raised when a configured image pull secret cannot be resolved.

    This can occur when:
    - The referenced secret does not exist
    - The secret is not a docker registry secret
    - The secret data is not a valid docker auth document
    """

    pass


class ApiError(BuildkitError):
    """Raised when a read or write against the cluster API fails.

    Attributes:
        status: The HTTP status code returned by the API server, if any.
        reason: The reason phrase returned by the API server, if any.

    """

    def __init__(self, message: str, *, status: int | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason


class ConflictError(ApiError):
    """Raised when a write raced against another writer.

    The API server answers 409 when an object already exists on create,
    or when the resourceVersion of a replace is out of date.
    """

    pass


class DeploymentTimeoutError(BuildkitError):
    """Raised when the BuildKit deployment does not become ready in time."""

    pass
