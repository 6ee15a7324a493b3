"""Thin accessor over the Kubernetes API for the objects kube-buildkit manages.

The accessor returns plain dictionaries (the JSON form of the objects) so
callers can compare manifests without dealing with client model classes.
Reads of missing objects return None; every other failure is translated
into the kube-buildkit exception hierarchy.
"""

from collections.abc import Callable
from typing import Any, TypeVar

from icecream import ic
from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import MaxRetryError

from kube_buildkit.exceptions import ApiError, ClusterConnectionError, ConflictError

_T = TypeVar("_T")

_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409


def _translate(exc: ApiException, action: str) -> ApiError:
    """Convert an ApiException into ApiError or ConflictError.

    Args:
        exc: The exception raised by the kubernetes client.
        action: Human readable description of the failed call.

    Returns:
        The matching kube-buildkit exception (not raised).

    """
    message = f"Failed to {action}: {exc.status} {exc.reason}"
    if exc.status == _HTTP_CONFLICT:
        return ConflictError(message, status=exc.status, reason=exc.reason)
    return ApiError(message, status=exc.status, reason=exc.reason)


class KubeApi:
    """Accessor for Secrets and Deployments in a cluster.

    Attributes:
        core: CoreV1Api client used for secrets.
        apps: AppsV1Api client used for deployments.

    """

    def __init__(
        self,
        core: client.CoreV1Api | None = None,
        apps: client.AppsV1Api | None = None,
        api_client: client.ApiClient | None = None,
    ) -> None:
        """Initialize the accessor.

        Args:
            core: Optional pre-built CoreV1Api client.
            apps: Optional pre-built AppsV1Api client.
            api_client: Optional shared ApiClient. Used for the clients that
                are not passed in, and for serializing responses.

        """
        self.api_client: client.ApiClient = api_client or client.ApiClient()
        self.core: client.CoreV1Api = core or client.CoreV1Api(self.api_client)
        self.apps: client.AppsV1Api = apps or client.AppsV1Api(self.api_client)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        return self.api_client.sanitize_for_serialization(obj)

    def _call(self, action: str, func: Callable[..., _T], *args: Any, **kwargs: Any) -> _T:
        ic(action)
        try:
            return func(*args, **kwargs)
        except ApiException as e:
            raise _translate(e, action) from e
        except MaxRetryError as e:
            raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e

    def _read(self, action: str, func: Callable[..., Any], name: str, namespace: str) -> dict[str, Any] | None:
        try:
            return self._to_dict(self._call(action, func, name, namespace))
        except ApiError as e:
            if e.status == _HTTP_NOT_FOUND:
                return None
            raise

    def _delete(self, action: str, func: Callable[..., Any], name: str, namespace: str) -> bool:
        try:
            self._call(action, func, name, namespace)
        except ApiError as e:
            if e.status == _HTTP_NOT_FOUND:
                return False
            raise
        return True

    # Secrets

    def read_secret(self, name: str, namespace: str) -> dict[str, Any] | None:
        """Read a secret, returning None if it does not exist."""
        return self._read(f"read secret {namespace}/{name}", self.core.read_namespaced_secret, name, namespace)

    def create_secret(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create a secret.

        Raises:
            ConflictError: If a secret with the same name already exists.
            ApiError: If the API call fails for any other reason.

        """
        name = body["metadata"]["name"]
        result = self._call(f"create secret {namespace}/{name}", self.core.create_namespaced_secret, namespace, body)
        return self._to_dict(result)

    def replace_secret(self, name: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Replace a secret as a whole."""
        result = self._call(
            f"replace secret {namespace}/{name}", self.core.replace_namespaced_secret, name, namespace, body
        )
        return self._to_dict(result)

    def delete_secret(self, name: str, namespace: str) -> bool:
        """Delete a secret, returning False if it did not exist."""
        return self._delete(f"delete secret {namespace}/{name}", self.core.delete_namespaced_secret, name, namespace)

    # Deployments

    def read_deployment(self, name: str, namespace: str) -> dict[str, Any] | None:
        """Read a deployment, returning None if it does not exist."""
        return self._read(
            f"read deployment {namespace}/{name}", self.apps.read_namespaced_deployment, name, namespace
        )

    def create_deployment(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create a deployment.

        Raises:
            ConflictError: If a deployment with the same name already exists.
            ApiError: If the API call fails for any other reason.

        """
        name = body["metadata"]["name"]
        result = self._call(
            f"create deployment {namespace}/{name}", self.apps.create_namespaced_deployment, namespace, body
        )
        return self._to_dict(result)

    def replace_deployment(self, name: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Replace a deployment as a whole."""
        result = self._call(
            f"replace deployment {namespace}/{name}", self.apps.replace_namespaced_deployment, name, namespace, body
        )
        return self._to_dict(result)

    def delete_deployment(self, name: str, namespace: str) -> bool:
        """Delete a deployment, returning False if it did not exist."""
        return self._delete(
            f"delete deployment {namespace}/{name}", self.apps.delete_namespaced_deployment, name, namespace
        )
