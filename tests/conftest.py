"""Shared test fixtures for kube-buildkit tests."""

import base64
import copy
import json
from unittest.mock import patch

import pytest

from kube_buildkit.exceptions import ApiError, ConflictError
from kube_buildkit.models import ProviderConfig, SecretRef


class FakeKubeApi:
    """In-memory stand-in for KubeApi.

    Behaves like the API server for the calls kube-buildkit makes: objects
    get a resourceVersion, creates of existing objects and replaces with an
    out-of-date resourceVersion fail with ConflictError.
    """

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.fail_on = {}
        self._version = 0

    def _bump(self, obj):
        self._version += 1
        obj.setdefault("metadata", {})["resourceVersion"] = str(self._version)
        return obj

    def _check_failure(self, call):
        self.calls.append(call)
        if call in self.fail_on:
            raise self.fail_on.pop(call)

    def _read(self, kind, name, namespace):
        self._check_failure(f"read_{kind}")
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def _create(self, kind, namespace, body):
        self._check_failure(f"create_{kind}")
        key = (kind, namespace, body["metadata"]["name"])
        if key in self.objects:
            raise ConflictError(f"{kind} already exists", status=409, reason="AlreadyExists")
        obj = self._bump(copy.deepcopy(body))
        obj["metadata"]["namespace"] = namespace
        self.objects[key] = obj
        return copy.deepcopy(obj)

    def _replace(self, kind, name, namespace, body):
        self._check_failure(f"replace_{kind}")
        key = (kind, namespace, name)
        current = self.objects.get(key)
        if current is None:
            raise ApiError(f"{kind} not found", status=404, reason="NotFound")
        sent_version = body.get("metadata", {}).get("resourceVersion")
        if sent_version and sent_version != current["metadata"]["resourceVersion"]:
            raise ConflictError(f"{kind} was modified", status=409, reason="Conflict")
        obj = self._bump(copy.deepcopy(body))
        obj["metadata"]["namespace"] = namespace
        self.objects[key] = obj
        return copy.deepcopy(obj)

    def _delete(self, kind, name, namespace):
        self._check_failure(f"delete_{kind}")
        return self.objects.pop((kind, namespace, name), None) is not None

    def read_secret(self, name, namespace):
        return self._read("secret", name, namespace)

    def create_secret(self, namespace, body):
        return self._create("secret", namespace, body)

    def replace_secret(self, name, namespace, body):
        return self._replace("secret", name, namespace, body)

    def delete_secret(self, name, namespace):
        return self._delete("secret", name, namespace)

    def read_deployment(self, name, namespace):
        return self._read("deployment", name, namespace)

    def create_deployment(self, namespace, body):
        return self._create("deployment", namespace, body)

    def replace_deployment(self, name, namespace, body):
        return self._replace("deployment", name, namespace, body)

    def delete_deployment(self, name, namespace):
        return self._delete("deployment", name, namespace)

    def writes(self):
        """Return the mutating calls made so far."""
        return [c for c in self.calls if not c.startswith("read_")]

    def add_registry_secret(self, name, namespace, auths, secret_type="kubernetes.io/dockerconfigjson"):
        """Store a docker registry secret, encoded the way kubectl does it."""
        if secret_type == "kubernetes.io/dockercfg":
            key, payload = ".dockercfg", auths
        else:
            key, payload = ".dockerconfigjson", {"auths": auths}
        self.objects[("secret", namespace, name)] = self._bump(
            {
                "apiVersion": "v1",
                "kind": "Secret",
                "metadata": {"name": name, "namespace": namespace},
                "type": secret_type,
                "data": {key: base64.b64encode(json.dumps(payload).encode()).decode()},
            }
        )


@pytest.fixture
def fake_api():
    """In-memory cluster accessor."""
    return FakeKubeApi()


@pytest.fixture
def namespace():
    """Target namespace for BuildKit."""
    return "builds"


@pytest.fixture
def registry_api(fake_api):
    """Accessor pre-populated with two registry secrets."""
    fake_api.add_registry_secret(
        "regcred", "default", {"registry.example.com": {"auth": "dXNlcjpwYXNz"}}
    )
    fake_api.add_registry_secret(
        "ghcr", "default", {"ghcr.io": {"username": "bot", "password": "token"}}
    )
    return fake_api


@pytest.fixture
def provider():
    """Provider config with one pull secret and default BuildKit settings."""
    return ProviderConfig(image_pull_secrets=[SecretRef(name="regcred", namespace="default")])


@pytest.fixture
def mock_kube_contexts():
    """Mock kubernetes config contexts."""
    with patch("kubernetes.config.list_kube_config_contexts") as mock:
        mock.return_value = (
            [
                {"name": "test-context", "context": {"namespace": "team-a"}},
                {"name": "other-context", "context": {}},
            ],
            {"name": "test-context", "context": {"namespace": "team-a"}},
        )
        yield mock


@pytest.fixture
def mock_kube_config():
    """Mock kubernetes config loading."""
    with patch("kubernetes.config.load_kube_config") as mock:
        yield mock


@pytest.fixture
def sample_config_yaml():
    """Sample provider config file content."""
    return """namespace: builds
imagePullSecrets:
  - name: regcred
  - name: ghcr
    namespace: registries
clusterBuildkit:
  rootless: true
  nodeSelector:
    kubernetes.io/arch: amd64
resources:
  builder:
    limits:
      cpu: 2000
"""
