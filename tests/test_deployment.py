"""Tests for buildkit/deployment.py module."""

from kube_buildkit.buildkit.deployment import get_buildkit_deployment, stringify_resources
from kube_buildkit.constants import MANIFEST_HASH_ANNOTATION
from kube_buildkit.models import (
    BuilderResources,
    ClusterBuildkitConfig,
    ProviderConfig,
    ResourceLimits,
    SecretRef,
)


def _container(manifest):
    return manifest["spec"]["template"]["spec"]["containers"][0]


class TestGetBuildkitDeployment:
    """Tests for the desired deployment manifest."""

    def test_privileged_mode_by_default(self):
        """Test that an absent clusterBuildkit section means privileged mode."""
        manifest = get_buildkit_deployment(ProviderConfig(), "builds")

        container = _container(manifest)
        assert container["securityContext"] == {"privileged": True}
        assert container["image"] == "moby/buildkit:v0.12.5"
        assert container["args"] == ["--addr", "unix:///run/buildkit/buildkitd.sock"]
        assert "annotations" not in manifest["spec"]["template"]["metadata"]

    def test_rootless_mode(self):
        """Test the security context, image and args in rootless mode."""
        provider = ProviderConfig(cluster_buildkit=ClusterBuildkitConfig(rootless=True))

        manifest = get_buildkit_deployment(provider, "builds")

        container = _container(manifest)
        assert container["securityContext"] == {"runAsUser": 1000, "runAsGroup": 1000, "runAsNonRoot": True}
        assert container["image"].endswith("-rootless")
        assert "--oci-worker-no-process-sandbox" in container["args"]
        annotations = manifest["spec"]["template"]["metadata"]["annotations"]
        assert annotations["container.apparmor.security.beta.kubernetes.io/buildkitd"] == "unconfined"

    def test_name_and_namespace(self):
        """Test the fixed deployment name and the target namespace."""
        manifest = get_buildkit_deployment(ProviderConfig(), "builds")

        assert manifest["metadata"]["name"] == "buildkit"
        assert manifest["metadata"]["namespace"] == "builds"
        assert manifest["spec"]["selector"]["matchLabels"] == manifest["spec"]["template"]["metadata"]["labels"]

    def test_mounts_auth_secret(self):
        """Test that the auth secret is mounted as the docker config."""
        manifest = get_buildkit_deployment(ProviderConfig(), "builds")

        pod_spec = manifest["spec"]["template"]["spec"]
        volume = pod_spec["volumes"][0]
        assert volume["secret"]["secretName"] == "buildkit-docker-auth"
        assert volume["secret"]["items"] == [{"key": ".dockerconfigjson", "path": "config.json"}]
        assert _container(manifest)["volumeMounts"][0]["mountPath"] == "/.docker"
        assert {"name": "DOCKER_CONFIG", "value": "/.docker"} in _container(manifest)["env"]

    def test_image_pull_secrets(self):
        """Test that pull secrets in the target namespace are referenced by name."""
        provider = ProviderConfig(
            image_pull_secrets=[SecretRef("regcred", "builds"), SecretRef("ghcr", "other"), SecretRef("quay", "builds")]
        )

        manifest = get_buildkit_deployment(provider, "builds")

        assert manifest["spec"]["template"]["spec"]["imagePullSecrets"] == [{"name": "regcred"}, {"name": "quay"}]

    def test_pull_secrets_from_other_namespaces_are_not_listed(self):
        """Test that no dangling pull secret references end up in the pod."""
        provider = ProviderConfig(image_pull_secrets=[SecretRef("regcred")])

        manifest = get_buildkit_deployment(provider, "builds")

        assert "imagePullSecrets" not in manifest["spec"]["template"]["spec"]

    def test_no_image_pull_secrets(self):
        """Test that the field is omitted without pull secrets."""
        manifest = get_buildkit_deployment(ProviderConfig(), "builds")

        assert "imagePullSecrets" not in manifest["spec"]["template"]["spec"]

    def test_resources(self):
        """Test that builder resources are rendered as quantities."""
        provider = ProviderConfig(
            resources=BuilderResources(limits=ResourceLimits(2000, 4096), requests=ResourceLimits(250, 256))
        )

        manifest = get_buildkit_deployment(provider, "builds")

        assert _container(manifest)["resources"] == {
            "limits": {"cpu": "2000m", "memory": "4096Mi"},
            "requests": {"cpu": "250m", "memory": "256Mi"},
        }

    def test_image_override_and_placement(self):
        """Test image override, node selector and tolerations."""
        tolerations = [{"key": "builds", "operator": "Exists", "effect": "NoSchedule"}]
        provider = ProviderConfig(
            cluster_buildkit=ClusterBuildkitConfig(
                image="registry.local/buildkit:custom",
                node_selector={"pool": "builders"},
                tolerations=tolerations,
            )
        )

        manifest = get_buildkit_deployment(provider, "builds")

        pod_spec = manifest["spec"]["template"]["spec"]
        assert _container(manifest)["image"] == "registry.local/buildkit:custom"
        assert pod_spec["nodeSelector"] == {"pool": "builders"}
        assert pod_spec["tolerations"] == tolerations

    def test_hash_depends_on_configuration(self):
        """Test that the hash is stable and follows the rootless flag."""
        first = get_buildkit_deployment(ProviderConfig(), "builds")
        second = get_buildkit_deployment(ProviderConfig(), "builds")
        rootless = get_buildkit_deployment(
            ProviderConfig(cluster_buildkit=ClusterBuildkitConfig(rootless=True)), "builds"
        )

        first_hash = first["metadata"]["annotations"][MANIFEST_HASH_ANNOTATION]
        assert first_hash == second["metadata"]["annotations"][MANIFEST_HASH_ANNOTATION]
        assert first_hash != rootless["metadata"]["annotations"][MANIFEST_HASH_ANNOTATION]

    def test_base_manifest_is_not_mutated(self):
        """Test that building a rootless manifest does not leak into later ones."""
        get_buildkit_deployment(ProviderConfig(cluster_buildkit=ClusterBuildkitConfig(rootless=True)), "a")

        manifest = get_buildkit_deployment(ProviderConfig(), "b")

        assert _container(manifest)["securityContext"] == {"privileged": True}


def test_stringify_resources_defaults():
    """Test the default builder resources."""
    assert stringify_resources(BuilderResources()) == {
        "limits": {"cpu": "4000m", "memory": "8192Mi"},
        "requests": {"cpu": "100m", "memory": "512Mi"},
    }
