"""Well-known names shared by everything that touches the BuildKit service.

The Deployment and the auth Secret each have a single fixed name per
namespace, so callers can locate them for verification or teardown.
"""

BUILDKIT_DEPLOYMENT_NAME = "buildkit"
BUILDKIT_CONTAINER_NAME = "buildkitd"
BUILDKIT_AUTH_SECRET_NAME = "buildkit-docker-auth"

DOCKER_AUTH_SECRET_KEY = ".dockerconfigjson"
DOCKER_AUTH_SECRET_TYPE = "kubernetes.io/dockerconfigjson"
# Pre-1.7 ~/.dockercfg format, still accepted as an input
LEGACY_DOCKER_AUTH_SECRET_KEY = ".dockercfg"
LEGACY_DOCKER_AUTH_SECRET_TYPE = "kubernetes.io/dockercfg"

BUILDKIT_VERSION = "v0.12.5"
BUILDKIT_IMAGE = f"moby/buildkit:{BUILDKIT_VERSION}"
BUILDKIT_ROOTLESS_IMAGE = f"moby/buildkit:{BUILDKIT_VERSION}-rootless"

ROOTLESS_USER_ID = 1000

DOCKER_CONFIG_MOUNT_PATH = "/.docker"
MANIFEST_HASH_ANNOTATION = "kube-buildkit/manifest-hash"
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY_VALUE = "kube-buildkit"
