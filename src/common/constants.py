from __future__ import annotations

DEFAULT_NAMESPACE = "litmus"
DEFAULT_SERVICE_ACCOUNT = "litmus"
DEFAULT_DELEGATE_LABEL = "app=chaos-delegate"

DEFAULT_MANIFEST_PATH = "api/file"
DEFAULT_MANIFEST_CACHE = "chaos-delegate-manifest.yaml"
DEFAULT_CONFIG_PATH = "configs/install.yaml"

DEFAULT_WATCH_TIMEOUT_SECONDS = 300
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

RUNNING_PHASE = "Running"

MODE_NAMESPACE = "namespace"
MODE_CLUSTER = "cluster"
INSTALL_MODES = (MODE_NAMESPACE, MODE_CLUSTER)

REQUIRED_RESOURCES = (
    "deployment",
    "service",
    "role",
    "rolebinding",
    "clusterrole",
    "clusterrolebinding",
    "customresourcedefinition",
    "serviceaccount",
)
REQUIRED_VERBS = ("create", "get", "list", "delete")


__all__ = [
    "DEFAULT_NAMESPACE",
    "DEFAULT_SERVICE_ACCOUNT",
    "DEFAULT_DELEGATE_LABEL",
    "DEFAULT_MANIFEST_PATH",
    "DEFAULT_MANIFEST_CACHE",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_WATCH_TIMEOUT_SECONDS",
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
    "RUNNING_PHASE",
    "MODE_NAMESPACE",
    "MODE_CLUSTER",
    "INSTALL_MODES",
    "REQUIRED_RESOURCES",
    "REQUIRED_VERBS",
]
