"""Cluster queries used before and after installing the chaos delegate."""

from .client import ClusterClientFactory
from .configmap import get_config_map
from .existence import namespace_exists, pod_exists, service_account_exists
from .permissions import (
    PermissionDecision,
    PermissionQuery,
    check_permission,
    check_required_permissions,
    review_permission,
)

__all__ = [
    "ClusterClientFactory",
    "get_config_map",
    "namespace_exists",
    "pod_exists",
    "service_account_exists",
    "PermissionDecision",
    "PermissionQuery",
    "check_permission",
    "check_required_permissions",
    "review_permission",
]
