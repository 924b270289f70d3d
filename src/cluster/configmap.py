from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from src.common.errors import ClusterQueryError

from .client import ClusterClientFactory


def default_kubeconfig() -> Optional[str]:
    candidate = Path.home() / ".kube" / "config"
    return str(candidate) if candidate.exists() else None


def get_config_map(name: str, namespace: str, kubeconfig: Optional[str] = None) -> Dict[str, str]:
    """Read a config map's data.

    Builds its own client from ``kubeconfig`` (or ``~/.kube/config``) rather
    than reusing any client resolved earlier in the install.
    """

    factory = ClusterClientFactory(kubeconfig or default_kubeconfig())
    try:
        config_map = factory.core().read_namespaced_config_map(name, namespace)
    except ApiException as exc:
        raise ClusterQueryError(
            f"reading config map {namespace}/{name} failed: {exc.reason or exc}",
            status=exc.status,
        ) from exc
    except HTTPError as exc:
        raise ClusterQueryError(f"reading config map {namespace}/{name} failed: {exc}") from exc
    return dict(config_map.data or {})


__all__ = ["get_config_map", "default_kubeconfig"]
