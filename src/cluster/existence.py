from __future__ import annotations

import logging

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from src.common.errors import ClusterQueryError, ServiceAccountLookupError

from .client import ClusterClientFactory

logger = logging.getLogger(__name__)


def namespace_exists(factory: ClusterClientFactory, name: str) -> bool:
    """Return True when the namespace exists; not-found is a value, not an error."""

    core = factory.core()
    try:
        core.read_namespace(name)
    except ApiException as exc:
        if exc.status == 404:
            logger.debug("Namespace %s not found", name)
            return False
        raise ClusterQueryError(
            f"namespace lookup for {name!r} failed: {_reason(exc)}", status=exc.status
        ) from exc
    except HTTPError as exc:
        raise ClusterQueryError(f"namespace lookup for {name!r} failed: {exc}") from exc
    return True


def service_account_exists(factory: ClusterClientFactory, namespace: str, name: str) -> bool:
    core = factory.core()
    try:
        core.read_namespaced_service_account(name, namespace)
    except ApiException as exc:
        if exc.status == 404:
            logger.debug("Service account %s/%s not found", namespace, name)
            return False
        raise ServiceAccountLookupError(
            f"service account lookup for {namespace}/{name} failed: {_reason(exc)}",
            status=exc.status,
        ) from exc
    except HTTPError as exc:
        raise ServiceAccountLookupError(
            f"service account lookup for {namespace}/{name} failed: {exc}"
        ) from exc
    return True


def pod_exists(factory: ClusterClientFactory, namespace: str, label_selector: str) -> bool:
    """Return True when at least one pod matches the selector.

    Pods in any phase count, including Succeeded and Failed ones.
    """

    core = factory.core()
    try:
        pods = core.list_namespaced_pod(namespace, label_selector=label_selector)
    except ApiException as exc:
        raise ClusterQueryError(
            f"listing pods in {namespace!r} with {label_selector!r} failed: {_reason(exc)}",
            status=exc.status,
        ) from exc
    except HTTPError as exc:
        raise ClusterQueryError(
            f"listing pods in {namespace!r} with {label_selector!r} failed: {exc}"
        ) from exc
    items = pods.items or []
    logger.debug("Found %d pod(s) in %s matching %s", len(items), namespace, label_selector)
    return len(items) >= 1


def _reason(exc: ApiException) -> str:
    return exc.reason or str(exc)


__all__ = ["namespace_exists", "service_account_exists", "pod_exists"]
