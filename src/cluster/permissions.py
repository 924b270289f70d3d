from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple

from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from src.common.constants import REQUIRED_RESOURCES, REQUIRED_VERBS
from src.common.errors import ClusterQueryError

from .client import ClusterClientFactory

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


def silent(_message: str) -> None:
    return None


@dataclass(frozen=True)
class PermissionQuery:
    verb: str
    resource: str
    namespace: str = ""
    group: str = ""
    subresource: str = ""
    resource_name: str = ""

    def to_review(self) -> client.V1SelfSubjectAccessReview:
        attributes = client.V1ResourceAttributes(
            namespace=self.namespace or None,
            verb=self.verb,
            group=self.group or None,
            resource=self.resource,
            subresource=self.subresource or None,
            name=self.resource_name or None,
        )
        return client.V1SelfSubjectAccessReview(
            spec=client.V1SelfSubjectAccessReviewSpec(resource_attributes=attributes)
        )


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    reason: Optional[str] = None
    evaluation_error: Optional[str] = None


def review_permission(factory: ClusterClientFactory, query: PermissionQuery) -> PermissionDecision:
    """Submit a self access review and return the server's decision.

    A denial is a normal decision; only transport and API failures raise.
    """

    api = factory.authorization()
    logger.debug("Reviewing %s %s in %r", query.verb, query.resource, query.namespace)
    try:
        response = api.create_self_subject_access_review(query.to_review())
    except ApiException as exc:
        raise ClusterQueryError(
            f"access review for {query.verb} {query.resource} failed: {exc.reason or exc}",
            status=exc.status,
        ) from exc
    except HTTPError as exc:
        raise ClusterQueryError(
            f"access review for {query.verb} {query.resource} failed: {exc}"
        ) from exc
    status = response.status
    return PermissionDecision(
        allowed=bool(status.allowed),
        reason=status.reason or None,
        evaluation_error=status.evaluation_error or None,
    )


def check_permission(
    factory: ClusterClientFactory,
    query: PermissionQuery,
    *,
    print_diagnostics: bool = False,
    notify: Notifier = silent,
) -> bool:
    decision = review_permission(factory, query)
    if print_diagnostics:
        mark = "✅" if decision.allowed else "❌"
        notify(f"🔑 {query.resource} {mark}")
    if not decision.allowed:
        logger.info("Permission denied: %s %s", query.verb, query.resource)
        if decision.reason:
            notify(decision.reason)
        if decision.evaluation_error:
            notify(decision.evaluation_error)
    return decision.allowed


def check_required_permissions(
    factory: ClusterClientFactory,
    namespace: str = "",
    *,
    resources: Iterable[str] = REQUIRED_RESOURCES,
    verbs: Iterable[str] = REQUIRED_VERBS,
    notify: Notifier = silent,
) -> Dict[Tuple[str, str], bool]:
    """Probe every verb/resource pair and map each to its decision."""

    results: Dict[Tuple[str, str], bool] = {}
    verb_list = list(verbs)
    for resource in resources:
        for verb in verb_list:
            query = PermissionQuery(verb=verb, resource=resource, namespace=namespace)
            results[(verb, resource)] = check_permission(
                factory, query, print_diagnostics=True, notify=notify
            )
    return results


__all__ = [
    "Notifier",
    "silent",
    "PermissionQuery",
    "PermissionDecision",
    "review_permission",
    "check_permission",
    "check_required_permissions",
]
