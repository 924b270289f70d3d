from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from src.cluster.client import ClusterClientFactory
from src.cluster.existence import namespace_exists, pod_exists, service_account_exists
from src.cluster.permissions import Notifier, PermissionQuery, check_permission, silent
from src.common.constants import (
    DEFAULT_DELEGATE_LABEL,
    DEFAULT_NAMESPACE,
    DEFAULT_SERVICE_ACCOUNT,
    MODE_CLUSTER,
    MODE_NAMESPACE,
)
from src.common.errors import ClusterQueryError, NamespaceResolutionError

logger = logging.getLogger(__name__)

Prompter = Callable[[str], str]

_NAMESPACE_PROMPTS = {
    MODE_NAMESPACE: "Enter the namespace (existing namespace) [Default: {default}]",
    MODE_CLUSTER: "Enter the namespace (new or existing namespace) [Default: {default}]",
}


@dataclass(frozen=True)
class ClusterIdentity:
    namespace: str
    service_account: str
    namespace_existed: bool
    service_account_existed: bool


class _State(enum.Enum):
    PROMPT = "prompt"
    CHECK_EXISTS = "check_exists"
    CHECK_OCCUPIED = "check_occupied"
    CHECK_CREATABLE = "check_creatable"
    ACCEPT = "accept"


class NamespaceResolver:
    """Interactively settles on a namespace and service account for the delegate.

    A namespace that already runs a delegate, or one that does not exist and
    cannot be created by the caller, is rejected and the user is asked again.
    """

    def __init__(
        self,
        factory: ClusterClientFactory,
        prompt: Prompter,
        *,
        notify: Notifier = silent,
        label: str = DEFAULT_DELEGATE_LABEL,
        default_namespace: str = DEFAULT_NAMESPACE,
        default_service_account: str = DEFAULT_SERVICE_ACCOUNT,
        max_attempts: Optional[int] = None,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        self.factory = factory
        self.prompt = prompt
        self.notify = notify
        self.label = label
        self.default_namespace = default_namespace
        self.default_service_account = default_service_account
        self.max_attempts = max_attempts

    def resolve_namespace(self, mode: str) -> Tuple[str, bool]:
        """Return ``(namespace, existed)`` once the user enters an acceptable namespace."""

        if mode not in _NAMESPACE_PROMPTS:
            raise NamespaceResolutionError(f"unknown install mode {mode!r}")
        message = _NAMESPACE_PROMPTS[mode].format(default=self.default_namespace)

        attempts = 0
        state = _State.PROMPT
        namespace = ""
        existed = False
        while state is not _State.ACCEPT:
            if state is _State.PROMPT:
                if self.max_attempts is not None and attempts >= self.max_attempts:
                    raise NamespaceResolutionError(
                        f"no usable namespace after {attempts} attempt(s)"
                    )
                attempts += 1
                namespace = (self.prompt(message) or "").strip() or self.default_namespace
                state = _State.CHECK_EXISTS

            elif state is _State.CHECK_EXISTS:
                try:
                    existed = namespace_exists(self.factory, namespace)
                except ClusterQueryError as exc:
                    raise NamespaceResolutionError(
                        f"namespace existence check failed: {exc}"
                    ) from exc
                state = _State.CHECK_OCCUPIED if existed else _State.CHECK_CREATABLE

            elif state is _State.CHECK_OCCUPIED:
                if pod_exists(self.factory, namespace, self.label):
                    logger.warning("Namespace %s already runs a chaos delegate", namespace)
                    self.notify(
                        "🚫 There is a Chaos Delegate already present in this namespace. "
                        "Please enter a different namespace"
                    )
                    state = _State.PROMPT
                else:
                    self.notify(f"👍 Continuing with {namespace} namespace")
                    state = _State.ACCEPT

            elif state is _State.CHECK_CREATABLE:
                if self._can_create_namespace(namespace):
                    state = _State.ACCEPT
                else:
                    self.notify(
                        "🚫 You don't have permissions to create a namespace.\n"
                        " Please enter an existing namespace."
                    )
                    state = _State.PROMPT

        logger.info("Resolved namespace %s (existed=%s)", namespace, existed)
        return namespace, existed

    def resolve_service_account(self, namespace: str) -> Tuple[str, bool]:
        """Return ``(service_account, existed)``; a missing one is created by the manifest."""

        message = f"Enter service account [Default: {self.default_service_account}]"
        name = (self.prompt(message) or "").strip() or self.default_service_account
        existed = service_account_exists(self.factory, namespace, name)
        if existed:
            self.notify("👍 Using the existing service account")
        logger.info("Resolved service account %s/%s (existed=%s)", namespace, name, existed)
        return name, existed

    def resolve(self, mode: str) -> ClusterIdentity:
        namespace, namespace_existed = self.resolve_namespace(mode)
        service_account, sa_existed = self.resolve_service_account(namespace)
        return ClusterIdentity(
            namespace=namespace,
            service_account=service_account,
            namespace_existed=namespace_existed,
            service_account_existed=sa_existed,
        )

    def _can_create_namespace(self, namespace: str) -> bool:
        query = PermissionQuery(verb="create", resource="namespace", namespace=namespace)
        try:
            return check_permission(self.factory, query, notify=self.notify)
        except ClusterQueryError as exc:
            logger.warning("Namespace create permission probe failed: %s", exc)
            return False


__all__ = ["ClusterIdentity", "NamespaceResolver", "Prompter"]
