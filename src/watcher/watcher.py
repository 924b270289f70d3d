from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from kubernetes import client, watch
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from src.cluster.client import ClusterClientFactory
from src.cluster.permissions import Notifier, silent
from src.common.constants import DEFAULT_WATCH_TIMEOUT_SECONDS, RUNNING_PHASE
from src.common.errors import ClusterQueryError, PodNotReadyError, UnexpectedWatchEventError

logger = logging.getLogger(__name__)

CONNECTING_MESSAGE = "💡 Connecting Chaos Delegate to ChaosCenter."
RUNNING_MESSAGE = "🏃 Chaos Delegate is running!!"


def watch_pod(
    factory: ClusterClientFactory,
    namespace: str,
    label_selector: str,
    *,
    notify: Notifier = silent,
    timeout_seconds: Optional[int] = DEFAULT_WATCH_TIMEOUT_SECONDS,
    stop: Optional[threading.Event] = None,
    watch_factory: Callable[[], watch.Watch] = watch.Watch,
) -> client.V1Pod:
    """Block until a pod matching ``label_selector`` reports phase Running.

    Returns the running pod. Raises :class:`PodNotReadyError` when the stream
    ends, the server-side timeout elapses or ``stop`` is set first. A falsy
    ``timeout_seconds`` falls back to the default; without a server timeout the
    kubernetes client reconnects closed streams and would never end.
    """

    core = factory.core()
    watcher = watch_factory()
    kwargs = {
        "label_selector": label_selector,
        "timeout_seconds": int(timeout_seconds or DEFAULT_WATCH_TIMEOUT_SECONDS),
    }

    logger.debug("Watching pods in %s with %s", namespace, label_selector)
    try:
        for event in watcher.stream(core.list_namespaced_pod, namespace, **kwargs):
            pod = event.get("object") if isinstance(event, dict) else None
            if not isinstance(pod, client.V1Pod):
                raise UnexpectedWatchEventError(
                    f"unexpected watch event payload: {type(pod).__name__}"
                )
            notify(CONNECTING_MESSAGE)
            phase = pod.status.phase if pod.status else None
            logger.debug("Pod %s is %s", pod.metadata.name if pod.metadata else "?", phase)
            if phase == RUNNING_PHASE:
                notify(RUNNING_MESSAGE)
                return pod
            if stop is not None and stop.is_set():
                raise PodNotReadyError("watch cancelled before a pod reached Running")
    except ApiException as exc:
        raise ClusterQueryError(
            f"watching pods in {namespace!r} failed: {exc.reason or exc}", status=exc.status
        ) from exc
    except HTTPError as exc:
        raise ClusterQueryError(f"watching pods in {namespace!r} failed: {exc}") from exc
    finally:
        watcher.stop()

    raise PodNotReadyError(
        f"pod watch for {label_selector!r} in {namespace!r} ended before a pod reached Running"
    )


__all__ = ["watch_pod", "CONNECTING_MESSAGE", "RUNNING_MESSAGE"]
