from __future__ import annotations

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from src.common.errors import ClusterClientError

logger = logging.getLogger(__name__)


class ClusterClientFactory:
    """Builds kubernetes API handles on demand.

    Every call resolves the connection configuration from scratch and returns
    a new API object; nothing is pooled between calls.
    """

    def __init__(self, kubeconfig: Optional[str] = None) -> None:
        self.kubeconfig = kubeconfig or None

    def api_client(self) -> client.ApiClient:
        try:
            if self.kubeconfig:
                logger.debug("Loading cluster configuration from %s", self.kubeconfig)
                return config.new_client_from_config(config_file=self.kubeconfig)
            return self._default_client()
        except (ConfigException, OSError, TypeError, ValueError) as exc:
            raise ClusterClientError(f"unable to build cluster client: {exc}") from exc

    def core(self) -> client.CoreV1Api:
        return client.CoreV1Api(self.api_client())

    def authorization(self) -> client.AuthorizationV1Api:
        return client.AuthorizationV1Api(self.api_client())

    @staticmethod
    def _default_client() -> client.ApiClient:
        configuration = client.Configuration()
        try:
            config.load_incluster_config(client_configuration=configuration)
            logger.debug("Using in-cluster configuration")
        except ConfigException:
            config.load_kube_config(client_configuration=configuration)
            logger.debug("Using default kubeconfig")
        return client.ApiClient(configuration=configuration)


__all__ = ["ClusterClientFactory"]
