from __future__ import annotations

from typing import Optional


class ChaosDelegateError(Exception):
    """Base class for installer failures."""


class ConfigError(ChaosDelegateError):
    """Raised when the install configuration cannot be loaded."""


class ClusterClientError(ChaosDelegateError):
    """Raised when a cluster client cannot be constructed."""


class ClusterQueryError(ChaosDelegateError):
    """Raised when a cluster API call fails for a reason other than not-found."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ServiceAccountLookupError(ClusterQueryError):
    """Raised when a service account lookup fails ambiguously."""


class UnexpectedWatchEventError(ChaosDelegateError):
    """Raised when a pod watch yields something that is not a pod."""


class PodNotReadyError(ChaosDelegateError):
    """Raised when a pod watch ends before any pod reaches Running."""


class NamespaceResolutionError(ChaosDelegateError):
    """Raised when no namespace can be resolved."""


class ManifestFetchError(ChaosDelegateError):
    """Raised when a remote manifest cannot be fetched or cached."""


class ApplyError(ChaosDelegateError):
    """Raised when kubectl apply fails.

    The message is the captured stderr verbatim when kubectl wrote any,
    otherwise the text of the execution error.
    """

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


__all__ = [
    "ChaosDelegateError",
    "ConfigError",
    "ClusterClientError",
    "ClusterQueryError",
    "ServiceAccountLookupError",
    "UnexpectedWatchEventError",
    "PodNotReadyError",
    "NamespaceResolutionError",
    "ManifestFetchError",
    "ApplyError",
]
