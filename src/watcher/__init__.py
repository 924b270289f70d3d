"""Pod readiness watch for freshly applied delegates."""

from .watcher import watch_pod

__all__ = ["watch_pod"]
