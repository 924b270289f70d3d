"""Manifest resolution and kubectl apply."""

from .applier import (
    ApplyResult,
    LocalManifest,
    ManifestApplier,
    RemoteManifest,
    fetch_manifest,
    resolve_manifest,
)

__all__ = [
    "ApplyResult",
    "LocalManifest",
    "ManifestApplier",
    "RemoteManifest",
    "fetch_manifest",
    "resolve_manifest",
]
