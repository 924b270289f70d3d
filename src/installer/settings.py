from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from src.common.constants import (
    DEFAULT_DELEGATE_LABEL,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MANIFEST_CACHE,
    DEFAULT_MANIFEST_PATH,
    DEFAULT_NAMESPACE,
    DEFAULT_SERVICE_ACCOUNT,
    DEFAULT_WATCH_TIMEOUT_SECONDS,
)
from src.common.errors import ConfigError

ENV_OVERRIDES = {
    "endpoint": "CHAOS_CENTER_ENDPOINT",
    "token": "CHAOS_CENTER_TOKEN",
    "manifest_path": "CHAOS_DELEGATE_MANIFEST_PATH",
    "cache_path": "CHAOS_DELEGATE_MANIFEST_CACHE",
    "delegate_label": "CHAOS_DELEGATE_LABEL",
    "watch_timeout_seconds": "CHAOS_DELEGATE_WATCH_TIMEOUT",
    "kubectl_cmd": "KUBECTL",
}


@dataclass
class InstallSettings:
    endpoint: Optional[str] = None
    token: Optional[str] = None
    kubeconfig: Optional[str] = None
    manifest_path: str = DEFAULT_MANIFEST_PATH
    cache_path: str = DEFAULT_MANIFEST_CACHE
    delegate_label: str = DEFAULT_DELEGATE_LABEL
    default_namespace: str = DEFAULT_NAMESPACE
    default_service_account: str = DEFAULT_SERVICE_ACCOUNT
    watch_timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    kubectl_cmd: str = "kubectl"

    @classmethod
    def load(
        cls,
        path: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "InstallSettings":
        """Read YAML settings from ``path`` (if it exists) then apply env overrides."""

        values: Dict[str, Any] = {}
        if path is not None and path.exists():
            values.update(_load_yaml(path))

        environ = os.environ if env is None else env
        for key, variable in ENV_OVERRIDES.items():
            value = environ.get(variable)
            if value:
                values[key] = value

        known = {field.name for field in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"unknown setting(s): {', '.join(unknown)}")

        settings = cls(**values)
        settings.endpoint = settings.endpoint.rstrip("/") if settings.endpoint else None
        try:
            settings.watch_timeout_seconds = int(settings.watch_timeout_seconds)
            settings.http_timeout_seconds = float(settings.http_timeout_seconds)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"timeouts must be numeric: {exc}") from exc
        return settings


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"unable to read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping")
    return data


__all__ = ["InstallSettings", "ENV_OVERRIDES"]
