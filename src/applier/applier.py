from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import httpx

from src.common.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MANIFEST_CACHE,
    DEFAULT_MANIFEST_PATH,
)
from src.common.errors import ApplyError, ManifestFetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalManifest:
    path: Path


@dataclass(frozen=True)
class RemoteManifest:
    endpoint: str
    token: str
    manifest_path: str = DEFAULT_MANIFEST_PATH
    cache_path: Path = Path(DEFAULT_MANIFEST_CACHE)

    @property
    def url(self) -> str:
        return f"{self.endpoint}/{self.manifest_path}/{self.token}.yaml"


ManifestSource = Union[LocalManifest, RemoteManifest]


@dataclass
class ApplyResult:
    stdout: str
    stderr: str
    error: Optional[str] = None
    returncode: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def fetch_manifest(
    source: RemoteManifest,
    *,
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
) -> Path:
    """Download the manifest and overwrite the cache file with the body as-is."""

    url = source.url
    logger.debug("Fetching manifest from %s", url)
    try:
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            response = client.get(url)
            response.raise_for_status()
            body = response.content
    except httpx.HTTPError as exc:
        raise ManifestFetchError(f"fetching manifest from {url} failed: {exc}") from exc

    target = Path(source.cache_path)
    try:
        target.write_bytes(body)
    except OSError as exc:
        raise ManifestFetchError(f"writing manifest to {target} failed: {exc}") from exc
    logger.info("Cached %d byte manifest at %s", len(body), target)
    return target


def resolve_manifest(
    source: ManifestSource,
    *,
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
) -> Path:
    if isinstance(source, LocalManifest):
        return Path(source.path)
    if isinstance(source, RemoteManifest):
        return fetch_manifest(source, timeout=timeout)
    raise TypeError(f"unsupported manifest source: {source!r}")


class ManifestApplier:
    """Runs ``kubectl apply`` against a manifest file and classifies the outcome."""

    def __init__(self, kubectl_cmd: str = "kubectl", kubeconfig: Optional[str] = None) -> None:
        self.kubectl_cmd = kubectl_cmd
        self.kubeconfig = kubeconfig or None

    def command(self, path: Path) -> List[str]:
        args = [self.kubectl_cmd, "apply", "-f", str(path)]
        if self.kubeconfig:
            args.extend(["--kubeconfig", self.kubeconfig])
        return args

    def run(self, path: Path) -> ApplyResult:
        args = self.command(path)
        logger.debug("Running %s", " ".join(args))
        try:
            completed = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode("utf-8", errors="replace")
            stdout = (exc.stdout or b"").decode("utf-8", errors="replace")
            return ApplyResult(
                stdout=stdout,
                stderr=stderr,
                error=stderr if stderr else str(exc),
                returncode=exc.returncode,
            )
        except OSError as exc:
            return ApplyResult(stdout="", stderr="", error=str(exc))
        return ApplyResult(
            stdout=(completed.stdout or b"").decode("utf-8", errors="replace"),
            stderr=(completed.stderr or b"").decode("utf-8", errors="replace"),
            returncode=completed.returncode,
        )

    def apply(
        self,
        source: ManifestSource,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ) -> str:
        """Materialise ``source`` locally, apply it and return kubectl's stdout."""

        path = resolve_manifest(source, timeout=timeout)
        result = self.run(path)
        if result.error is not None:
            # stdout is dropped on failure
            raise ApplyError(result.error, stderr=result.stderr, returncode=result.returncode)
        return result.stdout


__all__ = [
    "LocalManifest",
    "RemoteManifest",
    "ManifestSource",
    "ApplyResult",
    "ManifestApplier",
    "fetch_manifest",
    "resolve_manifest",
]
