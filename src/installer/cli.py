from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
import yaml

from src.applier.applier import LocalManifest, ManifestApplier, ManifestSource, RemoteManifest
from src.cluster.client import ClusterClientFactory
from src.cluster.configmap import get_config_map
from src.cluster.permissions import check_required_permissions
from src.common.constants import (
    DEFAULT_CONFIG_PATH,
    INSTALL_MODES,
    MODE_CLUSTER,
    REQUIRED_RESOURCES,
    REQUIRED_VERBS,
)
from src.common.errors import ChaosDelegateError
from src.resolver.resolver import NamespaceResolver
from src.watcher.watcher import watch_pod

from .settings import InstallSettings

app = typer.Typer(help="Validate a cluster and install the chaos delegate.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def _notify(message: str) -> None:
    typer.secho(message, bold=True)


def _prompt(message: str) -> str:
    return typer.prompt(message, default="", show_default=False)


def _fail(exc: Exception) -> NoReturn:
    typer.secho(f"🚫 {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _build_source(settings: InstallSettings, manifest: Optional[Path]) -> ManifestSource:
    if manifest is not None:
        return LocalManifest(path=manifest)
    if not settings.endpoint or not settings.token:
        raise typer.BadParameter(
            "Provide --manifest, or a ChaosCenter endpoint and token to fetch one."
        )
    return RemoteManifest(
        endpoint=settings.endpoint,
        token=settings.token,
        manifest_path=settings.manifest_path,
        cache_path=Path(settings.cache_path),
    )


@app.command()
def install(
    mode: str = typer.Option(
        MODE_CLUSTER,
        "--mode",
        "-m",
        help=f"Installation scope ({' or '.join(INSTALL_MODES)}).",
    ),
    manifest: Optional[Path] = typer.Option(
        None,
        "--manifest",
        "-f",
        exists=True,
        dir_okay=False,
        help="Apply a local manifest instead of fetching one from ChaosCenter.",
    ),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="ChaosCenter endpoint."),
    token: Optional[str] = typer.Option(None, "--token", help="Project token used in the manifest URL."),
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig", help="Kubeconfig file to use."),
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_PATH),
        "--config",
        "-c",
        help="Install configuration file.",
    ),
    check_permissions: bool = typer.Option(
        True,
        "--check-permissions/--skip-permission-check",
        help="Probe the permissions the manifest needs before applying it.",
    ),
) -> None:
    if mode not in INSTALL_MODES:
        raise typer.BadParameter(f"Mode must be one of: {', '.join(INSTALL_MODES)}")
    try:
        settings = InstallSettings.load(config)
    except ChaosDelegateError as exc:
        _fail(exc)
    settings.endpoint = (endpoint or settings.endpoint or "").rstrip("/") or None
    settings.token = token or settings.token
    settings.kubeconfig = kubeconfig or settings.kubeconfig
    source = _build_source(settings, manifest)

    factory = ClusterClientFactory(settings.kubeconfig)
    resolver = NamespaceResolver(
        factory,
        _prompt,
        notify=_notify,
        label=settings.delegate_label,
        default_namespace=settings.default_namespace,
        default_service_account=settings.default_service_account,
    )
    applier = ManifestApplier(settings.kubectl_cmd, settings.kubeconfig)

    try:
        identity = resolver.resolve(mode)
        if check_permissions:
            results = check_required_permissions(factory, identity.namespace, notify=_notify)
            denied = sorted(f"{verb} {resource}" for (verb, resource), ok in results.items() if not ok)
            if denied:
                typer.secho(f"Missing permissions: {', '.join(denied)}", fg=typer.colors.RED, err=True)
                raise typer.Exit(code=1)
        output = applier.apply(source, timeout=settings.http_timeout_seconds)
        typer.echo(output)
        watch_pod(
            factory,
            identity.namespace,
            settings.delegate_label,
            notify=_notify,
            timeout_seconds=settings.watch_timeout_seconds,
        )
    except ChaosDelegateError as exc:
        _fail(exc)

    typer.echo(
        f"Chaos delegate installed in {identity.namespace} "
        f"(service account {identity.service_account})"
    )


@app.command("check-permissions")
def check_permissions_command(
    namespace: str = typer.Option("", "--namespace", "-n", help="Namespace to probe (cluster scope when empty)."),
    resources: Optional[List[str]] = typer.Option(None, "--resource", "-r", help="Resource(s) to probe."),
    verbs: Optional[List[str]] = typer.Option(None, "--verb", help="Verb(s) to probe."),
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig", help="Kubeconfig file to use."),
) -> None:
    factory = ClusterClientFactory(kubeconfig)
    try:
        results = check_required_permissions(
            factory,
            namespace,
            resources=resources or REQUIRED_RESOURCES,
            verbs=verbs or REQUIRED_VERBS,
            notify=_notify,
        )
    except ChaosDelegateError as exc:
        _fail(exc)
    denied = [key for key, allowed in results.items() if not allowed]
    typer.echo(f"Checked {len(results)} permission(s), {len(denied)} denied")
    if denied:
        raise typer.Exit(code=1)


@app.command("get-configmap")
def get_configmap_command(
    name: str = typer.Argument(..., help="Config map name."),
    namespace: str = typer.Option(..., "--namespace", "-n", help="Namespace holding the config map."),
    kubeconfig: Optional[str] = typer.Option(None, "--kubeconfig", help="Kubeconfig file to use."),
) -> None:
    try:
        data = get_config_map(name, namespace, kubeconfig)
    except ChaosDelegateError as exc:
        _fail(exc)
    typer.echo(yaml.safe_dump(data, sort_keys=True), nl=False)


if __name__ == "__main__":  # pragma: no cover
    app()
