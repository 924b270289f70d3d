import os
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import typer

from src.common.constants import REQUIRED_RESOURCES, REQUIRED_VERBS
from src.common.errors import ClusterQueryError, PodNotReadyError
from src.installer import cli as installer_cli
from tests.fakes import FakeAuthorizationApi, FakeCoreApi, FakeFactory, ScriptedPrompt

ALL_ALLOWED = {(verb, resource): True for resource in REQUIRED_RESOURCES for verb in REQUIRED_VERBS}
ALL_ALLOWED[("create", "namespace")] = True


class InstallCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        base = Path(self.tmpdir.name)
        self.manifest = base / "delegate.yaml"
        self.manifest.write_text("apiVersion: v1\nkind: Namespace\nmetadata:\n  name: litmus\n", encoding="utf-8")
        self.config = base / "install.yaml"
        self.factory = FakeFactory(FakeCoreApi(), FakeAuthorizationApi(dict(ALL_ALLOWED)))
        self.env = mock.patch.dict(os.environ)
        self.env.start()
        for variable in ("CHAOS_CENTER_ENDPOINT", "CHAOS_CENTER_TOKEN", "KUBECTL"):
            os.environ.pop(variable, None)

    def tearDown(self) -> None:
        self.env.stop()
        self.tmpdir.cleanup()

    def _invoke(self, answers, **kwargs) -> mock.MagicMock:
        completed = subprocess.CompletedProcess(["kubectl"], 0, stdout=b"namespace/litmus created\n", stderr=b"")
        run_result = kwargs.pop("run_result", completed)
        run_kwargs = {"side_effect": run_result} if isinstance(run_result, Exception) else {"return_value": run_result}
        watch = kwargs.pop("watch", mock.MagicMock())
        with mock.patch.object(installer_cli, "ClusterClientFactory", return_value=self.factory), \
                mock.patch.object(installer_cli, "_prompt", ScriptedPrompt(answers)), \
                mock.patch.object(installer_cli, "_notify"), \
                mock.patch.object(installer_cli, "watch_pod", watch), \
                mock.patch("src.applier.applier.subprocess.run", **run_kwargs) as run:
            installer_cli.install(
                mode=kwargs.get("mode", "cluster"),
                manifest=kwargs.get("manifest", self.manifest),
                endpoint=kwargs.get("endpoint"),
                token=kwargs.get("token"),
                kubeconfig="/tmp/kubeconfig",
                config=self.config,
                check_permissions=kwargs.get("check_permissions", True),
            )
        return run

    def test_install_applies_and_watches(self) -> None:
        watch = mock.MagicMock()
        run = self._invoke(["", ""], watch=watch)
        self.assertEqual(
            run.call_args[0][0],
            ["kubectl", "apply", "-f", str(self.manifest), "--kubeconfig", "/tmp/kubeconfig"],
        )
        args, kwargs = watch.call_args
        self.assertEqual(args[1:], ("litmus", "app=chaos-delegate"))
        self.assertEqual(kwargs["timeout_seconds"], 300)

    def test_denied_permission_stops_before_apply(self) -> None:
        self.factory.authorization_api.allowed.pop(("create", "clusterrole"))
        with self.assertRaises(typer.Exit) as ctx:
            self._invoke(["", ""])
        self.assertEqual(ctx.exception.exit_code, 1)

    def test_skip_permission_check(self) -> None:
        self.factory.authorization_api.allowed = {("create", "namespace"): True}
        run = self._invoke(["", ""], check_permissions=False)
        run.assert_called_once()

    def test_apply_failure_exits(self) -> None:
        failure = subprocess.CalledProcessError(1, ["kubectl"], output=b"", stderr=b"permission denied: default/x")
        with self.assertRaises(typer.Exit) as ctx:
            self._invoke(["", ""], run_result=failure)
        self.assertEqual(ctx.exception.exit_code, 1)

    def test_watch_failure_exits(self) -> None:
        watch = mock.MagicMock(side_effect=PodNotReadyError("stream closed"))
        with self.assertRaises(typer.Exit):
            self._invoke(["", ""], watch=watch)

    def test_watch_api_failure_exits(self) -> None:
        watch = mock.MagicMock(side_effect=ClusterQueryError("watching pods failed: Forbidden", status=403))
        with self.assertRaises(typer.Exit) as ctx:
            self._invoke(["", ""], watch=watch)
        self.assertEqual(ctx.exception.exit_code, 1)

    def test_requires_manifest_or_endpoint(self) -> None:
        with self.assertRaises(typer.BadParameter):
            self._invoke([], manifest=None)

    def test_rejects_unknown_mode(self) -> None:
        with self.assertRaises(typer.BadParameter):
            self._invoke([], mode="galaxy")


class CheckPermissionsCommandTests(unittest.TestCase):
    def test_exit_code_reflects_denials(self) -> None:
        factory = FakeFactory(authorization=FakeAuthorizationApi({("get", "pods"): True}))
        with mock.patch.object(installer_cli, "ClusterClientFactory", return_value=factory), \
                mock.patch.object(installer_cli, "_notify"), \
                mock.patch.object(installer_cli.typer, "echo"):
            installer_cli.check_permissions_command(
                namespace="litmus", resources=["pods"], verbs=["get"], kubeconfig=None
            )
            with self.assertRaises(typer.Exit):
                installer_cli.check_permissions_command(
                    namespace="litmus", resources=["pods"], verbs=["get", "delete"], kubeconfig=None
                )


class GetConfigMapCommandTests(unittest.TestCase):
    def test_prints_yaml(self) -> None:
        with mock.patch.object(installer_cli, "get_config_map", return_value={"VERSION": "3.0.0"}), \
                mock.patch.object(installer_cli.typer, "echo") as echo:
            installer_cli.get_configmap_command(name="agent-config", namespace="litmus", kubeconfig=None)
        self.assertEqual(echo.call_args[0][0], "VERSION: 3.0.0\n")

    def test_failure_exits(self) -> None:
        with mock.patch.object(
            installer_cli, "get_config_map", side_effect=ClusterQueryError("forbidden", status=403)
        ), mock.patch.object(installer_cli.typer, "secho"):
            with self.assertRaises(typer.Exit):
                installer_cli.get_configmap_command(name="agent-config", namespace="litmus", kubeconfig=None)
