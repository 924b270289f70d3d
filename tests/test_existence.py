import unittest

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import MaxRetryError

from src.cluster.existence import namespace_exists, pod_exists, service_account_exists
from src.common.errors import ClusterQueryError, ServiceAccountLookupError
from tests.fakes import FakeCoreApi, FakeFactory, make_pod


class NamespaceExistsTests(unittest.TestCase):
    def test_existing_namespace(self) -> None:
        factory = FakeFactory(FakeCoreApi(namespaces=["litmus"]))
        self.assertTrue(namespace_exists(factory, "litmus"))

    def test_not_found_is_false_not_error(self) -> None:
        factory = FakeFactory(FakeCoreApi())
        self.assertFalse(namespace_exists(factory, "litmus"))

    def test_forbidden_propagates(self) -> None:
        core = FakeCoreApi(errors={"read_namespace": ApiException(status=403, reason="Forbidden")})
        with self.assertRaises(ClusterQueryError) as ctx:
            namespace_exists(FakeFactory(core), "litmus")
        self.assertEqual(ctx.exception.status, 403)
        self.assertIn("Forbidden", str(ctx.exception))

    def test_unreachable_api_server(self) -> None:
        core = FakeCoreApi(errors={"read_namespace": MaxRetryError(None, "/api/v1/namespaces/litmus")})
        with self.assertRaises(ClusterQueryError) as ctx:
            namespace_exists(FakeFactory(core), "litmus")
        self.assertIsNone(ctx.exception.status)

    def test_client_is_built_per_call(self) -> None:
        factory = FakeFactory(FakeCoreApi(namespaces=["a"]))
        namespace_exists(factory, "a")
        namespace_exists(factory, "b")
        self.assertEqual(factory.core_calls, 2)


class ServiceAccountExistsTests(unittest.TestCase):
    def test_existing_service_account(self) -> None:
        factory = FakeFactory(FakeCoreApi(service_accounts=[("litmus", "litmus")]))
        self.assertTrue(service_account_exists(factory, "litmus", "litmus"))

    def test_missing_service_account(self) -> None:
        factory = FakeFactory(FakeCoreApi(service_accounts=[("other", "litmus")]))
        self.assertFalse(service_account_exists(factory, "litmus", "litmus"))

    def test_ambiguous_error_raises(self) -> None:
        core = FakeCoreApi(
            errors={"read_namespaced_service_account": ApiException(status=500, reason="boom")}
        )
        with self.assertRaises(ServiceAccountLookupError):
            service_account_exists(FakeFactory(core), "litmus", "litmus")


    def test_unreachable_api_server(self) -> None:
        core = FakeCoreApi(
            errors={"read_namespaced_service_account": MaxRetryError(None, "/api/v1/serviceaccounts")}
        )
        with self.assertRaises(ServiceAccountLookupError):
            service_account_exists(FakeFactory(core), "litmus", "litmus")


class PodExistsTests(unittest.TestCase):
    def test_no_matching_pods(self) -> None:
        core = FakeCoreApi(pods={"litmus": [make_pod("web", "Running", {"app": "web"})]})
        self.assertFalse(pod_exists(FakeFactory(core), "litmus", "app=chaos-delegate"))

    def test_any_matching_pod_counts(self) -> None:
        core = FakeCoreApi(
            pods={"litmus": [make_pod("delegate", "Running", {"app": "chaos-delegate"})]}
        )
        self.assertTrue(pod_exists(FakeFactory(core), "litmus", "app=chaos-delegate"))

    def test_failed_pod_still_counts(self) -> None:
        core = FakeCoreApi(
            pods={
                "litmus": [
                    make_pod("old-1", "Failed", {"app": "chaos-delegate"}),
                    make_pod("old-2", "Succeeded", {"app": "chaos-delegate"}),
                ]
            }
        )
        self.assertTrue(pod_exists(FakeFactory(core), "litmus", "app=chaos-delegate"))

    def test_selector_is_forwarded(self) -> None:
        core = FakeCoreApi()
        pod_exists(FakeFactory(core), "litmus", "app=chaos-delegate")
        self.assertEqual(core.calls, [("list_namespaced_pod", ("litmus", "app=chaos-delegate"))])

    def test_list_failure_raises(self) -> None:
        core = FakeCoreApi(errors={"list_namespaced_pod": ApiException(status=401, reason="Unauthorized")})
        with self.assertRaises(ClusterQueryError):
            pod_exists(FakeFactory(core), "litmus", "app=chaos-delegate")

    def test_list_transport_failure_raises(self) -> None:
        core = FakeCoreApi(errors={"list_namespaced_pod": MaxRetryError(None, "/api/v1/pods")})
        with self.assertRaises(ClusterQueryError):
            pod_exists(FakeFactory(core), "litmus", "app=chaos-delegate")
