import unittest

from tomdeploy.models.helm import HelmRepository
from tomdeploy.services.command_runner import CommandError
from tomdeploy.services.setup.existence_guard import ensure_exists
from tomdeploy.services.setup.resources import (
    ChartRepositoryResource,
    NamespaceResource,
    SecretPlaceholderResource,
)

from tests.fakes import FakeHelm, FakeKubectl


class TestEnsureExists(unittest.IsolatedAsyncioTestCase):
    async def test_creates_missing_resource(self) -> None:
        kubectl = FakeKubectl()

        created = await ensure_exists(NamespaceResource(kubectl, namespace="tom-demo"))

        self.assertTrue(created)
        self.assertIn("tom-demo", kubectl.namespaces)
        self.assertEqual(kubectl.mutations, ["create_namespace"])

    async def test_existing_resource_is_left_alone(self) -> None:
        kubectl = FakeKubectl()
        kubectl.namespaces.add("tom-demo")

        created = await ensure_exists(NamespaceResource(kubectl, namespace="tom-demo"))

        self.assertFalse(created)
        self.assertEqual(kubectl.mutations, [])

    async def test_probe_failure_propagates_without_creating(self) -> None:
        kubectl = FakeKubectl()
        kubectl.fail_on["namespace_exists"] = CommandError("connection refused")

        with self.assertRaises(CommandError):
            await ensure_exists(NamespaceResource(kubectl, namespace="tom-demo"))
        self.assertEqual(kubectl.mutations, [])

    async def test_existing_secret_is_never_overwritten(self) -> None:
        kubectl = FakeKubectl()
        kubectl.secrets[("tom-demo", "tom-demo-secrets")] = {"DJANGO_SECRET_KEY": "real"}

        created = await ensure_exists(
            SecretPlaceholderResource(kubectl, namespace="tom-demo", secret_name="tom-demo-secrets")
        )

        self.assertFalse(created)
        self.assertEqual(kubectl.secrets[("tom-demo", "tom-demo-secrets")], {"DJANGO_SECRET_KEY": "real"})


class TestChartRepositoryResource(unittest.IsolatedAsyncioTestCase):
    async def test_registered_alias_counts_as_registered(self) -> None:
        helm = FakeHelm()
        helm.repositories.append(HelmRepository(name="jetstack", url="https://charts.jetstack.io/"))

        resource = ChartRepositoryResource(helm, HelmRepository(name="jetstack", url="https://charts.jetstack.io"))

        self.assertTrue(await resource.exists())

    async def test_same_url_under_other_alias_is_not_enough(self) -> None:
        helm = FakeHelm()
        helm.repositories.append(HelmRepository(name="cert-manager-charts", url="https://charts.jetstack.io"))

        resource = ChartRepositoryResource(helm, HelmRepository(name="jetstack", url="https://charts.jetstack.io"))

        self.assertFalse(await resource.exists())

    async def test_unrelated_repository_does_not_match(self) -> None:
        helm = FakeHelm()
        helm.repositories.append(HelmRepository(name="bitnami", url="https://charts.bitnami.com/bitnami"))

        resource = ChartRepositoryResource(helm, HelmRepository(name="jetstack", url="https://charts.jetstack.io"))

        self.assertFalse(await resource.exists())
