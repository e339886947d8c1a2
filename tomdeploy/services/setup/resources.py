from __future__ import annotations

from typing import ClassVar

from tomdeploy.models.helm import HelmRepository
from tomdeploy.services.gcloud_service import GcloudService
from tomdeploy.services.helm_service import HelmService
from tomdeploy.services.kubectl_service import KubectlService
from tomdeploy.services.setup.existence_guard import GuardedResource


class ProjectResource(GuardedResource):
    kind: ClassVar[str] = "project"

    def __init__(self, gcloud: GcloudService, *, project_id: str, display_name: str) -> None:
        self._gcloud = gcloud
        self._project_id = project_id
        self._display_name = display_name

    @property
    def name(self) -> str:
        return self._project_id

    async def exists(self) -> bool:
        return await self._gcloud.project_exists(self._project_id)

    async def create(self) -> None:
        await self._gcloud.create_project(self._project_id, display_name=self._display_name)


class ServiceAccountResource(GuardedResource):
    kind: ClassVar[str] = "service account"

    def __init__(self, gcloud: GcloudService, *, account_id: str, project_id: str) -> None:
        self._gcloud = gcloud
        self._account_id = account_id
        self._project_id = project_id

    @property
    def name(self) -> str:
        return f"{self._account_id}@{self._project_id}.iam.gserviceaccount.com"

    async def exists(self) -> bool:
        return await self._gcloud.service_account_exists(self.name)

    async def create(self) -> None:
        await self._gcloud.create_service_account(self._account_id)


class ClusterResource(GuardedResource):
    kind: ClassVar[str] = "cluster"

    def __init__(
        self,
        gcloud: GcloudService,
        *,
        cluster_name: str,
        zone: str,
        node_count: int,
        machine_type: str,
        service_account: str,
    ) -> None:
        self._gcloud = gcloud
        self._cluster_name = cluster_name
        self._zone = zone
        self._node_count = node_count
        self._machine_type = machine_type
        self._service_account = service_account

    @property
    def name(self) -> str:
        return f"{self._cluster_name} ({self._zone})"

    async def exists(self) -> bool:
        return await self._gcloud.cluster_exists(self._cluster_name, zone=self._zone)

    async def create(self) -> None:
        await self._gcloud.create_cluster(
            self._cluster_name,
            zone=self._zone,
            node_count=self._node_count,
            machine_type=self._machine_type,
            service_account=self._service_account,
        )


class ArtifactRepositoryResource(GuardedResource):
    kind: ClassVar[str] = "container repository"

    def __init__(self, gcloud: GcloudService, *, repository: str, location: str, description: str) -> None:
        self._gcloud = gcloud
        self._repository = repository
        self._location = location
        self._description = description

    @property
    def name(self) -> str:
        return f"{self._location}/{self._repository}"

    async def exists(self) -> bool:
        return await self._gcloud.repository_exists(self._repository, location=self._location)

    async def create(self) -> None:
        await self._gcloud.create_repository(
            self._repository, location=self._location, description=self._description
        )


class StaticAddressResource(GuardedResource):
    kind: ClassVar[str] = "static address"

    def __init__(self, gcloud: GcloudService, *, address_name: str, region: str) -> None:
        self._gcloud = gcloud
        self._address_name = address_name
        self._region = region

    @property
    def name(self) -> str:
        return f"{self._region}/{self._address_name}"

    async def exists(self) -> bool:
        return await self._gcloud.address_exists(self._address_name, region=self._region)

    async def create(self) -> None:
        await self._gcloud.create_address(self._address_name, region=self._region)


class ChartRepositoryResource(GuardedResource):
    """A helm chart repository registered under a fixed alias.

    Releases reference charts as `<alias>/<chart>`, so only the alias counts;
    the same URL under another alias does not satisfy it.
    """

    kind: ClassVar[str] = "chart repository"

    def __init__(self, helm: HelmService, repository: HelmRepository) -> None:
        self._helm = helm
        self._repository = repository

    @property
    def name(self) -> str:
        return self._repository.name

    async def exists(self) -> bool:
        registered = await self._helm.list_repositories()
        return any(r.name == self._repository.name for r in registered)

    async def create(self) -> None:
        await self._helm.add_repository(self._repository)


class NamespaceResource(GuardedResource):
    kind: ClassVar[str] = "namespace"

    def __init__(self, kubectl: KubectlService, *, namespace: str) -> None:
        self._kubectl = kubectl
        self._namespace = namespace

    @property
    def name(self) -> str:
        return self._namespace

    async def exists(self) -> bool:
        return await self._kubectl.namespace_exists(self._namespace)

    async def create(self) -> None:
        await self._kubectl.create_namespace(self._namespace)


class SecretPlaceholderResource(GuardedResource):
    """An empty-ish secret that operators fill in later; never overwritten."""

    kind: ClassVar[str] = "secret"

    _PLACEHOLDER: ClassVar[dict[str, str]] = {"placeholder": "1"}

    def __init__(self, kubectl: KubectlService, *, namespace: str, secret_name: str) -> None:
        self._kubectl = kubectl
        self._namespace = namespace
        self._secret_name = secret_name

    @property
    def name(self) -> str:
        return f"{self._namespace}/{self._secret_name}"

    async def exists(self) -> bool:
        return await self._kubectl.secret_exists(self._secret_name, namespace=self._namespace)

    async def create(self) -> None:
        await self._kubectl.create_generic_secret(
            self._secret_name, namespace=self._namespace, literals=dict(self._PLACEHOLDER)
        )
