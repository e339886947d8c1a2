from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from tomdeploy.models.outcome import PipelineReport, StepOutcome
from tomdeploy.services.config import DeployConfig, RetryConfig
from tomdeploy.services.gcloud_service import GcloudService
from tomdeploy.services.setup.billing_resolver import BillingLinkageResolver
from tomdeploy.services.setup.existence_guard import ensure_exists
from tomdeploy.services.setup.pipeline import ConvergencePipeline
from tomdeploy.services.setup.resources import ClusterResource, ProjectResource, ServiceAccountResource
from tomdeploy.services.setup.retry_prober import wait_until_visible


logger = logging.getLogger(__name__)


class FoundationSetupService:
    """Provisioning for the cloud project, its billing, and the GKE cluster.

    Steps run in causal order: project, billing, APIs, node service account
    and its roles, cluster, then local kubeconfig credentials. Output of a
    successful run is an authenticated kubectl context for the cluster.
    """

    REQUIRED_SERVICES: tuple[str, ...] = (
        "container.googleapis.com",
        "compute.googleapis.com",
        "iam.googleapis.com",
        "containerregistry.googleapis.com",
    )
    NODE_ROLES: tuple[str, ...] = (
        "roles/artifactregistry.reader",
        "roles/logging.logWriter",
        "roles/monitoring.metricWriter",
    )

    def __init__(
        self,
        *,
        gcloud: GcloudService,
        config: DeployConfig,
        retry: RetryConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._gcloud = gcloud
        self._config = config
        self._retry = retry
        self._sleep = sleep

    def pipeline(self, *, show_progress: bool = True) -> ConvergencePipeline:
        return ConvergencePipeline(
            "foundation",
            [
                ("ensure_project", self.ensure_project),
                ("select_project", self.select_project),
                ("link_billing", self.link_billing),
                ("enable_services", self.enable_services),
                ("ensure_node_service_account", self.ensure_node_service_account),
                ("bind_node_roles", self.bind_node_roles),
                ("ensure_cluster", self.ensure_cluster),
                ("fetch_cluster_credentials", self.fetch_cluster_credentials),
            ],
            show_progress=show_progress,
        )

    async def ensure_project(self) -> StepOutcome:
        project = ProjectResource(
            self._gcloud,
            project_id=self._config.project_id,
            display_name=self._config.project_description,
        )
        if await ensure_exists(project):
            return StepOutcome.created("ensure_project", project.name)
        return StepOutcome.unchanged("ensure_project", project.name)

    async def select_project(self) -> StepOutcome:
        project_id = self._config.project_id
        if await self._gcloud.get_active_project() == project_id:
            return StepOutcome.unchanged("select_project", project_id)

        await self._gcloud.set_active_project(project_id)
        return StepOutcome.applied("select_project", project_id)

    async def link_billing(self) -> StepOutcome:
        linked = await BillingLinkageResolver(self._gcloud).resolve(self._config.project_id)
        if linked is None:
            return StepOutcome.unchanged("link_billing")
        return StepOutcome.created("link_billing", linked)

    async def enable_services(self) -> StepOutcome:
        enabled = await self._gcloud.list_enabled_services()
        missing = [s for s in self.REQUIRED_SERVICES if s not in enabled]
        if not missing:
            return StepOutcome.unchanged("enable_services")

        logger.info("Enabling services: %s", ", ".join(missing))
        await self._gcloud.enable_services(missing)
        return StepOutcome.applied("enable_services", ", ".join(missing))

    async def ensure_node_service_account(self) -> StepOutcome:
        account = ServiceAccountResource(
            self._gcloud,
            account_id=self._config.node_service_account_id,
            project_id=self._config.project_id,
        )
        if not await ensure_exists(account):
            return StepOutcome.unchanged("ensure_node_service_account", account.name)

        # Newly created accounts take a while to show up to describe calls.
        await self._sleep(self._retry.post_create_delay_seconds)
        await wait_until_visible(
            account.exists,
            description=f"service account {account.name}",
            config=self._retry,
            sleep=self._sleep,
        )
        return StepOutcome.created("ensure_node_service_account", account.name)

    async def bind_node_roles(self) -> StepOutcome:
        member = f"serviceAccount:{self._config.node_service_account_email}"
        granted = await self._gcloud.list_member_roles(self._config.project_id, member)
        missing = [role for role in self.NODE_ROLES if role not in granted]
        if not missing:
            return StepOutcome.unchanged("bind_node_roles")

        for role in missing:
            logger.info("Granting %s to %s", role, member)
            await self._gcloud.add_iam_binding(self._config.project_id, member=member, role=role)
        return StepOutcome.applied("bind_node_roles", ", ".join(missing))

    async def ensure_cluster(self) -> StepOutcome:
        cluster = ClusterResource(
            self._gcloud,
            cluster_name=self._config.cluster_name,
            zone=self._config.zone,
            node_count=self._config.node_count,
            machine_type=self._config.machine_type,
            service_account=self._config.node_service_account_email,
        )
        if await ensure_exists(cluster):
            return StepOutcome.created("ensure_cluster", cluster.name)
        return StepOutcome.unchanged("ensure_cluster", cluster.name)

    async def fetch_cluster_credentials(self) -> StepOutcome:
        if not self._gcloud.auth_plugin_installed():
            await self._gcloud.install_auth_plugin()

        await self._gcloud.get_cluster_credentials(
            self._config.cluster_name, zone=self._config.zone, project_id=self._config.project_id
        )
        return StepOutcome.applied("fetch_cluster_credentials", self._config.cluster_name)

    async def setup_foundation(self, *, show_progress: bool = True) -> PipelineReport:
        """Public entry point: converge the project and cluster."""

        return await self.pipeline(show_progress=show_progress).run()
