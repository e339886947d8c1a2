from __future__ import annotations

import logging
from typing import Optional

from tomdeploy.models.helm import HelmRepository, ReleaseSpec
from tomdeploy.models.outcome import PipelineReport, StepOutcome
from tomdeploy.services.config import DeployConfig
from tomdeploy.services.docker_service import DockerService
from tomdeploy.services.gcloud_service import GcloudService
from tomdeploy.services.helm_service import HelmService
from tomdeploy.services.kubectl_service import KubectlService
from tomdeploy.services.setup.existence_guard import GuardedResource, ensure_exists
from tomdeploy.services.setup.image_publisher import ImagePublishGate
from tomdeploy.services.setup.pipeline import ConvergencePipeline
from tomdeploy.services.setup.resources import (
    ArtifactRepositoryResource,
    ChartRepositoryResource,
    NamespaceResource,
    SecretPlaceholderResource,
    StaticAddressResource,
)


logger = logging.getLogger(__name__)


class DeploymentSetupService:
    """Provisioning for everything that runs on the cluster.

    Requires the kubectl context produced by the foundation pipeline. Installs
    cert-manager and ingress-nginx, publishes the application image, reserves
    the ingress IP, and finally installs or upgrades the application release.
    """

    CHART_REPOSITORIES: tuple[HelmRepository, ...] = (
        HelmRepository(name="bitnami", url="https://charts.bitnami.com/bitnami"),
        HelmRepository(name="ingress-nginx", url="https://kubernetes.github.io/ingress-nginx"),
        HelmRepository(name="jetstack", url="https://charts.jetstack.io"),
    )
    CERT_MANAGER_NAMESPACE = "cert-manager"

    def __init__(
        self,
        *,
        gcloud: GcloudService,
        helm: HelmService,
        kubectl: KubectlService,
        docker: DockerService,
        config: DeployConfig,
    ) -> None:
        self._gcloud = gcloud
        self._helm = helm
        self._kubectl = kubectl
        self._docker = docker
        self._config = config
        self._static_ip: Optional[str] = None

    def pipeline(self, *, show_progress: bool = True) -> ConvergencePipeline:
        return ConvergencePipeline(
            "deployment",
            [
                ("register_chart_repositories", self.register_chart_repositories),
                ("refresh_chart_repositories", self.refresh_chart_repositories),
                ("ensure_cert_manager_namespace", self.ensure_cert_manager_namespace),
                ("install_cert_manager", self.install_cert_manager),
                ("configure_registry_auth", self.configure_registry_auth),
                ("ensure_image_repository", self.ensure_image_repository),
                ("publish_image", self.publish_image),
                ("ensure_static_address", self.ensure_static_address),
                ("install_ingress_controller", self.install_ingress_controller),
                ("ensure_app_namespace", self.ensure_app_namespace),
                ("build_chart_dependencies", self.build_chart_dependencies),
                ("ensure_secret_placeholder", self.ensure_secret_placeholder),
                ("install_release", self.install_release),
            ],
            show_progress=show_progress,
        )

    async def setup_deployment(self, *, show_progress: bool = True) -> PipelineReport:
        """Public entry point: converge cluster add-ons, image, and release."""

        return await self.pipeline(show_progress=show_progress).run()

    # -----------------
    # Steps
    # -----------------

    async def register_chart_repositories(self) -> StepOutcome:
        added = []
        for repository in self.CHART_REPOSITORIES:
            if await ensure_exists(ChartRepositoryResource(self._helm, repository)):
                added.append(repository.name)

        if added:
            return StepOutcome.created("register_chart_repositories", ", ".join(added))
        return StepOutcome.unchanged("register_chart_repositories")

    async def refresh_chart_repositories(self) -> StepOutcome:
        await self._helm.update_repositories()
        return StepOutcome.applied("refresh_chart_repositories")

    async def ensure_cert_manager_namespace(self) -> StepOutcome:
        return await self._ensure(
            "ensure_cert_manager_namespace",
            NamespaceResource(self._kubectl, namespace=self.CERT_MANAGER_NAMESPACE),
        )

    async def install_cert_manager(self) -> StepOutcome:
        release = ReleaseSpec(
            name="cert-manager",
            chart="jetstack/cert-manager",
            namespace=self.CERT_MANAGER_NAMESPACE,
            set_values={"crds.enabled": "true"},
        )
        await self._helm.upgrade_install(release)
        return StepOutcome.applied("install_cert_manager", release.name)

    async def configure_registry_auth(self) -> StepOutcome:
        await self._gcloud.configure_docker(self._config.registry_host)
        return StepOutcome.applied("configure_registry_auth", self._config.registry_host)

    async def ensure_image_repository(self) -> StepOutcome:
        return await self._ensure(
            "ensure_image_repository",
            ArtifactRepositoryResource(
                self._gcloud,
                repository=self._config.image_repo,
                location=self._config.location,
                description="Tom images",
            ),
        )

    async def publish_image(self) -> StepOutcome:
        gate = ImagePublishGate(self._docker)
        if await gate.publish(self._config.image, context=self._config.build_context):
            return StepOutcome.created("publish_image", self._config.image)
        return StepOutcome.unchanged("publish_image", self._config.image)

    async def ensure_static_address(self) -> StepOutcome:
        outcome = await self._ensure(
            "ensure_static_address",
            StaticAddressResource(
                self._gcloud,
                address_name=self._config.static_ip_name,
                region=self._config.location,
            ),
        )
        self._static_ip = await self._gcloud.get_address_ip(
            self._config.static_ip_name, region=self._config.location
        )
        logger.info("Static external IP: %s", self._static_ip)
        return outcome.model_copy(update={"detail": self._static_ip})

    async def install_ingress_controller(self) -> StepOutcome:
        if self._static_ip is None:
            self._static_ip = await self._gcloud.get_address_ip(
                self._config.static_ip_name, region=self._config.location
            )

        ingress_class = DeployConfig.INGRESS_CLASS
        release = ReleaseSpec(
            name="ingress-nginx",
            chart="ingress-nginx/ingress-nginx",
            namespace=self._config.ingress_namespace,
            create_namespace=True,
            set_values={
                "controller.ingressClassResource.name": ingress_class,
                "controller.ingressClass": ingress_class,
                "controller.service.type": "LoadBalancer",
                "controller.service.externalTrafficPolicy": "Local",
                "controller.service.loadBalancerIP": self._static_ip,
            },
        )
        await self._helm.upgrade_install(release)
        return StepOutcome.applied("install_ingress_controller", self._static_ip)

    async def ensure_app_namespace(self) -> StepOutcome:
        return await self._ensure(
            "ensure_app_namespace",
            NamespaceResource(self._kubectl, namespace=self._config.kubernetes_namespace),
        )

    async def build_chart_dependencies(self) -> StepOutcome:
        await self._helm.build_dependencies(self._config.chart_dir)
        return StepOutcome.applied("build_chart_dependencies", str(self._config.chart_dir))

    async def ensure_secret_placeholder(self) -> StepOutcome:
        return await self._ensure(
            "ensure_secret_placeholder",
            SecretPlaceholderResource(
                self._kubectl,
                namespace=self._config.kubernetes_namespace,
                secret_name=self._config.secret_name,
            ),
        )

    async def install_release(self) -> StepOutcome:
        release = self.application_release()
        await self._helm.upgrade_install(release)
        return StepOutcome.applied("install_release", f"{release.namespace}/{release.name}")

    # -----------------
    # Helpers
    # -----------------

    def application_release(self) -> ReleaseSpec:
        """The application release with its fixed value overrides."""

        cfg = self._config
        issuer = cfg.tls_issuer
        values_files = [cfg.values_file] if cfg.values_file is not None else []

        return ReleaseSpec(
            name=cfg.release_name,
            chart=str(cfg.chart_dir),
            namespace=cfg.kubernetes_namespace,
            create_namespace=True,
            values_files=values_files,
            set_values={
                "image.repository": cfg.image_full_name,
                "image.tag": cfg.image_tag,
                "ingress.tls[0].secretName": cfg.tls_secret_name,
                "ingress.hosts[0].host": cfg.hostname,
                "ingress.tls[0].hosts[0]": cfg.hostname,
                "csrf_trusted_origins[0]": f"https://{cfg.hostname}",
                "certManager.enabled": "true",
                "certManager.issuerKind": "ClusterIssuer",
                "certManager.issuerName": issuer.issuer_name,
                "certManager.email": cfg.contact_email,
                "certManager.acmeServer": issuer.acme_server,
                "certManager.http01.ingressClass": DeployConfig.INGRESS_CLASS,
            },
            set_string_values={
                r"ingress.annotations.nginx\.ingress\.kubernetes\.io/ssl-redirect": "true",
            },
        )

    @staticmethod
    async def _ensure(step: str, resource: GuardedResource) -> StepOutcome:
        if await ensure_exists(resource):
            return StepOutcome.created(step, resource.name)
        return StepOutcome.unchanged(step, resource.name)
