from __future__ import annotations

from tomdeploy.services.command_runner import CommandRunner
from tomdeploy.services.config import DeployConfig, RetryConfig
from tomdeploy.services.docker_service import DockerService
from tomdeploy.services.gcloud_service import GcloudService
from tomdeploy.services.helm_service import HelmService
from tomdeploy.services.kubectl_service import KubectlService
from tomdeploy.services.setup.deployment_setup_service import DeploymentSetupService
from tomdeploy.services.setup.foundation_setup_service import FoundationSetupService


def get_command_runner() -> CommandRunner:
    return CommandRunner()


def get_foundation_setup_service(
    config: DeployConfig,
    retry: RetryConfig,
    *,
    runner: CommandRunner | None = None,
) -> FoundationSetupService:
    """Provider for the project/cluster pipeline."""

    runner = runner or get_command_runner()
    return FoundationSetupService(gcloud=GcloudService(runner), config=config, retry=retry)


def get_deployment_setup_service(
    config: DeployConfig,
    *,
    runner: CommandRunner | None = None,
) -> DeploymentSetupService:
    """Provider for the add-ons/image/release pipeline."""

    runner = runner or get_command_runner()
    return DeploymentSetupService(
        gcloud=GcloudService(runner),
        helm=HelmService(runner),
        kubectl=KubectlService(runner),
        docker=DockerService(runner),
        config=config,
    )
