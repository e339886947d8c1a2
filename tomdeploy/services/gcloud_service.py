from __future__ import annotations

import shutil
from typing import Optional

from tomdeploy.services.command_runner import CommandError, CommandResult, CommandRunner

# gcloud reports a project you cannot see as PERMISSION_DENIED ("... or it may
# not exist"), so that phrase counts as absence for projects only.
_PROJECT_NOT_FOUND = ("NOT_FOUND", "may not exist")
_NOT_FOUND = ("NOT_FOUND", "was not found", "does not exist")
# The container API reports a missing cluster as "ResponseError: code=404,
# message=Not found: projects/.../clusters/<name>."
_CLUSTER_NOT_FOUND = ("NOT_FOUND", "Not found:", "code=404")

AUTH_PLUGIN_COMPONENT = "gke-gcloud-auth-plugin"


class GcloudService:
    """Thin command surface over the `gcloud` CLI.

    ``*_exists`` probes return True/False and raise ``CommandError`` for any
    failure that is not a recognized "not found" response. Mutating calls raise
    ``CommandError`` on any failure.
    """

    def __init__(self, runner: CommandRunner, *, executable: str = "gcloud") -> None:
        self._runner = runner
        self._gcloud = executable

    async def _run(self, *args: str) -> CommandResult:
        return await self._runner.run([self._gcloud, *args])

    async def _check(self, *args: str) -> str:
        result = await self._runner.check([self._gcloud, *args])
        return result.stdout.strip()

    # -----------------
    # Project / billing
    # -----------------

    async def project_exists(self, project_id: str) -> bool:
        result = await self._run("projects", "describe", project_id)
        return result.exists(_PROJECT_NOT_FOUND)

    async def create_project(self, project_id: str, *, display_name: str) -> None:
        await self._check("projects", "create", project_id, f"--name={display_name}")

    async def get_active_project(self) -> Optional[str]:
        value = await self._check("config", "get-value", "project")
        return value or None

    async def set_active_project(self, project_id: str) -> None:
        await self._check("config", "set", "project", project_id)

    async def get_billing_account(self, project_id: str) -> str:
        """Return the billing account name linked to the project, or "" when unlinked."""

        return await self._check(
            "billing", "projects", "describe", project_id, "--format=value(billingAccountName)"
        )

    async def list_billing_accounts(self) -> list[str]:
        output = await self._check("billing", "accounts", "list", "--format=value(ACCOUNT_ID)")
        return output.split()

    async def link_billing_account(self, project_id: str, account_id: str) -> None:
        await self._check("billing", "projects", "link", project_id, f"--billing-account={account_id}")

    async def list_enabled_services(self) -> set[str]:
        output = await self._check("services", "list", "--enabled", "--format=value(config.name)")
        return set(output.split())

    async def enable_services(self, services: list[str]) -> None:
        await self._check("services", "enable", *services)

    # -----------------
    # IAM
    # -----------------

    async def service_account_exists(self, email: str) -> bool:
        result = await self._run("iam", "service-accounts", "describe", email)
        return result.exists(_NOT_FOUND)

    async def create_service_account(self, account_id: str) -> None:
        await self._check("iam", "service-accounts", "create", account_id)

    async def list_member_roles(self, project_id: str, member: str) -> set[str]:
        output = await self._check(
            "projects",
            "get-iam-policy",
            project_id,
            "--flatten=bindings[].members",
            f"--filter=bindings.members:{member}",
            "--format=value(bindings.role)",
        )
        return set(output.split())

    async def add_iam_binding(self, project_id: str, *, member: str, role: str) -> None:
        await self._check(
            "projects", "add-iam-policy-binding", project_id, f"--member={member}", f"--role={role}"
        )

    # -----------------
    # Kubernetes Engine
    # -----------------

    async def cluster_exists(self, name: str, *, zone: str) -> bool:
        result = await self._run("container", "clusters", "describe", name, "--zone", zone)
        return result.exists(_CLUSTER_NOT_FOUND)

    async def create_cluster(
        self,
        name: str,
        *,
        zone: str,
        node_count: int,
        machine_type: str,
        service_account: str,
    ) -> None:
        await self._check(
            "container",
            "clusters",
            "create",
            name,
            "--zone",
            zone,
            f"--num-nodes={node_count}",
            f"--service-account={service_account}",
            f"--machine-type={machine_type}",
            "--enable-ip-alias",
        )

    def auth_plugin_installed(self) -> bool:
        return shutil.which(AUTH_PLUGIN_COMPONENT) is not None

    async def install_auth_plugin(self) -> None:
        await self._check("components", "install", AUTH_PLUGIN_COMPONENT, "--quiet")

    async def get_cluster_credentials(self, name: str, *, zone: str, project_id: str) -> None:
        await self._check("container", "clusters", "get-credentials", name, "--zone", zone, "--project", project_id)

    # -----------------
    # Artifact Registry
    # -----------------

    async def configure_docker(self, registry_host: str) -> None:
        await self._check("auth", "configure-docker", registry_host, "--quiet")

    async def repository_exists(self, name: str, *, location: str) -> bool:
        result = await self._run("artifacts", "repositories", "describe", name, "--location", location)
        return result.exists(_NOT_FOUND)

    async def create_repository(self, name: str, *, location: str, description: str) -> None:
        await self._check(
            "artifacts",
            "repositories",
            "create",
            name,
            "--repository-format=docker",
            "--location",
            location,
            "--description",
            description,
        )

    # -----------------
    # Compute addresses
    # -----------------

    async def address_exists(self, name: str, *, region: str) -> bool:
        result = await self._run("compute", "addresses", "describe", name, "--region", region)
        return result.exists(_NOT_FOUND)

    async def create_address(self, name: str, *, region: str) -> None:
        await self._check("compute", "addresses", "create", name, "--region", region)

    async def get_address_ip(self, name: str, *, region: str) -> str:
        address = await self._check(
            "compute", "addresses", "describe", name, "--region", region, "--format=get(address)"
        )
        if not address:
            raise CommandError(f"Static address {name} in {region} has no IP allocated")
        return address
