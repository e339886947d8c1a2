from __future__ import annotations

import json
import logging
from pathlib import Path

from tomdeploy.models.helm import HelmRepository, ReleaseSpec
from tomdeploy.services.command_runner import CommandError, CommandRunner


logger = logging.getLogger(__name__)

# `helm repo list` exits non-zero instead of printing [] when nothing is registered.
_NO_REPOSITORIES = "no repositories to show"


class HelmService:
    def __init__(self, runner: CommandRunner, *, executable: str = "helm") -> None:
        self._runner = runner
        self._helm = executable

    async def list_repositories(self) -> list[HelmRepository]:
        result = await self._runner.run([self._helm, "repo", "list", "--output", "json"])
        if not result.ok:
            if _NO_REPOSITORIES in result.output.lower():
                return []
            result.raise_for_returncode()

        try:
            entries = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as exc:
            raise CommandError("Unexpected `helm repo list` output; expected JSON") from exc

        return [HelmRepository.from_helm_entry(e) for e in entries if isinstance(e, dict)]

    async def add_repository(self, repository: HelmRepository) -> None:
        await self._runner.check([self._helm, "repo", "add", repository.name, repository.url])

    async def update_repositories(self) -> None:
        await self._runner.check([self._helm, "repo", "update"])

    async def build_dependencies(self, chart_dir: Path) -> None:
        await self._runner.check([self._helm, "dependency", "build", str(chart_dir)])

    @staticmethod
    def upgrade_install_args(release: ReleaseSpec) -> list[str]:
        args = ["upgrade", "--install", release.name, release.chart, "--namespace", release.namespace]
        if release.create_namespace:
            args.append("--create-namespace")
        for values_file in release.values_files:
            args.extend(["--values", str(values_file)])
        for key, value in release.set_values.items():
            args.extend(["--set", f"{key}={value}"])
        for key, value in release.set_string_values.items():
            args.extend(["--set-string", f"{key}={value}"])
        if release.wait:
            args.append("--wait")
        if release.timeout:
            args.extend(["--timeout", release.timeout])
        return args

    async def upgrade_install(self, release: ReleaseSpec) -> None:
        """Install the release, or upgrade it in place when it already exists.

        With ``release.wait`` this blocks until helm reports the release's
        workloads ready.
        """

        logger.info("Converging helm release %s in namespace %s", release.name, release.namespace)
        await self._runner.check([self._helm, *self.upgrade_install_args(release)])
