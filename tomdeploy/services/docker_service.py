from __future__ import annotations

from pathlib import Path

from tomdeploy.services.command_runner import CommandRunner


_MANIFEST_NOT_FOUND = ("no such manifest", "manifest unknown")


class DockerService:
    def __init__(self, runner: CommandRunner, *, executable: str = "docker") -> None:
        self._runner = runner
        self._docker = executable

    async def manifest_exists(self, image: str) -> bool:
        """Return True when the registry already serves a manifest for ``image``."""

        result = await self._runner.run([self._docker, "manifest", "inspect", image])
        return result.exists(_MANIFEST_NOT_FOUND)

    async def build(self, image: str, *, context: Path) -> None:
        await self._runner.check([self._docker, "build", "-t", image, str(context)])

    async def push(self, image: str) -> None:
        await self._runner.check([self._docker, "push", image])
