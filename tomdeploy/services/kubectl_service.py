from __future__ import annotations

from tomdeploy.services.command_runner import CommandRunner


# Only server-side NotFound means absent; a missing local context is an error.
_NOT_FOUND = ("Error from server (NotFound)",)


class KubectlService:
    """Namespace and secret reads/creates against the current kubeconfig context."""

    def __init__(self, runner: CommandRunner, *, executable: str = "kubectl") -> None:
        self._runner = runner
        self._kubectl = executable

    async def namespace_exists(self, name: str) -> bool:
        result = await self._runner.run([self._kubectl, "get", "namespace", name])
        return result.exists(_NOT_FOUND)

    async def create_namespace(self, name: str) -> None:
        await self._runner.check([self._kubectl, "create", "namespace", name])

    async def secret_exists(self, name: str, *, namespace: str) -> bool:
        result = await self._runner.run([self._kubectl, "--namespace", namespace, "get", "secret", name])
        return result.exists(_NOT_FOUND)

    async def create_generic_secret(self, name: str, *, namespace: str, literals: dict[str, str]) -> None:
        args = [self._kubectl, "--namespace", namespace, "create", "secret", "generic", name]
        args.extend(f"--from-literal={key}={value}" for key, value in literals.items())
        await self._runner.check(args)
