from __future__ import annotations

import asyncio
import logging
import shlex
from dataclasses import dataclass
from typing import Optional, Sequence


logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        args: Sequence[str] = (),
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.argv = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


@dataclass(frozen=True)
class CommandResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return f"{self.stdout}\n{self.stderr}"

    def _error(self) -> CommandError:
        details = self.stderr.strip() or self.stdout.strip()
        return CommandError(
            f"Command failed (exit {self.returncode}): {shlex.join(self.args)} {details}".strip(),
            args=self.args,
            returncode=self.returncode,
            stdout=self.stdout,
            stderr=self.stderr,
        )

    def raise_for_returncode(self) -> "CommandResult":
        if not self.ok:
            raise self._error()
        return self

    def exists(self, not_found_markers: Sequence[str]) -> bool:
        """Interpret this result as an existence probe.

        Success means found. A failure whose output contains one of
        ``not_found_markers`` (case-insensitive) means absent. Any other
        failure (auth, network, quota) raises ``CommandError``.
        """

        if self.ok:
            return True
        haystack = self.output.lower()
        if any(marker.lower() in haystack for marker in not_found_markers):
            return False
        raise self._error()


class CommandRunner:
    """Runs collaborator CLIs (gcloud, helm, kubectl, docker) one at a time.

    ``run`` never raises on a non-zero exit; callers decide whether a failure
    means "not found" or is fatal. ``check`` raises ``CommandError`` instead.
    A missing executable or an expired timeout always raises.
    """

    def __init__(self, *, timeout_seconds: Optional[float] = None) -> None:
        self._timeout_seconds = timeout_seconds

    async def run(self, args: Sequence[str], *, timeout_seconds: Optional[float] = None) -> CommandResult:
        argv = tuple(args)
        logger.info("+ %s", shlex.join(argv))

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandError(f"Unable to start command: {argv[0]}", args=argv) from exc

        timeout = timeout_seconds if timeout_seconds is not None else self._timeout_seconds
        try:
            stdout_raw, stderr_raw = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise CommandError(f"Command timed out after {timeout}s: {shlex.join(argv)}", args=argv) from exc

        result = CommandResult(
            args=argv,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=(stdout_raw or b"").decode("utf-8", errors="replace"),
            stderr=(stderr_raw or b"").decode("utf-8", errors="replace"),
        )

        if result.stdout.strip():
            logger.debug("stdout: %s", result.stdout.strip())
        if result.stderr.strip():
            logger.debug("stderr: %s", result.stderr.strip())

        return result

    async def check(self, args: Sequence[str], *, timeout_seconds: Optional[float] = None) -> CommandResult:
        result = await self.run(args, timeout_seconds=timeout_seconds)
        return result.raise_for_returncode()
