from __future__ import annotations

import logging
from typing import Awaitable, Callable

from tqdm import tqdm

from tomdeploy.models.outcome import PipelineReport, StepOutcome
from tomdeploy.services.setup.existence_guard import ProvisioningError


logger = logging.getLogger(__name__)


class PipelineStepError(ProvisioningError):
    def __init__(self, pipeline: str, step: str, cause: BaseException) -> None:
        super().__init__(f"{pipeline} pipeline failed at step '{step}': {cause}")
        self.pipeline = pipeline
        self.step = step


Step = Callable[[], Awaitable[StepOutcome]]


class ConvergencePipeline:
    """Runs convergence steps strictly in order and stops at the first failure.

    Steps already completed are left in place; because every step is
    idempotent, rerunning the pipeline from the start picks up where the failed
    run stopped.
    """

    def __init__(self, name: str, steps: list[tuple[str, Step]], *, show_progress: bool = True) -> None:
        self.name = name
        self._steps = steps
        self._show_progress = show_progress

    @property
    def step_names(self) -> list[str]:
        return [name for name, _ in self._steps]

    async def run(self) -> PipelineReport:
        report = PipelineReport(pipeline=self.name)
        logger.info("%s pipeline: %d steps", self.name, len(self._steps))

        for step_name, step in tqdm(
            self._steps,
            desc=f"{self.name} pipeline",
            unit="step",
            disable=not self._show_progress,
        ):
            logger.info("[%s] %s", self.name, step_name)
            try:
                outcome = await step()
            except Exception as exc:
                logger.error("[%s] step %s failed: %s", self.name, step_name, exc)
                raise PipelineStepError(self.name, step_name, exc) from exc
            report.steps.append(outcome)

        logger.info("%s pipeline converged: %s", self.name, report.summary())
        return report
