from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class StepStatus(str, Enum):
    CREATED = "created"
    UNCHANGED = "unchanged"
    APPLIED = "applied"


class StepOutcome(BaseModel):
    step: str = Field(..., description="Convergence step name")
    status: StepStatus
    detail: Optional[str] = None

    @staticmethod
    def created(step: str, detail: Optional[str] = None) -> "StepOutcome":
        return StepOutcome(step=step, status=StepStatus.CREATED, detail=detail)

    @staticmethod
    def unchanged(step: str, detail: Optional[str] = None) -> "StepOutcome":
        return StepOutcome(step=step, status=StepStatus.UNCHANGED, detail=detail)

    @staticmethod
    def applied(step: str, detail: Optional[str] = None) -> "StepOutcome":
        return StepOutcome(step=step, status=StepStatus.APPLIED, detail=detail)


class PipelineReport(BaseModel):
    pipeline: str
    steps: list[StepOutcome] = Field(default_factory=list)

    @property
    def created(self) -> list[str]:
        return [o.step for o in self.steps if o.status == StepStatus.CREATED]

    @property
    def unchanged(self) -> list[str]:
        return [o.step for o in self.steps if o.status == StepStatus.UNCHANGED]

    def summary(self) -> str:
        counts = {status: 0 for status in StepStatus}
        for outcome in self.steps:
            counts[outcome.status] += 1
        return ", ".join(f"{status.value}={count}" for status, count in counts.items())
