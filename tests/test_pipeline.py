import unittest

from tomdeploy.models.outcome import StepOutcome, StepStatus
from tomdeploy.services.setup.pipeline import ConvergencePipeline, PipelineStepError


class TestConvergencePipeline(unittest.IsolatedAsyncioTestCase):
    async def test_runs_steps_in_order(self) -> None:
        order: list[str] = []

        def step(name: str, status: StepStatus):
            async def _run() -> StepOutcome:
                order.append(name)
                return StepOutcome(step=name, status=status)

            return _run

        pipeline = ConvergencePipeline(
            "demo",
            [("a", step("a", StepStatus.CREATED)), ("b", step("b", StepStatus.UNCHANGED))],
            show_progress=False,
        )

        report = await pipeline.run()

        self.assertEqual(order, ["a", "b"])
        self.assertEqual(report.created, ["a"])
        self.assertEqual(report.unchanged, ["b"])
        self.assertEqual(report.summary(), "created=1, unchanged=1, applied=0")

    async def test_stops_at_first_failure(self) -> None:
        ran: list[str] = []

        async def ok() -> StepOutcome:
            ran.append("ok")
            return StepOutcome.applied("ok")

        async def boom() -> StepOutcome:
            raise RuntimeError("quota exceeded")

        async def never() -> StepOutcome:
            ran.append("never")
            return StepOutcome.applied("never")

        pipeline = ConvergencePipeline("demo", [("ok", ok), ("boom", boom), ("never", never)], show_progress=False)

        with self.assertRaises(PipelineStepError) as ctx:
            await pipeline.run()

        self.assertEqual(ran, ["ok"])
        self.assertEqual(ctx.exception.step, "boom")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertIn("quota exceeded", str(ctx.exception))
