import unittest

from tomdeploy.services.command_runner import CommandError
from tomdeploy.services.config import RetryConfig
from tomdeploy.services.setup.retry_prober import ResourceNotVisibleError, wait_until_visible

from tests.fakes import RecordingSleep


class _Probe:
    def __init__(self, answers: list[bool]) -> None:
        self._answers = list(answers)
        self.calls = 0

    async def __call__(self) -> bool:
        self.calls += 1
        return self._answers.pop(0)


class TestWaitUntilVisible(unittest.IsolatedAsyncioTestCase):
    async def test_returns_once_probe_finds_resource(self) -> None:
        probe = _Probe([False, False, True])
        sleep = RecordingSleep()

        await wait_until_visible(probe, description="service account", config=RetryConfig(), sleep=sleep)

        self.assertEqual(probe.calls, 3)
        self.assertEqual(sleep.delays, [60.0, 60.0])

    async def test_visible_immediately_does_not_sleep(self) -> None:
        sleep = RecordingSleep()

        await wait_until_visible(_Probe([True]), description="sa", config=RetryConfig(), sleep=sleep)

        self.assertEqual(sleep.delays, [])

    async def test_gives_up_after_configured_attempts(self) -> None:
        probe = _Probe([False] * 5)
        sleep = RecordingSleep()

        with self.assertRaises(ResourceNotVisibleError) as ctx:
            await wait_until_visible(probe, description="service account", config=RetryConfig(), sleep=sleep)

        self.assertEqual(probe.calls, 5)
        self.assertEqual(sleep.delays, [60.0] * 4)
        self.assertIn("service account", str(ctx.exception))

    async def test_probe_error_is_not_retried(self) -> None:
        sleep = RecordingSleep()

        async def broken() -> bool:
            raise CommandError("permission denied")

        with self.assertRaises(CommandError):
            await wait_until_visible(broken, description="sa", config=RetryConfig(), sleep=sleep)
        self.assertEqual(sleep.delays, [])

    async def test_custom_schedule(self) -> None:
        probe = _Probe([False, False])
        sleep = RecordingSleep()
        config = RetryConfig(attempts=2, interval_seconds=1.5)

        with self.assertRaises(ResourceNotVisibleError):
            await wait_until_visible(probe, description="sa", config=config, sleep=sleep)
        self.assertEqual(sleep.delays, [1.5])
