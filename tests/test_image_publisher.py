import unittest
from pathlib import Path

from tomdeploy.services.command_runner import CommandError
from tomdeploy.services.setup.image_publisher import ImagePublishGate

from tests.fakes import FakeDocker

IMAGE = "us-central1-docker.pkg.dev/tom-demo-project/tom-demo-repo/tom-demo-image:dev"


class TestImagePublishGate(unittest.IsolatedAsyncioTestCase):
    async def test_missing_tag_is_built_and_pushed(self) -> None:
        docker = FakeDocker()

        published = await ImagePublishGate(docker).publish(IMAGE, context=Path("."))

        self.assertTrue(published)
        self.assertEqual(docker.mutations, ["build", "push"])
        self.assertIn(IMAGE, docker.manifests)

    async def test_published_tag_is_not_rebuilt(self) -> None:
        docker = FakeDocker()
        docker.manifests.add(IMAGE)

        published = await ImagePublishGate(docker).publish(IMAGE, context=Path("."))

        self.assertFalse(published)
        self.assertEqual(docker.mutations, [])

    async def test_failed_push_is_retried_on_next_run(self) -> None:
        docker = FakeDocker()
        docker.fail_on["push"] = CommandError("denied: permission")
        gate = ImagePublishGate(docker)

        with self.assertRaises(CommandError):
            await gate.publish(IMAGE, context=Path("."))

        del docker.fail_on["push"]
        self.assertTrue(await gate.publish(IMAGE, context=Path(".")))
        self.assertEqual(len(docker.called("build")), 2)

    async def test_manifest_probe_error_propagates(self) -> None:
        docker = FakeDocker()
        docker.fail_on["manifest_exists"] = CommandError("unauthorized")

        with self.assertRaises(CommandError):
            await ImagePublishGate(docker).publish(IMAGE, context=Path("."))
        self.assertEqual(docker.mutations, [])
