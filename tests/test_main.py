import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from tomdeploy.main import app
from tomdeploy.models.outcome import PipelineReport, StepOutcome
from tomdeploy.services.setup.pipeline import PipelineStepError

_ENV = {"TOM_HOSTNAME": "tom.example.org", "CERTMANAGER_EMAIL": "ops@example.org"}


def _service(method: str, result=None, error=None) -> MagicMock:
    service = MagicMock()
    setattr(service, method, AsyncMock(return_value=result, side_effect=error))
    return service


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        # Keep a developer's local .env out of the tests.
        dotenv = patch("tomdeploy.main.load_dotenv")
        dotenv.start()
        self.addCleanup(dotenv.stop)

    def test_missing_hostname_exits_before_any_command(self) -> None:
        with patch.dict(os.environ, {"CERTMANAGER_EMAIL": "ops@example.org"}, clear=True), patch(
            "tomdeploy.main.get_foundation_setup_service"
        ) as foundation, patch("tomdeploy.main.get_command_runner") as runner:
            result = self.runner.invoke(app, ["up"])

        self.assertEqual(result.exit_code, 1)
        foundation.assert_not_called()
        runner.assert_not_called()

    def test_up_runs_both_pipelines_in_order(self) -> None:
        order: list[str] = []
        foundation = _service("setup_foundation", PipelineReport(pipeline="foundation"))
        deployment = _service("setup_deployment", PipelineReport(pipeline="deployment"))
        foundation.setup_foundation.side_effect = lambda: order.append("foundation") or PipelineReport(
            pipeline="foundation", steps=[StepOutcome.created("ensure_project")]
        )
        deployment.setup_deployment.side_effect = lambda: order.append("deployment") or PipelineReport(
            pipeline="deployment"
        )

        with patch.dict(os.environ, _ENV, clear=True), patch(
            "tomdeploy.main.get_foundation_setup_service", return_value=foundation
        ), patch("tomdeploy.main.get_deployment_setup_service", return_value=deployment):
            result = self.runner.invoke(app, ["up"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(order, ["foundation", "deployment"])

    def test_deploy_skips_foundation(self) -> None:
        deployment = _service("setup_deployment", PipelineReport(pipeline="deployment"))

        with patch.dict(os.environ, _ENV, clear=True), patch(
            "tomdeploy.main.get_foundation_setup_service"
        ) as foundation, patch("tomdeploy.main.get_deployment_setup_service", return_value=deployment):
            result = self.runner.invoke(app, ["deploy"])

        self.assertEqual(result.exit_code, 0, result.output)
        foundation.assert_not_called()
        deployment.setup_deployment.assert_awaited_once()

    def test_failed_step_exits_nonzero_and_stops(self) -> None:
        error = PipelineStepError("foundation", "link_billing", RuntimeError("no billing account"))
        foundation = _service("setup_foundation", error=error)

        with patch.dict(os.environ, _ENV, clear=True), patch(
            "tomdeploy.main.get_foundation_setup_service", return_value=foundation
        ), patch("tomdeploy.main.get_deployment_setup_service") as deployment:
            result = self.runner.invoke(app, ["up"])

        self.assertEqual(result.exit_code, 1)
        deployment.assert_not_called()


class TestDotenv(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.workdir = Path(tmp.name)
        cwd = os.getcwd()
        os.chdir(self.workdir)
        self.addCleanup(os.chdir, cwd)
        (self.workdir / ".env").write_text(
            "TOM_HOSTNAME=tom.from-dotenv.org\nCERTMANAGER_EMAIL=dotenv@example.org\n"
        )

    def _deploy(self, env: dict[str, str], args: list[str]) -> MagicMock:
        deployment = _service("setup_deployment", PipelineReport(pipeline="deployment"))
        with patch.dict(os.environ, env, clear=True), patch(
            "tomdeploy.main.get_deployment_setup_service", return_value=deployment
        ) as provider:
            result = self.runner.invoke(app, args)
        self.assertEqual(result.exit_code, 0, result.output)
        return provider

    def test_env_file_in_working_directory_is_loaded(self) -> None:
        provider = self._deploy({}, ["deploy"])

        config = provider.call_args.args[0]
        self.assertEqual(config.hostname, "tom.from-dotenv.org")
        self.assertEqual(config.contact_email, "dotenv@example.org")

    def test_real_environment_wins_over_env_file(self) -> None:
        provider = self._deploy({"TOM_HOSTNAME": "tom.example.org"}, ["deploy"])

        self.assertEqual(provider.call_args.args[0].hostname, "tom.example.org")

    def test_explicit_env_file(self) -> None:
        other = self.workdir / "staging.env"
        other.write_text("TOM_HOSTNAME=tom.staging.org\nCERTMANAGER_EMAIL=ops@example.org\n")

        provider = self._deploy({}, ["deploy", "--env-file", str(other)])

        self.assertEqual(provider.call_args.args[0].hostname, "tom.staging.org")
