import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import find_dotenv, load_dotenv

from tomdeploy.models.outcome import PipelineReport
from tomdeploy.services.config import ConfigurationError, DeployConfig, RetryConfig
from tomdeploy.services.dependencies import (
    get_command_runner,
    get_deployment_setup_service,
    get_foundation_setup_service,
)
from tomdeploy.services.setup.pipeline import PipelineStepError


logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Converge the TOM demo deployment on Google Cloud. Safe to rerun at any point.",
    no_args_is_help=True,
)


def _ensure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    else:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(formatter)


def _load_config(env_file: Optional[Path]) -> tuple[DeployConfig, RetryConfig]:
    # Real environment variables take precedence over the .env file, which is
    # looked up from the working directory rather than the installed package.
    if env_file is not None:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(find_dotenv(usecwd=True), override=False)

    try:
        return DeployConfig.from_env(), RetryConfig.from_env()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1) from exc


async def _converge(
    config: DeployConfig,
    retry: RetryConfig,
    *,
    foundation: bool,
    deployment: bool,
) -> list[PipelineReport]:
    runner = get_command_runner()
    reports: list[PipelineReport] = []
    if foundation:
        reports.append(await get_foundation_setup_service(config, retry, runner=runner).setup_foundation())
    if deployment:
        reports.append(await get_deployment_setup_service(config, runner=runner).setup_deployment())
    return reports


def _run(env_file: Optional[Path], verbose: bool, *, foundation: bool, deployment: bool) -> None:
    _ensure_logging(verbose)
    config, retry = _load_config(env_file)

    try:
        reports = asyncio.run(_converge(config, retry, foundation=foundation, deployment=deployment))
    except PipelineStepError as exc:
        logger.error("%s", exc)
        logger.error("Fix the problem above and rerun; completed steps will be skipped.")
        raise typer.Exit(code=1) from exc

    for report in reports:
        logger.info("%s: %s", report.pipeline, report.summary())


EnvFileOption = typer.Option(None, "--env-file", help="Load configuration overrides from this .env file.")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Log collaborator command output.")


@app.command()
def foundation(env_file: Optional[Path] = EnvFileOption, verbose: bool = VerboseOption) -> None:
    """Ensure the billed project, node service account and GKE cluster exist."""

    _run(env_file, verbose, foundation=True, deployment=False)


@app.command()
def deploy(env_file: Optional[Path] = EnvFileOption, verbose: bool = VerboseOption) -> None:
    """Ensure cert-manager, ingress, image and the application release on an existing cluster."""

    _run(env_file, verbose, foundation=False, deployment=True)


@app.command()
def up(env_file: Optional[Path] = EnvFileOption, verbose: bool = VerboseOption) -> None:
    """Run the foundation pipeline, then the deployment pipeline."""

    _run(env_file, verbose, foundation=True, deployment=True)


if __name__ == "__main__":
    app()
