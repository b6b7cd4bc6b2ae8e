"""CLI entry point for the conformance runner."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pydantic
import typer
import yaml
from aiohttp import web

from footprint.conformance_runner.config import Settings
from footprint.conformance_runner.errors import ConformanceError
from footprint.conformance_runner.models.run_config import TestRunParams
from footprint.conformance_runner.models.test_result import (
    TestCaseStatus,
    TestRunStatus,
    TestRunWithResults,
)
from footprint.conformance_runner.orchestrator import (
    TestRunOrchestrator,
    backfill_run_statuses,
)
from footprint.conformance_runner.server import create_app, result_to_json
from footprint.conformance_runner.storage import create_store

logger = logging.getLogger(__name__)

app = typer.Typer()


def configure_logging(level: str) -> None:
    """Send log records to stderr, replacing any earlier configuration."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


@app.callback()
def main() -> None:
    """Conformance test runner for the footprint exchange API."""
    configure_logging(Settings.from_env().log_level)


def load_run_config(path: Path) -> dict[str, Any]:
    """Load run parameters from a YAML file.

    Raises:
        ValueError: If the file is not a YAML mapping

    """
    with path.open() as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid run configuration in {path}: expected a mapping")
    return data


async def _execute_run(
    params: TestRunParams, settings: Settings
) -> TestRunWithResults:
    store = create_store(settings)
    await store.initialize()
    try:
        orchestrator = TestRunOrchestrator(store, settings)
        return await orchestrator.start_test_run(params)
    finally:
        await store.close()


@app.command()
def run(  # noqa: PLR0913
    config: Path | None = typer.Option(  # noqa: B008
        None, help="YAML file with run parameters", exists=True, dir_okay=False
    ),
    base_url: str | None = typer.Option(None, help="Base URL of the tested API"),
    client_id: str | None = typer.Option(None, help="OAuth client id"),
    client_secret: str | None = typer.Option(None, help="OAuth client secret"),
    version: str | None = typer.Option(None, help="API version, e.g. V2.3"),
    organization_name: str | None = typer.Option(None, help="Tested organization"),
    admin_email: str | None = typer.Option(None, help="Contact e-mail"),
    admin_name: str | None = typer.Option(None, help="Contact name"),
    custom_auth_base_url: str | None = typer.Option(
        None, help="Auth server base URL when not the API host"
    ),
    scope: str | None = typer.Option(None, help="OAuth scope"),
    audience: str | None = typer.Option(None, help="OAuth audience"),
    resource: str | None = typer.Option(None, help="OAuth resource"),
) -> None:
    """Run the conformance suite against a target implementation."""
    settings = Settings.from_env()

    try:
        values = load_run_config(config) if config else {}
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Failed to load run configuration: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    overrides = {
        "base_url": base_url,
        "client_id": client_id,
        "client_secret": client_secret,
        "version": version,
        "organization_name": organization_name,
        "admin_email": admin_email,
        "admin_name": admin_name,
        "custom_auth_base_url": custom_auth_base_url,
        "scope": scope,
        "audience": audience,
        "resource": resource,
    }
    values.update({key: value for key, value in overrides.items() if value})

    try:
        params = TestRunParams.model_validate(values)
    except pydantic.ValidationError as e:
        logger.error(f"Invalid run parameters: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    logger.info("=" * 80)
    logger.info("Conformance Runner - Starting")
    logger.info("=" * 80)
    logger.info(f"Target: {params.base_url}")
    logger.info(f"Version: {params.version.value}")

    try:
        result = asyncio.run(_execute_run(params, settings))
    except ConformanceError as e:
        logger.error(f"Invalid test run: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        logger.exception("Test run failed")
        typer.echo(f"Error running tests: {e}", err=True)
        raise typer.Exit(code=1)

    logger.info("=" * 80)
    logger.info("Test Results Summary:")
    logger.info("=" * 80)
    for case in result.results:
        flag = "mandatory" if case.mandatory else "optional"
        if case.status == TestCaseStatus.SUCCESS:
            logger.info(f"✓ {case.name} ({flag})")
        elif case.status == TestCaseStatus.PENDING:
            logger.warning(f"… {case.name} ({flag}): awaiting callback")
        else:
            logger.error(f"✗ {case.name} ({flag}): {case.error_message}")

    output = {
        "testRunId": result.test_run_id,
        "status": result.status.value if result.status else None,
        "passingPercentage": result.passing_percentage,
        "results": [result_to_json(case) for case in result.results],
    }
    typer.echo(json.dumps(output, indent=2))

    if result.status != TestRunStatus.PASS:
        logger.error(
            f"Test run failed with {result.passing_percentage}% mandatory passing"
        )
        raise typer.Exit(code=1)


@app.command()
def serve(
    port: int | None = typer.Option(None, help="Port to listen on"),
) -> None:
    """Serve the webhook listener and the test run API."""
    settings = Settings.from_env()
    store = create_store(settings)
    listen_port = port or settings.port
    logger.info(f"API Server is running on port {listen_port}")
    web.run_app(create_app(store, settings), port=listen_port, print=None)


async def _execute_backfill(settings: Settings) -> int:
    store = create_store(settings)
    await store.initialize()
    try:
        return await backfill_run_statuses(store)
    finally:
        await store.close()


@app.command()
def backfill() -> None:
    """Recompute the status of stored runs that have none."""
    settings = Settings.from_env()
    try:
        updated = asyncio.run(_execute_backfill(settings))
    except Exception as e:
        logger.exception("Backfill failed")
        typer.echo(f"Error running backfill: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps({"updated": updated}))


if __name__ == "__main__":  # pragma: no cover
    app()
