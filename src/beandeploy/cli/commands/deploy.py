"""CLI commands for deploying artifacts to platform environments.

Implements 'beandeploy deploy', 'upload', 'version', 'clean', 'terminate' and
'info'. Every command resolves the project configuration and credentials
before making any remote call.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

import click

from beandeploy.config.loader import ConfigLoader
from beandeploy.deploy.orchestrator import DeploymentOrchestrator
from beandeploy.lib.errors import ConfigError, DeploymentError, FileNotFoundError
from beandeploy.lib.logging_config import get_logger, setup_logging
from beandeploy.lib.polling import dot_progress
from beandeploy.models.environment import DeployAction, RuntimeEnvironment

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@contextmanager
def handle_deployment_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in deployment commands.

    Exit codes:
        2: Configuration error (including missing files and credentials)
        3: Deployment/transport error
        130: Interrupted while waiting or at a prompt
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        click.secho(f"Error: File not found: {e.path}", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except (KeyboardInterrupt, click.Abort):
        click.echo(err=True)
        click.secho("Interrupted", fg="yellow", err=True)
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def common_options(func: F) -> F:
    """Attach --config, --verbose and --quiet to a command."""
    func = click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Suppress progress output",
    )(func)
    func = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        help="Enable verbose debug logging",
    )(func)
    func = click.option(
        "--config",
        "-c",
        "config_path",
        type=click.Path(exists=True),
        default=None,
        help="Project configuration file or directory (default: current dir)",
    )(func)
    return func


def _build_orchestrator(config_path: str | None, quiet: bool) -> DeploymentOrchestrator:
    config = ConfigLoader().load_project(config_path)
    return DeploymentOrchestrator.from_config(
        config,
        progress=None if quiet else dot_progress,
        echo=None if quiet else click.echo,
    )


def _setup(verbose: bool, quiet: bool) -> None:
    setup_logging(verbose=verbose, quiet=quiet)


@click.command(name="deploy")
@click.argument("environment")
@click.option(
    "--artifact",
    "-a",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="Path to the built artifact (e.g. target/app.war)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be done without executing",
)
@common_options
def deploy(
    environment: str,
    artifact: str,
    dry_run: bool,
    config_path: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Upload ARTIFACT, register it and deploy it to ENVIRONMENT.

    Updates ENVIRONMENT if it is running, otherwise creates it.

    Example:

        beandeploy deploy hello-dev --artifact target/hello.war
    """
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)
        config = orchestrator.config
        spec = config.environment(environment)

        if not quiet:
            click.echo()
            click.secho("Deploy Configuration:", bold=True)
            click.echo(f"  Application: {config.app_name}")
            click.echo(f"  Environment: {spec.name}")
            click.echo(f"  Version:     {orchestrator.version_label}")
            click.echo(f"  Artifact:    {artifact}")
            object_uri = f"s3://{config.bucket}/{orchestrator.artifact_key}"
            click.echo(f"  Object:      {object_uri}")
            click.echo()

        if dry_run:
            click.secho("[DRY RUN] Would upload, register and deploy", fg="yellow")
            for setting in spec.flat_option_settings():
                click.echo(
                    f"  {setting.namespace} {setting.option_name}={setting.value}"
                )
            click.secho("[DRY RUN] No remote calls were made", fg="yellow")
            sys.exit(0)

        orchestrator.upload_artifact(artifact)
        if not quiet:
            click.echo(f"Uploaded {Path(artifact).name} to bucket {config.bucket}")

        orchestrator.create_version()
        if not quiet:
            click.echo(f"Created version {orchestrator.version_label}")

        outcome = orchestrator.deploy_environment(environment)

        if quiet:
            click.echo(orchestrator.version_label)
            sys.exit(0)

        click.echo()
        verb = "created" if outcome.action == DeployAction.CREATED else "updated"
        click.secho(f"Environment {verb}!", fg="green", bold=True)
        click.echo(f"  Environment: {outcome.environment_name}")
        click.echo(f"  Version:     {outcome.version_label}")
        if outcome.environment and outcome.environment.cname:
            click.echo(f"  URL:         http://{outcome.environment.cname}")
        if outcome.action == DeployAction.CREATED:
            click.echo(
                f"  Check progress with: beandeploy info {outcome.environment_name}"
            )
        click.echo()


@click.command(name="upload")
@click.argument("artifact", type=click.Path(exists=True, dir_okay=False))
@common_options
def upload(artifact: str, config_path: str | None, verbose: bool, quiet: bool) -> None:
    """Upload ARTIFACT under a new version key without registering it."""
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)
        key = orchestrator.upload_artifact(artifact)
        if quiet:
            click.echo(key)
            return
        click.echo(
            f"Uploaded {Path(artifact).name} to "
            f"s3://{orchestrator.config.bucket}/{key}"
        )


@click.group(name="version")
def version() -> None:
    """Manage application versions."""
    pass


@version.command(name="create")
@click.argument("artifact", type=click.Path(exists=True, dir_okay=False))
@common_options
def version_create(
    artifact: str, config_path: str | None, verbose: bool, quiet: bool
) -> None:
    """Upload ARTIFACT and register it as a new version."""
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)
        orchestrator.upload_artifact(artifact)
        created = orchestrator.create_version()
        click.echo(
            created.version_label
            if quiet
            else f"Created version {created.version_label}"
        )


@version.command(name="delete")
@click.argument("label")
@common_options
def version_delete(
    label: str, config_path: str | None, verbose: bool, quiet: bool
) -> None:
    """Delete version LABEL and its uploaded artifact."""
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)
        orchestrator.delete_version(label)
        if not quiet:
            click.echo(f"Deleted version {label}")


@version.command(name="list")
@common_options
def version_list(config_path: str | None, verbose: bool, quiet: bool) -> None:
    """List registered versions."""
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)
        for item in orchestrator.list_versions():
            if quiet:
                click.echo(item.version_label)
                continue
            created = item.created_at.isoformat() if item.created_at else "-"
            click.echo(f"  {item.version_label:<40} {created}")


@click.command(name="clean")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
@common_options
def clean(force: bool, config_path: str | None, verbose: bool, quiet: bool) -> None:
    """Delete every version not deployed to a running environment."""
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)
        if not force:
            confirm = click.confirm(
                f"Delete unused versions of '{orchestrator.config.app_name}'?",
                default=False,
            )
            if not confirm:
                click.secho("Clean aborted.", fg="yellow")
                sys.exit(0)

        deleted = orchestrator.clean_versions()
        if quiet:
            return
        for label in deleted:
            click.echo(f"Deleted version {label}")
        click.echo(f"Removed {len(deleted)} unused version(s)")


@click.command(name="terminate")
@click.argument("environment")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
@common_options
def terminate(
    environment: str,
    force: bool,
    config_path: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Terminate the running ENVIRONMENT. Does nothing if it is not running."""
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)

        if not force:
            confirm = click.confirm(
                f"Terminate environment '{environment}'?", default=False
            )
            if not confirm:
                click.secho("Terminate aborted.", fg="yellow")
                sys.exit(0)

        terminated = orchestrator.terminate_environment(environment)
        if quiet:
            return
        if terminated is None:
            click.echo(f"No running environment named '{environment}'")
        else:
            click.secho(f"Terminated '{environment}'", fg="green")


@click.command(name="info")
@click.argument("environment", required=False)
@common_options
def info(
    environment: str | None, config_path: str | None, verbose: bool, quiet: bool
) -> None:
    """Show the application's environments, or details of ENVIRONMENT."""
    _setup(verbose, quiet)

    with handle_deployment_errors():
        orchestrator = _build_orchestrator(config_path, quiet)

        if environment:
            found = orchestrator.get_environment(environment)
            if found is None:
                raise ConfigError(
                    "environment",
                    f"No environment named '{environment}' exists on the platform",
                )
            _display_environment(found)
            return

        application = orchestrator.get_application()
        click.secho(f"Application: {orchestrator.config.app_name}", bold=True)
        if application is None:
            click.echo("  (not created yet)")
            return
        if application.get("Description"):
            click.echo(f"  Description: {application['Description']}")
        click.echo()
        click.secho("Environments:", bold=True)
        environments = orchestrator.describe_environments()
        if not environments:
            click.echo("  (none)")
        for env in environments:
            click.echo(
                f"  {env.environment_name:<24} {env.status:<12} "
                f"{env.health or '-':<8} {env.version_label or '-'}"
            )


def _display_environment(environment: RuntimeEnvironment) -> None:
    click.secho(f"Environment: {environment.environment_name}", bold=True)
    click.echo(f"  ID:       {environment.environment_id}")
    click.echo(f"  Status:   {environment.status}")
    click.echo(f"  Health:   {environment.health or '-'}")
    click.echo(f"  Version:  {environment.version_label or '-'}")
    click.echo(f"  Stack:    {environment.solution_stack_name or '-'}")
    if environment.cname:
        click.echo(f"  URL:      http://{environment.cname}")
    if environment.updated_at:
        click.echo(f"  Updated:  {environment.updated_at.isoformat()}")
