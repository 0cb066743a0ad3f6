"""Environment lifecycle: create-or-update dispatch, update ordering, terminate.

Deploying to a name that has a running environment always updates it, even
when the artifact is unchanged. Updates are applied in two requests, option
settings first and the version pointer second, with a readiness barrier in
between. The platform applies settings asynchronously and may reject or
reorder a version change submitted while settings are still propagating.

Concurrent deploys to the same environment name are not coordinated here;
callers must serialise them.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, cast

import click
from botocore.exceptions import BotoCoreError, ClientError

from beandeploy.deploy.directory import EnvironmentDirectory
from beandeploy.lib.errors import DeploymentError
from beandeploy.lib.logging_config import get_logger
from beandeploy.lib.polling import DEFAULT_POLL_DELAY, dot_progress, poll_until
from beandeploy.models.environment import (
    DeployAction,
    DeployOutcome,
    RuntimeEnvironment,
    is_ready,
    is_terminated,
)
from beandeploy.models.project import EnvironmentSpec

logger = get_logger(__name__)


class EnvironmentLifecycleController:
    """Create, update and terminate named environments of one application."""

    def __init__(
        self,
        client: Any,
        directory: EnvironmentDirectory,
        app_name: str,
        *,
        poll_delay: float = DEFAULT_POLL_DELAY,
        poll_timeout: float | None = None,
        wait_on_create: bool = False,
        wait_on_terminate: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        progress: Callable[[int], None] | None = dot_progress,
        echo: Callable[[str], None] | None = click.echo,
    ) -> None:
        """Initialize the controller.

        Args:
            client: boto3 ``elasticbeanstalk`` client
            directory: Environment lookup for ``app_name``
            app_name: Application the environments belong to
            poll_delay: Seconds between readiness observations
            poll_timeout: Readiness deadline in seconds, None for no deadline
            wait_on_create: Wait for a created environment to become Ready
            wait_on_terminate: Wait for a terminated environment to report
                Terminated
            sleep: Sleep function used by the polling loop
            clock: Monotonic clock used for the readiness deadline
            progress: Per-attempt progress callback, None to disable
            echo: Status line writer, None to disable
        """
        self._client = client
        self._directory = directory
        self._app_name = app_name
        self._poll_delay = poll_delay
        self._poll_timeout = poll_timeout
        self._wait_on_create = wait_on_create
        self._wait_on_terminate = wait_on_terminate
        self._sleep = sleep
        self._clock = clock
        self._progress = progress
        self._echo = echo

    def deploy(self, spec: EnvironmentSpec, version_label: str) -> DeployOutcome:
        """Point the environment described by ``spec`` at ``version_label``.

        Updates the running environment with that name if one exists,
        otherwise creates it.
        """
        environment = self._directory.find_running_by_name(self._app_name, spec.name)
        if environment is None:
            logger.debug(f"No running environment named {spec.name}; creating")
            return self.create(spec, version_label)
        logger.debug(
            f"Found {environment.environment_id} ({environment.status}); updating"
        )
        return self.update(environment, spec, version_label)

    def create(self, spec: EnvironmentSpec, version_label: str) -> DeployOutcome:
        """Submit a create request for ``spec`` running ``version_label``.

        Returns as soon as the request is accepted unless ``wait_on_create``
        is set.
        """
        self._status(
            f"Creating '{spec.name}' environment (this may take several minutes)"
        )
        request: dict[str, Any] = {
            "ApplicationName": self._app_name,
            "EnvironmentName": spec.name,
            "VersionLabel": version_label,
            "OptionSettings": [
                setting.to_api() for setting in spec.flat_option_settings()
            ],
        }
        if spec.description is not None:
            request["Description"] = spec.description
        if spec.cname_prefix is not None:
            request["CNAMEPrefix"] = spec.cname_prefix
        if spec.solution_stack_name is not None:
            request["SolutionStackName"] = spec.solution_stack_name

        response = self._call("create_environment", request)
        environment: RuntimeEnvironment | None = None
        if response.get("EnvironmentId"):
            environment = RuntimeEnvironment.from_api(response)

        if self._wait_on_create and environment is not None:
            environment = self.wait_until_ready(environment)

        return DeployOutcome(
            action=DeployAction.CREATED,
            environment_name=spec.name,
            version_label=version_label,
            environment=environment,
        )

    def update(
        self,
        environment: RuntimeEnvironment,
        spec: EnvironmentSpec,
        version_label: str,
    ) -> DeployOutcome:
        """Apply settings, wait for Ready, then switch the version."""
        self._status(
            f"Updating '{environment.environment_name}' environment "
            "(this may take several minutes)"
        )
        self.update_settings(environment, spec)
        self.wait_until_ready(environment)
        response = self.update_version(environment, version_label)

        snapshot = environment
        if response.get("EnvironmentId"):
            snapshot = RuntimeEnvironment.from_api(response)
        return DeployOutcome(
            action=DeployAction.UPDATED,
            environment_name=environment.environment_name,
            version_label=version_label,
            environment=snapshot,
        )

    def update_settings(
        self, environment: RuntimeEnvironment, spec: EnvironmentSpec
    ) -> dict[str, Any]:
        """Send the option settings only; the version pointer is untouched."""
        return self._call(
            "update_environment",
            {
                "EnvironmentId": environment.environment_id,
                "EnvironmentName": environment.environment_name,
                "OptionSettings": [
                    setting.to_api() for setting in spec.flat_option_settings()
                ],
            },
        )

    def update_version(
        self, environment: RuntimeEnvironment, version_label: str
    ) -> dict[str, Any]:
        """Send the version label only; settings are untouched."""
        return self._call(
            "update_environment",
            {
                "EnvironmentId": environment.environment_id,
                "EnvironmentName": environment.environment_name,
                "VersionLabel": version_label,
            },
        )

    def terminate(self, env_name: str) -> RuntimeEnvironment | None:
        """Terminate the running environment named ``env_name``.

        A missing or already terminated environment is not an error: nothing
        is sent and None is returned.
        """
        environment = self._directory.find_running_by_name(self._app_name, env_name)
        if environment is None:
            logger.info(f"No running environment named {env_name}; nothing to do")
            return None

        self._status(
            f"Terminating '{env_name}' environment (this may take several minutes)"
        )
        self._call(
            "terminate_environment",
            {
                "EnvironmentId": environment.environment_id,
                "EnvironmentName": environment.environment_name,
            },
        )

        if self._wait_on_terminate:
            observed = self._wait(environment, is_terminated, "terminate")
            return observed or environment
        return environment

    def wait_until_ready(self, environment: RuntimeEnvironment) -> RuntimeEnvironment:
        """Block until ``environment`` reports Ready and return that snapshot."""
        # is_ready never accepts None
        observed = self._wait(environment, is_ready, "wait_ready")
        return cast(RuntimeEnvironment, observed)

    def _wait(
        self,
        environment: RuntimeEnvironment,
        predicate: Callable[[RuntimeEnvironment | None], bool],
        operation: str,
    ) -> RuntimeEnvironment | None:
        result = poll_until(
            predicate,
            lambda: self._directory.find_by_id(
                self._app_name, environment.environment_id
            ),
            self._poll_delay,
            timeout=self._poll_timeout,
            sleep=self._sleep,
            clock=self._clock,
            progress=self._progress,
            operation=operation,
        )
        if self._progress is not None:
            self._status(" Done")
        return result

    def _call(self, method: str, request: dict[str, Any]) -> dict[str, Any]:
        logger.debug(f"{method}: {request}")
        try:
            response = getattr(self._client, method)(**request)
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(operation=method, message=str(exc)) from exc
        return dict(response or {})

    def _status(self, message: str) -> None:
        logger.info(message.strip())
        if self._echo is not None:
            self._echo(message)
