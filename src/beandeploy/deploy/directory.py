"""Lookup of platform environments belonging to an application."""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from beandeploy.lib.errors import DeploymentError
from beandeploy.models.environment import RuntimeEnvironment


class EnvironmentDirectory:
    """Query environments by application, name and lifecycle status.

    Every call issues a fresh ``describe_environments`` request; nothing is
    cached between calls.
    """

    def __init__(self, client: Any) -> None:
        """Initialize the directory.

        Args:
            client: boto3 ``elasticbeanstalk`` client
        """
        self._client = client

    def list(self, app_name: str) -> list[RuntimeEnvironment]:
        """List every environment of ``app_name``, terminated ones included."""
        try:
            response = self._client.describe_environments(
                ApplicationName=app_name, IncludeDeleted=True
            )
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(
                operation="describe_environments",
                message=f"Failed to describe environments of '{app_name}': {exc}",
            ) from exc

        return [
            RuntimeEnvironment.from_api(item)
            for item in response.get("Environments", [])
            if item.get("ApplicationName") == app_name
        ]

    def find_by_name(self, app_name: str, env_name: str) -> RuntimeEnvironment | None:
        """Return the first environment named ``env_name``, in any status."""
        for environment in self.list(app_name):
            if environment.environment_name == env_name:
                return environment
        return None

    def find_running_by_name(
        self, app_name: str, env_name: str
    ) -> RuntimeEnvironment | None:
        """Return the environment named ``env_name`` unless it is terminated."""
        for environment in self.list(app_name):
            if environment.is_terminated:
                continue
            if environment.environment_name == env_name:
                return environment
        return None

    def find_by_id(
        self, app_name: str, environment_id: str
    ) -> RuntimeEnvironment | None:
        """Return the environment with ``environment_id``, in any status."""
        for environment in self.list(app_name):
            if environment.environment_id == environment_id:
                return environment
        return None
