"""Application version registration on the platform."""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from beandeploy.lib.errors import DeploymentError
from beandeploy.lib.logging_config import get_logger
from beandeploy.models.environment import ApplicationVersion

logger = get_logger(__name__)


class VersionRegistry:
    """Register, list and delete application versions."""

    def __init__(self, client: Any) -> None:
        """Initialize the registry.

        Args:
            client: boto3 ``elasticbeanstalk`` client
        """
        self._client = client

    def register(
        self, app_name: str, version_label: str, bucket: str, key: str
    ) -> ApplicationVersion:
        """Register ``bucket``/``key`` as version ``version_label``.

        The application is created if it does not exist yet.

        Raises:
            DeploymentError: If the platform rejects the request
        """
        logger.info(f"Registering version {version_label} of {app_name}")
        try:
            response = self._client.create_application_version(
                ApplicationName=app_name,
                VersionLabel=version_label,
                SourceBundle={"S3Bucket": bucket, "S3Key": key},
                AutoCreateApplication=True,
            )
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(
                operation="create_version",
                message=f"Failed to register version '{version_label}': {exc}",
            ) from exc

        description = response.get("ApplicationVersion")
        if description:
            return ApplicationVersion.from_api(description)
        return ApplicationVersion(
            application_name=app_name,
            version_label=version_label,
            bucket=bucket,
            key=key,
        )

    def delete(self, app_name: str, version_label: str) -> None:
        """Delete a version together with its source bundle object."""
        logger.info(f"Deleting version {version_label} of {app_name}")
        try:
            self._client.delete_application_version(
                ApplicationName=app_name,
                VersionLabel=version_label,
                DeleteSourceBundle=True,
            )
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(
                operation="delete_version",
                message=f"Failed to delete version '{version_label}': {exc}",
            ) from exc

    def list(self, app_name: str) -> list[ApplicationVersion]:
        """List registered versions of an application, newest first."""
        try:
            response = self._client.describe_application_versions(
                ApplicationName=app_name
            )
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(
                operation="list_versions",
                message=f"Failed to list versions of '{app_name}': {exc}",
            ) from exc
        return [
            ApplicationVersion.from_api(item)
            for item in response.get("ApplicationVersions", [])
        ]

    def get_application(self, app_name: str) -> dict[str, Any] | None:
        """Describe the application, or return None if it does not exist."""
        try:
            response = self._client.describe_applications(
                ApplicationNames=[app_name]
            )
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(
                operation="describe_application",
                message=f"Failed to describe application '{app_name}': {exc}",
            ) from exc
        for application in response.get("Applications", []):
            if application.get("ApplicationName") == app_name:
                return dict(application)
        return None
