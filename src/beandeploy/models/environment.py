"""Models for entities observed on the remote platform."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EnvironmentStatus(str, Enum):
    """Environment statuses the orchestrator knows by name.

    The platform may report other statuses; those are kept as plain strings
    on ``RuntimeEnvironment.status`` and treated as not yet actionable.
    """

    LAUNCHING = "Launching"
    UPDATING = "Updating"
    READY = "Ready"
    TERMINATING = "Terminating"
    TERMINATED = "Terminated"


class DeployAction(str, Enum):
    """Path taken by a deploy call."""

    CREATED = "created"
    UPDATED = "updated"


class RuntimeEnvironment(BaseModel):
    """Snapshot of a platform environment at the time it was described."""

    model_config = ConfigDict(frozen=True)

    environment_id: str
    environment_name: str
    application_name: str
    status: str
    health: str | None = None
    version_label: str | None = None
    cname: str | None = None
    endpoint_url: str | None = None
    solution_stack_name: str | None = None
    updated_at: datetime | None = None

    @property
    def is_ready(self) -> bool:
        return self.status == EnvironmentStatus.READY.value

    @property
    def is_terminated(self) -> bool:
        return self.status == EnvironmentStatus.TERMINATED.value

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RuntimeEnvironment:
        """Build a snapshot from a ``DescribeEnvironments`` entry."""
        return cls(
            environment_id=data["EnvironmentId"],
            environment_name=data["EnvironmentName"],
            application_name=data.get("ApplicationName", ""),
            status=data.get("Status", "Unknown"),
            health=data.get("Health"),
            version_label=data.get("VersionLabel"),
            cname=data.get("CNAME"),
            endpoint_url=data.get("EndpointURL"),
            solution_stack_name=data.get("SolutionStackName"),
            updated_at=data.get("DateUpdated"),
        )


def is_ready(environment: RuntimeEnvironment | None) -> bool:
    """Readiness predicate; a vanished environment is not ready."""
    return environment is not None and environment.is_ready


def is_terminated(environment: RuntimeEnvironment | None) -> bool:
    """Termination predicate; a vanished environment counts as terminated."""
    return environment is None or environment.is_terminated


class ApplicationVersion(BaseModel):
    """A registered application version pointing at one uploaded artifact."""

    model_config = ConfigDict(frozen=True)

    application_name: str
    version_label: str
    bucket: str | None = None
    key: str | None = None
    status: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ApplicationVersion:
        """Build a handle from an ``ApplicationVersionDescription``."""
        bundle = data.get("SourceBundle") or {}
        return cls(
            application_name=data["ApplicationName"],
            version_label=data["VersionLabel"],
            bucket=bundle.get("S3Bucket"),
            key=bundle.get("S3Key"),
            status=data.get("Status"),
            created_at=data.get("DateCreated"),
        )


class DeployOutcome(BaseModel):
    """Result of deploying a version to a named environment.

    Attributes:
        action: Whether the environment was created or updated
        environment_name: Target environment name
        version_label: Version the environment was pointed at
        environment: Last observed snapshot, if one was taken
    """

    model_config = ConfigDict(frozen=True)

    action: DeployAction
    environment_name: str
    version_label: str
    environment: RuntimeEnvironment | None = Field(default=None)
