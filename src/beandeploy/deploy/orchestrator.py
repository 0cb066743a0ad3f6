"""Deployment orchestrator: the per-invocation entry point.

The orchestrator computes the version label once, at construction, and uses
that same label for the artifact key, the version registration and the
environment pointer.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from beandeploy.deploy.clients import (
    create_eb_client,
    create_s3_client,
    create_session,
)
from beandeploy.deploy.directory import EnvironmentDirectory
from beandeploy.deploy.lifecycle import EnvironmentLifecycleController
from beandeploy.deploy.profiles import PlatformProfile, select_profile
from beandeploy.deploy.registry import VersionRegistry
from beandeploy.deploy.storage import ArtifactStore
from beandeploy.deploy.versioning import (
    artifact_key,
    generate_version_label,
    utc_now,
)
from beandeploy.lib.errors import ConfigError
from beandeploy.lib.logging_config import get_logger
from beandeploy.models.environment import (
    ApplicationVersion,
    DeployOutcome,
    RuntimeEnvironment,
)
from beandeploy.models.project import ProjectConfig

logger = get_logger(__name__)


class DeploymentOrchestrator:
    """Sequence upload, registration and environment changes for a project."""

    def __init__(
        self,
        config: ProjectConfig,
        *,
        artifact_store: ArtifactStore,
        registry: VersionRegistry,
        directory: EnvironmentDirectory,
        controller: EnvironmentLifecycleController,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the orchestrator with already-built collaborators.

        Use ``from_config`` to build the collaborators from a project
        configuration.
        """
        self._config = config
        self._artifact_store = artifact_store
        self._registry = registry
        self._directory = directory
        self._controller = controller
        self._version_label = generate_version_label(config.app_name, clock())

    @classmethod
    def from_config(
        cls,
        config: ProjectConfig,
        *,
        profile: PlatformProfile | None = None,
        clock: Callable[[], datetime] = utc_now,
        **controller_options: Any,
    ) -> DeploymentOrchestrator:
        """Build clients and collaborators for ``config``.

        Args:
            config: Resolved project configuration with credentials
            profile: Platform profile, selected from ``config`` when omitted
            clock: Source of the current UTC time for the version label
            **controller_options: Extra keyword arguments for
                EnvironmentLifecycleController (e.g. ``progress``, ``echo``)

        Raises:
            ConfigError: If credentials are missing
        """
        if config.credentials is None:
            raise ConfigError(
                "credentials",
                "No credentials found. Set BEANDEPLOY_ACCESS_KEY and "
                "BEANDEPLOY_SECRET_KEY or add them to "
                "~/.beandeploy/credentials.yaml",
            )

        profile = profile or select_profile(config)
        region = profile.resolve_region(config)
        logger.debug(f"Using {profile.name} profile in {region}")

        session = create_session(config.credentials, region)
        s3_client = create_s3_client(
            session, config.endpoints.s3, profile.signature_version
        )
        eb_client = create_eb_client(session, config.endpoints.eb)

        directory = EnvironmentDirectory(eb_client)
        options: dict[str, Any] = {
            "poll_delay": config.deploy.poll_delay,
            "poll_timeout": config.deploy.poll_timeout,
            "wait_on_create": config.deploy.wait_on_create,
            "wait_on_terminate": config.deploy.wait_on_terminate,
        }
        options.update(controller_options)
        controller = EnvironmentLifecycleController(
            eb_client, directory, config.app_name, **options
        )
        return cls(
            config,
            artifact_store=profile.make_artifact_store(config, s3_client),
            registry=VersionRegistry(eb_client),
            directory=directory,
            controller=controller,
            clock=clock,
        )

    @property
    def config(self) -> ProjectConfig:
        return self._config

    @property
    def version_label(self) -> str:
        """Version label shared by every operation of this invocation."""
        return self._version_label

    @property
    def artifact_key(self) -> str:
        """Object key of this invocation's artifact."""
        return artifact_key(self._version_label, self._config.artifact_extension)

    def upload_artifact(self, path: Path | str) -> str:
        """Upload the artifact at ``path`` under this invocation's key."""
        return self._artifact_store.upload(
            self._config.bucket, self.artifact_key, path
        )

    def create_version(self) -> ApplicationVersion:
        """Register this invocation's artifact as a new version."""
        return self._registry.register(
            self._config.app_name,
            self._version_label,
            self._config.bucket,
            self.artifact_key,
        )

    def delete_version(self, version_label: str) -> None:
        """Delete a version and its artifact."""
        self._registry.delete(self._config.app_name, version_label)

    def list_versions(self) -> list[ApplicationVersion]:
        return self._registry.list(self._config.app_name)

    def clean_versions(self) -> list[str]:
        """Delete every version not used by a running environment.

        Returns:
            Labels of the deleted versions
        """
        in_use = {
            env.version_label
            for env in self.describe_environments()
            if not env.is_terminated and env.version_label
        }
        deleted: list[str] = []
        for version in self.list_versions():
            if version.version_label in in_use:
                continue
            self.delete_version(version.version_label)
            deleted.append(version.version_label)
        return deleted

    def deploy_environment(self, env_name: str) -> DeployOutcome:
        """Create or update ``env_name`` to run this invocation's version.

        Raises:
            ConfigError: If ``env_name`` is not declared in the project
        """
        spec = self._config.environment(env_name)
        return self._controller.deploy(spec, self._version_label)

    def terminate_environment(self, env_name: str) -> RuntimeEnvironment | None:
        """Terminate ``env_name`` if it is running."""
        return self._controller.terminate(env_name)

    def describe_environments(self) -> list[RuntimeEnvironment]:
        return self._directory.list(self._config.app_name)

    def get_environment(self, env_name: str) -> RuntimeEnvironment | None:
        """Return the latest snapshot of ``env_name`` in any status."""
        return self._directory.find_by_name(self._config.app_name, env_name)

    def get_application(self) -> dict[str, Any] | None:
        return self._registry.get_application(self._config.app_name)

    def deploy(self, artifact: Path | str, env_name: str) -> DeployOutcome:
        """Upload, register and deploy in one call."""
        # Resolve the name before any remote call
        self._config.environment(env_name)
        self.upload_artifact(artifact)
        self.create_version()
        return self.deploy_environment(env_name)
