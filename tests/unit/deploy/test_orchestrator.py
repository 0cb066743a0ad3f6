"""Unit tests for the deployment orchestrator."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from beandeploy.deploy.directory import EnvironmentDirectory
from beandeploy.deploy.lifecycle import EnvironmentLifecycleController
from beandeploy.deploy.orchestrator import DeploymentOrchestrator
from beandeploy.deploy.profiles import SigV4Profile
from beandeploy.deploy.registry import VersionRegistry
from beandeploy.deploy.storage import ArtifactStore, EncryptingArtifactStore
from beandeploy.lib.errors import ConfigError
from beandeploy.models.environment import ApplicationVersion, DeployAction
from beandeploy.models.project import ProjectConfig

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
LABEL = "hello-20240102030405"


def _clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def artifact(tmp_path: Path) -> Path:
    path = tmp_path / "hello.war"
    path.write_bytes(b"war bytes")
    return path


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def orchestrator_for(project_config: ProjectConfig, s3_client: MagicMock) -> Any:
    """Build an orchestrator around a recording platform fake."""

    def build(platform: Any, config: ProjectConfig | None = None) -> Any:
        config = config or project_config
        directory = EnvironmentDirectory(platform)
        platform.create_application_version = MagicMock(return_value={})
        platform.delete_application_version = MagicMock(return_value={})
        platform.describe_application_versions = MagicMock(
            return_value={"ApplicationVersions": []}
        )
        return DeploymentOrchestrator(
            config,
            artifact_store=ArtifactStore(s3_client, config.region),
            registry=VersionRegistry(platform),
            directory=directory,
            controller=EnvironmentLifecycleController(
                platform,
                directory,
                config.app_name,
                sleep=lambda s: None,
                progress=None,
                echo=None,
            ),
            clock=_clock,
        )

    return build


class TestVersionLabel:
    """Tests for the per-invocation version label."""

    def test_label_computed_once(
        self, project_config: ProjectConfig, platform_factory: Any
    ) -> None:
        """The clock is read once at construction."""
        clock = MagicMock(return_value=FIXED_NOW)
        platform = platform_factory()
        directory = EnvironmentDirectory(platform)

        orchestrator = DeploymentOrchestrator(
            project_config,
            artifact_store=MagicMock(),
            registry=MagicMock(),
            directory=directory,
            controller=MagicMock(),
            clock=clock,
        )

        assert orchestrator.version_label == LABEL
        assert orchestrator.version_label == LABEL
        assert orchestrator.artifact_key == f"{LABEL}.war"
        clock.assert_called_once_with()


class TestDeploy:
    """Tests for the upload-register-deploy sequence."""

    def test_upload_and_register_share_key(
        self,
        orchestrator_for: Any,
        platform_factory: Any,
        s3_client: MagicMock,
        artifact: Path,
    ) -> None:
        """The uploaded object and the registered source bundle match."""
        platform = platform_factory([[]])
        orchestrator = orchestrator_for(platform)

        outcome = orchestrator.deploy(artifact, "hello-dev")

        put_kwargs = s3_client.put_object.call_args.kwargs
        register_kwargs = platform.create_application_version.call_args.kwargs
        assert put_kwargs["Key"] == f"{LABEL}.war"
        assert register_kwargs["SourceBundle"] == {
            "S3Bucket": "hello-artifacts",
            "S3Key": f"{LABEL}.war",
        }
        assert register_kwargs["VersionLabel"] == LABEL
        assert outcome.action == DeployAction.CREATED
        create_kwargs = platform.mutating_calls()[0][1]
        assert create_kwargs["VersionLabel"] == LABEL

    def test_unknown_environment_fails_before_remote_calls(
        self,
        orchestrator_for: Any,
        platform_factory: Any,
        s3_client: MagicMock,
        artifact: Path,
    ) -> None:
        """An undeclared environment name is rejected up front."""
        platform = platform_factory([[]])
        orchestrator = orchestrator_for(platform)

        with pytest.raises(ConfigError) as exc_info:
            orchestrator.deploy(artifact, "hello-prod")

        assert "hello-prod" in exc_info.value.message
        assert s3_client.mock_calls == []
        assert platform.calls == []
        platform.create_application_version.assert_not_called()

    def test_update_path_through_orchestrator(
        self,
        orchestrator_for: Any,
        platform_factory: Any,
        make_env: Any,
        artifact: Path,
    ) -> None:
        platform = platform_factory([[make_env(status="Ready")]])

        outcome = orchestrator_for(platform).deploy(artifact, "hello-dev")

        assert outcome.action == DeployAction.UPDATED
        updates = [kw for m, kw in platform.calls if m == "update_environment"]
        assert updates[-1]["VersionLabel"] == LABEL


class TestVersionsAndEnvironments:
    """Tests for version housekeeping and environment queries."""

    def test_clean_keeps_versions_in_use(
        self, orchestrator_for: Any, platform_factory: Any, make_env: Any
    ) -> None:
        """Only versions not used by a live environment are deleted."""
        platform = platform_factory(
            [
                [
                    make_env(version="hello-live"),
                    make_env(
                        name="hello-old",
                        env_id="e-old",
                        status="Terminated",
                        version="hello-stale",
                    ),
                ]
            ]
        )
        orchestrator = orchestrator_for(platform)
        platform.describe_application_versions.return_value = {
            "ApplicationVersions": [
                {"ApplicationName": "hello", "VersionLabel": "hello-live"},
                {"ApplicationName": "hello", "VersionLabel": "hello-stale"},
                {"ApplicationName": "hello", "VersionLabel": "hello-unused"},
            ]
        }

        deleted = orchestrator.clean_versions()

        assert deleted == ["hello-stale", "hello-unused"]
        deleted_labels = [
            c.kwargs["VersionLabel"]
            for c in platform.delete_application_version.call_args_list
        ]
        assert deleted_labels == ["hello-stale", "hello-unused"]

    def test_list_versions(self, orchestrator_for: Any, platform_factory: Any) -> None:
        platform = platform_factory()
        orchestrator = orchestrator_for(platform)
        platform.describe_application_versions.return_value = {
            "ApplicationVersions": [
                {"ApplicationName": "hello", "VersionLabel": "hello-1"}
            ]
        }

        versions = orchestrator.list_versions()

        assert versions == [
            ApplicationVersion(application_name="hello", version_label="hello-1")
        ]

    def test_terminate_absent_environment(
        self, orchestrator_for: Any, platform_factory: Any
    ) -> None:
        platform = platform_factory([[]])

        assert orchestrator_for(platform).terminate_environment("hello-dev") is None
        assert platform.mutating_calls() == []

    def test_get_environment_any_status(
        self, orchestrator_for: Any, platform_factory: Any, make_env: Any
    ) -> None:
        platform = platform_factory([[make_env(status="Terminated")]])

        found = orchestrator_for(platform).get_environment("hello-dev")

        assert found is not None
        assert found.is_terminated


class TestFromConfig:
    """Tests for building collaborators from configuration."""

    def test_missing_credentials_raise_before_clients(self) -> None:
        config = ProjectConfig(
            app_name="hello", bucket="hello-artifacts", region="eu-west-1"
        )

        with patch("beandeploy.deploy.orchestrator.create_session") as session:
            with pytest.raises(ConfigError) as exc_info:
                DeploymentOrchestrator.from_config(config)

        assert exc_info.value.field == "credentials"
        session.assert_not_called()

    def test_builds_clients_for_profile(self, project_config: ProjectConfig) -> None:
        """Clients are built in the profile's region with its signing choice."""
        config = project_config.model_copy(
            update={"sigv4": True, "region": "eu-central-1"}
        )
        with (
            patch("beandeploy.deploy.orchestrator.create_session") as session,
            patch("beandeploy.deploy.orchestrator.create_s3_client") as s3,
            patch("beandeploy.deploy.orchestrator.create_eb_client") as eb,
        ):
            orchestrator = DeploymentOrchestrator.from_config(
                config, clock=_clock, progress=None, echo=None
            )

        session.assert_called_once_with(config.credentials, "eu-central-1")
        s3.assert_called_once_with(session.return_value, None, "s3v4")
        eb.assert_called_once_with(session.return_value, None)
        assert isinstance(orchestrator._artifact_store, EncryptingArtifactStore)
        assert orchestrator.version_label == LABEL

    def test_explicit_profile_used(self, project_config: ProjectConfig) -> None:
        profile = SigV4Profile()
        with (
            patch("beandeploy.deploy.orchestrator.create_session") as session,
            patch("beandeploy.deploy.orchestrator.create_s3_client"),
            patch("beandeploy.deploy.orchestrator.create_eb_client"),
        ):
            DeploymentOrchestrator.from_config(project_config, profile=profile)

        session.assert_called_once_with(project_config.credentials, "eu-west-1")

    def test_controller_options_from_deploy_section(
        self, project_config: ProjectConfig
    ) -> None:
        config = project_config.model_copy(
            update={
                "deploy": project_config.deploy.model_copy(
                    update={"poll_delay": 7.0, "wait_on_create": True}
                )
            }
        )
        with (
            patch("beandeploy.deploy.orchestrator.create_session"),
            patch("beandeploy.deploy.orchestrator.create_s3_client"),
            patch("beandeploy.deploy.orchestrator.create_eb_client"),
        ):
            orchestrator = DeploymentOrchestrator.from_config(config)

        controller = orchestrator._controller
        assert controller._poll_delay == 7.0
        assert controller._wait_on_create is True
