"""beandeploy deployment engine.

This package uploads artifacts, registers application versions and creates,
updates or terminates platform environments.
"""

from beandeploy.deploy.directory import EnvironmentDirectory
from beandeploy.deploy.lifecycle import EnvironmentLifecycleController
from beandeploy.deploy.orchestrator import DeploymentOrchestrator
from beandeploy.deploy.registry import VersionRegistry
from beandeploy.deploy.storage import ArtifactStore, EncryptingArtifactStore
from beandeploy.deploy.versioning import artifact_key, generate_version_label

__all__ = [
    "ArtifactStore",
    "DeploymentOrchestrator",
    "EncryptingArtifactStore",
    "EnvironmentDirectory",
    "EnvironmentLifecycleController",
    "VersionRegistry",
    "artifact_key",
    "generate_version_label",
]
