"""Pytest configuration and shared fixtures for beandeploy tests."""

from __future__ import annotations

import base64
from typing import Any

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from beandeploy.deploy.encryption import META_IV, META_WRAPPED_KEY, OAEP_PADDING
from beandeploy.models.project import Credentials, EnvironmentSpec, ProjectConfig


class FakePlatform:
    """Recording stand-in for the platform API client.

    Every call is appended to ``calls`` as ``(method, kwargs)``. Each
    ``describe_environments`` call consumes the next scripted snapshot from
    ``snapshots``; the last snapshot is repeated once the script runs out.
    """

    def __init__(self, snapshots: list[list[dict[str, Any]]] | None = None) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.snapshots = list(snapshots or [[]])

    def _next_snapshot(self) -> list[dict[str, Any]]:
        if len(self.snapshots) > 1:
            return self.snapshots.pop(0)
        return self.snapshots[0]

    def describe_environments(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("describe_environments", kwargs))
        return {"Environments": self._next_snapshot()}

    def create_environment(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_environment", kwargs))
        return {
            "EnvironmentId": "e-new",
            "EnvironmentName": kwargs["EnvironmentName"],
            "ApplicationName": kwargs["ApplicationName"],
            "VersionLabel": kwargs["VersionLabel"],
            "Status": "Launching",
        }

    def update_environment(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("update_environment", kwargs))
        return {
            "EnvironmentId": kwargs["EnvironmentId"],
            "EnvironmentName": kwargs["EnvironmentName"],
            "ApplicationName": "hello",
            "Status": "Updating",
            "VersionLabel": kwargs.get("VersionLabel"),
        }

    def terminate_environment(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("terminate_environment", kwargs))
        return {
            "EnvironmentId": kwargs["EnvironmentId"],
            "EnvironmentName": kwargs["EnvironmentName"],
            "Status": "Terminating",
        }

    def methods(self) -> list[str]:
        """Return the names of the recorded calls, in order."""
        return [method for method, _ in self.calls]

    def mutating_calls(self) -> list[tuple[str, dict[str, Any]]]:
        """Return every recorded call except describe_environments."""
        return [call for call in self.calls if call[0] != "describe_environments"]


def env_entry(
    name: str = "hello-dev",
    status: str = "Ready",
    env_id: str = "e-abc123",
    app: str = "hello",
    version: str | None = "hello-20240101000000",
) -> dict[str, Any]:
    """Build a DescribeEnvironments entry."""
    entry: dict[str, Any] = {
        "EnvironmentId": env_id,
        "EnvironmentName": name,
        "ApplicationName": app,
        "Status": status,
        "Health": "Green",
        "CNAME": f"{name}.elasticbeanstalk.com",
    }
    if version:
        entry["VersionLabel"] = version
    return entry


@pytest.fixture
def environment_spec() -> EnvironmentSpec:
    """Environment spec with two namespaces of option settings."""
    return EnvironmentSpec(
        name="hello-dev",
        description="Development environment",
        cname_prefix="hello-dev",
        solution_stack_name="64bit Amazon Linux 2 running Tomcat 8.5",
        option_settings={
            "aws:autoscaling:asg": {"MinSize": "1", "MaxSize": "2"},
            "aws:autoscaling:launchconfiguration": {"InstanceType": "t3.small"},
        },
    )


@pytest.fixture
def project_config(environment_spec: EnvironmentSpec) -> ProjectConfig:
    """Project configuration for the ``hello`` application."""
    return ProjectConfig(
        app_name="hello",
        bucket="hello-artifacts",
        region="eu-west-1",
        environments=[environment_spec],
        credentials=Credentials(access_key="AKIDEXAMPLE", secret_key="secret"),
    )


@pytest.fixture
def platform_factory() -> type[FakePlatform]:
    """Return the recording platform fake class."""
    return FakePlatform


@pytest.fixture
def make_env() -> Any:
    """Return the DescribeEnvironments entry builder."""
    return env_entry


def _decrypt_body(ciphertext: bytes, metadata: dict[str, str], key_pair: Any) -> bytes:
    """Unwrap the data key and open an uploaded envelope-encrypted body."""
    wrapped_key = base64.b64decode(metadata[META_WRAPPED_KEY])
    iv = base64.b64decode(metadata[META_IV])
    data_key = key_pair.decrypt(wrapped_key, OAEP_PADDING)
    return AESGCM(data_key).decrypt(iv, ciphertext, None)


@pytest.fixture
def decrypt_body() -> Any:
    """Return a helper that decrypts a body using its object metadata."""
    return _decrypt_body
