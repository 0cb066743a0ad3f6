"""Pydantic models for beandeploy project configuration.

This module defines the configuration schema read from ``beandeploy.yaml``:
the application, its artifact bucket, region selection, provider endpoints,
credentials and the named environments that can be deployed.
"""

from typing import Any, NamedTuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

from beandeploy.lib.errors import ConfigError


class OptionSetting(NamedTuple):
    """A single platform option: ``(namespace, option_name, value)``."""

    namespace: str
    option_name: str
    value: str

    def to_api(self) -> dict[str, str]:
        """Return the option in the platform API request shape."""
        return {
            "Namespace": self.namespace,
            "OptionName": self.option_name,
            "Value": self.value,
        }


def _stringify(value: Any) -> Any:
    # Blank values and nested structures are left for the str check to reject
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


def flatten_option_settings(
    grouped: dict[str, dict[str, str]],
) -> list[OptionSetting]:
    """Flatten a namespace -> {option: value} mapping into a list of settings.

    Order follows the iteration order of ``grouped`` and of each namespace.

    Example:
        >>> grouped = {"aws:autoscaling:asg": {"MinSize": "1"}}
        >>> settings = flatten_option_settings(grouped)
        >>> settings[0].option_name, settings[0].value
        ('MinSize', '1')
    """
    return [
        OptionSetting(namespace, option_name, value)
        for namespace, items in grouped.items()
        for option_name, value in items.items()
    ]


class Credentials(BaseModel):
    """Access key pair used for every remote call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    access_key: str = Field(..., min_length=1, description="Access key id")
    secret_key: SecretStr = Field(..., description="Secret access key")


class Endpoints(BaseModel):
    """Optional provider endpoint overrides."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    s3: str | None = Field(default=None, description="Object storage endpoint URL")
    eb: str | None = Field(default=None, description="Platform API endpoint URL")


class DeployOptions(BaseModel):
    """Readiness polling behaviour for deploy and terminate.

    Attributes:
        poll_delay: Seconds slept before every status observation
        poll_timeout: Deadline in seconds for a readiness barrier; None waits
            indefinitely
        wait_on_create: Apply the readiness barrier after creating an
            environment
        wait_on_terminate: Wait until a terminated environment reports
            Terminated
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    poll_delay: float = Field(default=3.0, gt=0)
    poll_timeout: float | None = Field(default=None, gt=0)
    wait_on_create: bool = False
    wait_on_terminate: bool = False


class EnvironmentSpec(BaseModel):
    """Declarative description of one deployable environment.

    Attributes:
        name: Environment name, unique within the project
        description: Human description sent with the create request
        cname_prefix: DNS prefix hint for the environment URL
        solution_stack_name: Platform/stack identifier
        option_settings: Namespace -> {option name -> value}
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=4, max_length=40)
    description: str | None = Field(default=None)
    cname_prefix: str | None = Field(default=None)
    solution_stack_name: str | None = Field(default=None)
    option_settings: dict[str, dict[str, str]] = Field(default_factory=dict)

    @field_validator("option_settings", mode="before")
    @classmethod
    def coerce_option_values(cls, v: Any) -> Any:
        """Coerce YAML scalars (ints, bools) to the strings the API expects."""
        if not isinstance(v, dict):
            return v
        coerced: dict[str, Any] = {}
        for namespace, items in v.items():
            if isinstance(items, dict):
                coerced[namespace] = {
                    str(key): _stringify(value) for key, value in items.items()
                }
            else:
                coerced[namespace] = items
        return coerced

    def flat_option_settings(self) -> list[OptionSetting]:
        """Return option settings as a flat, ordered list."""
        return flatten_option_settings(self.option_settings)


class ProjectConfig(BaseModel):
    """Resolved project configuration for one invocation.

    Attributes:
        app_name: Application name on the platform
        bucket: Bucket holding uploaded artifacts
        region: Region id (e.g. ``eu-west-1``)
        region_name: Legacy storage region constant (e.g. ``EU_Ireland``)
        sigv4: Select the newer region profile (region ids, encrypted uploads)
        encrypted_uploads: Override the profile's client-side encryption choice
        artifact_extension: Extension used for artifact object keys
        endpoints: Endpoint overrides for the storage and platform APIs
        deploy: Polling behaviour
        environments: Named environment specs
        credentials: Access key pair (usually merged in by the loader)
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    app_name: str = Field(..., min_length=1, max_length=100)
    bucket: str = Field(..., min_length=3, max_length=63)
    region: str | None = Field(default=None)
    region_name: str | None = Field(default=None)
    sigv4: bool = Field(default=False)
    encrypted_uploads: bool | None = Field(default=None)
    artifact_extension: str = Field(default="war", min_length=1)
    endpoints: Endpoints = Field(default_factory=Endpoints)
    deploy: DeployOptions = Field(default_factory=DeployOptions)
    environments: list[EnvironmentSpec] = Field(default_factory=list)
    credentials: Credentials | None = Field(default=None)

    @field_validator("artifact_extension")
    @classmethod
    def strip_leading_dot(cls, v: str) -> str:
        """Accept ``.war`` as well as ``war``."""
        return v.lstrip(".")

    @model_validator(mode="after")
    def validate_environments_and_region(self) -> "ProjectConfig":
        """Check environment name uniqueness and region selection."""
        seen: set[str] = set()
        for env in self.environments:
            if env.name in seen:
                raise ValueError(f"Duplicate environment name: {env.name}")
            seen.add(env.name)

        if self.sigv4 and not self.region:
            raise ValueError("region is required when sigv4 is enabled")
        if not self.sigv4 and not (self.region or self.region_name):
            raise ValueError("region or region_name is required")
        return self

    def environment(self, name: str) -> EnvironmentSpec:
        """Return the environment spec named ``name``.

        Raises:
            ConfigError: If no environment with that name is declared
        """
        for env in self.environments:
            if env.name == name:
                return env
        known = ", ".join(env.name for env in self.environments) or "(none)"
        raise ConfigError(
            "environments",
            f"Environment '{name}' is not defined. Known environments: {known}",
        )
