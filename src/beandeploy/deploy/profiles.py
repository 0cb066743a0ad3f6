"""Platform profiles: region resolution and artifact store construction.

A project selects one profile when its configuration is resolved. The
legacy profile reads the storage region constant (``region_name``) and
uploads in plain form; the SigV4 profile reads a region id (``region``),
signs storage requests with SigV4 and encrypts uploads on the client.
``encrypted_uploads`` in the project configuration overrides either
profile's encryption default.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from beandeploy.deploy.storage import ArtifactStore, EncryptingArtifactStore
from beandeploy.lib.errors import ConfigError
from beandeploy.models.project import ProjectConfig

# Storage region constants accepted by the legacy profile.
LEGACY_REGION_NAMES: dict[str, str] = {
    "US_Standard": "us-east-1",
    "US_West": "us-west-1",
    "US_West_2": "us-west-2",
    "EU_Ireland": "eu-west-1",
    "EU_Frankfurt": "eu-central-1",
    "AP_Singapore": "ap-southeast-1",
    "AP_Sydney": "ap-southeast-2",
    "AP_Tokyo": "ap-northeast-1",
    "SA_SaoPaulo": "sa-east-1",
    "CN_Beijing": "cn-north-1",
    "GovCloud": "us-gov-west-1",
}


class PlatformProfile(ABC):
    """Capability pair selected once per project configuration."""

    name: str
    encrypt_by_default: bool
    signature_version: str | None = None

    @abstractmethod
    def resolve_region(self, config: ProjectConfig) -> str:
        """Return the region id used for every client.

        Raises:
            ConfigError: If the configured region cannot be resolved
        """

    def uses_encryption(self, config: ProjectConfig) -> bool:
        """Return True if uploads are encrypted on the client."""
        if config.encrypted_uploads is not None:
            return config.encrypted_uploads
        return self.encrypt_by_default

    def make_artifact_store(
        self, config: ProjectConfig, s3_client: Any
    ) -> ArtifactStore:
        """Build the artifact store variant this profile uses."""
        region = self.resolve_region(config)
        if self.uses_encryption(config):
            return EncryptingArtifactStore(s3_client, region)
        return ArtifactStore(s3_client, region)


class LegacyProfile(PlatformProfile):
    """Storage region constants and plain uploads."""

    name = "legacy"
    encrypt_by_default = False

    def resolve_region(self, config: ProjectConfig) -> str:
        if config.region_name:
            try:
                return LEGACY_REGION_NAMES[config.region_name]
            except KeyError:
                known = ", ".join(sorted(LEGACY_REGION_NAMES))
                raise ConfigError(
                    "region_name",
                    f"Unknown region name '{config.region_name}'. Known: {known}",
                ) from None
        if config.region:
            return config.region
        raise ConfigError("region_name", "region_name or region is required")


class SigV4Profile(PlatformProfile):
    """Region ids, SigV4 signing and client-side encrypted uploads."""

    name = "sigv4"
    encrypt_by_default = True
    signature_version = "s3v4"

    def resolve_region(self, config: ProjectConfig) -> str:
        if not config.region:
            raise ConfigError("region", "region is required when sigv4 is enabled")
        return config.region


def select_profile(config: ProjectConfig) -> PlatformProfile:
    """Select the profile for a project from its ``sigv4`` flag."""
    if config.sigv4:
        return SigV4Profile()
    return LegacyProfile()
