"""Configuration loader for beandeploy projects.

This module provides the ConfigLoader class for loading, parsing, and
validating project configuration from YAML files and for resolving the
credentials used by every remote call.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from beandeploy.config.defaults import (
    ACCESS_KEY_ENV,
    CREDENTIALS_FILES,
    PROJECT_CONFIG_FILES,
    SECRET_KEY_ENV,
    USER_CONFIG_DIR,
)
from beandeploy.config.env_loader import substitute_env_vars
from beandeploy.config.validator import flatten_pydantic_errors
from beandeploy.lib.errors import ConfigError, FileNotFoundError
from beandeploy.lib.logging_config import get_logger
from beandeploy.models.project import ProjectConfig

logger = get_logger(__name__)

MISSING_CREDENTIALS_MESSAGE = (
    "No credentials found. Set {access} and {secret}, add access_key and "
    "secret_key to ~/{dir}/credentials.yaml, or add a credentials section "
    "to the project configuration."
)


def _read_yaml_with_env_substitution(
    path: Path, environ: Mapping[str, str] | None = None
) -> dict[str, Any] | None:
    """Read a YAML file with environment variable substitution.

    Args:
        path: Path to YAML file
        environ: Mapping used for ${VAR} references

    Returns:
        Parsed dictionary or None if empty

    Raises:
        OSError: If file cannot be read
        yaml.YAMLError: If YAML parsing fails
        ConfigError: If env var substitution fails
    """
    raw_text = path.read_text(encoding="utf-8")
    substituted = substitute_env_vars(raw_text, environ)
    content = yaml.safe_load(substituted)
    return content if content else None


def _complete_pair(data: Mapping[str, Any] | None) -> dict[str, str] | None:
    """Return ``{access_key, secret_key}`` if both are present and non-empty."""
    if not data:
        return None
    access_key = data.get("access_key")
    secret_key = data.get("secret_key")
    if access_key and secret_key:
        return {"access_key": str(access_key), "secret_key": str(secret_key)}
    return None


class ConfigLoader:
    """Load and validate beandeploy project configuration.

    Credentials are resolved in this order, first complete pair wins:

    1. ``BEANDEPLOY_ACCESS_KEY`` / ``BEANDEPLOY_SECRET_KEY``
    2. ``~/.beandeploy/credentials.yml|yaml``
    3. the ``credentials`` section of the project file
    """

    def __init__(
        self,
        home_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            home_dir: Directory holding ``.beandeploy/`` (defaults to home)
            environ: Environment mapping (defaults to ``os.environ``)
        """
        self._home_dir = home_dir
        self._environ = environ if environ is not None else os.environ

    @property
    def user_config_dir(self) -> Path:
        return (self._home_dir or Path.home()) / USER_CONFIG_DIR

    def find_project_config(self, start: str | Path | None = None) -> Path:
        """Locate the project configuration file.

        Args:
            start: A config file path, or a directory to search. Defaults to
                the current directory.

        Raises:
            FileNotFoundError: If no configuration file exists
        """
        location = Path(start) if start is not None else Path.cwd()
        if location.is_file():
            return location
        if location.is_dir():
            for name in PROJECT_CONFIG_FILES:
                candidate = location / name
                if candidate.exists():
                    return candidate
        raise FileNotFoundError(
            str(location),
            f"No project configuration found. Create one of: "
            f"{', '.join(PROJECT_CONFIG_FILES)}",
        )

    def parse_yaml(self, path: Path) -> dict[str, Any]:
        """Parse a YAML file with env var substitution.

        Raises:
            FileNotFoundError: If the file cannot be read
            ConfigError: If YAML parsing fails or the top level is not a mapping
        """
        try:
            content = _read_yaml_with_env_substitution(path, self._environ)
        except OSError as e:
            raise FileNotFoundError(
                str(path),
                f"Configuration file not found at {path}. "
                f"Please ensure the file exists at this path.",
            ) from e
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {path}: {str(e)}",
            ) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                "yaml_parse", f"Expected a mapping at the top level of {path}"
            )
        return content

    def load_user_credentials(self) -> dict[str, Any] | None:
        """Load the user-level credentials file, if present."""
        for name in CREDENTIALS_FILES:
            path = self.user_config_dir / name
            if path.exists():
                logger.debug(f"Reading credentials from {path}")
                return self.parse_yaml(path)
        return None

    def resolve_credentials(
        self, project_data: Mapping[str, Any]
    ) -> dict[str, str] | None:
        """Return the first complete credential pair, or None."""
        from_env = _complete_pair(
            {
                "access_key": self._environ.get(ACCESS_KEY_ENV),
                "secret_key": self._environ.get(SECRET_KEY_ENV),
            }
        )
        if from_env:
            logger.debug("Using credentials from environment variables")
            return from_env

        from_user = _complete_pair(self.load_user_credentials())
        if from_user:
            logger.debug("Using credentials from user configuration")
            return from_user

        project_credentials = project_data.get("credentials")
        if isinstance(project_credentials, Mapping):
            return _complete_pair(project_credentials)
        return None

    def load_project(
        self,
        path: str | Path | None = None,
        require_credentials: bool = True,
    ) -> ProjectConfig:
        """Load, merge and validate the project configuration.

        Args:
            path: Config file or directory; defaults to the current directory
            require_credentials: Raise if no complete credential pair is found

        Returns:
            Validated, immutable ProjectConfig

        Raises:
            FileNotFoundError: If no configuration file exists
            ConfigError: If parsing, validation or credential resolution fails
        """
        config_path = self.find_project_config(path)
        data = self.parse_yaml(config_path)

        credentials = self.resolve_credentials(data)
        if credentials is None:
            if require_credentials:
                raise ConfigError(
                    "credentials",
                    MISSING_CREDENTIALS_MESSAGE.format(
                        access=ACCESS_KEY_ENV,
                        secret=SECRET_KEY_ENV,
                        dir=USER_CONFIG_DIR,
                    ),
                )
            data.pop("credentials", None)
        else:
            data["credentials"] = credentials

        try:
            return ProjectConfig(**data)
        except PydanticValidationError as e:
            error_messages = flatten_pydantic_errors(e)
            error_text = "\n".join(error_messages)
            raise ConfigError(
                "project_validation",
                f"Invalid project configuration in {config_path}:\n{error_text}",
            ) from e
