"""Configuration loading and validation for beandeploy projects.

Main components:
- ConfigLoader: Load and validate beandeploy.yaml files and credentials
- Environment variable substitution (${VAR_NAME} pattern)
- Validation utilities for configuration data
"""

from beandeploy.config.env_loader import get_env_var, substitute_env_vars
from beandeploy.config.loader import ConfigLoader

__all__ = [
    "ConfigLoader",
    "get_env_var",
    "substitute_env_vars",
]
