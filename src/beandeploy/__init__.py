"""beandeploy - deploy application artifacts to managed platform environments.

beandeploy uploads a build artifact to an object-storage bucket, registers it
as a time-stamped application version, and creates or updates a named
environment to run that version.

Main features:
- Create-or-update deploys keyed on the environment name
- Ordered two-phase updates (settings, readiness barrier, version)
- Optional client-side envelope encryption of uploaded artifacts
- YAML project configuration with environment variable substitution
"""

from beandeploy.lib.errors import (
    BeanDeployError,
    ConfigError,
    DeploymentError,
    PollTimeoutError,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "BeanDeployError",
    "ConfigError",
    "DeploymentError",
    "PollTimeoutError",
]
