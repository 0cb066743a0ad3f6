"""Environment variable helpers for configuration files.

Supports ``${VAR}`` and ``${VAR:-default}`` references in YAML text.
"""

import os
import re
from collections.abc import Mapping

from beandeploy.lib.errors import ConfigError

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def get_env_var(
    name: str,
    default: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Return a non-empty environment variable or ``default``.

    Args:
        name: Variable name
        default: Value returned when the variable is unset or empty
        environ: Mapping to read from (defaults to ``os.environ``)
    """
    source = environ if environ is not None else os.environ
    value = source.get(name)
    if value is None or value == "":
        return default
    return value


def substitute_env_vars(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace ``${VAR}`` references in ``text`` with environment values.

    Args:
        text: Raw configuration text
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is unset and has no default
    """

    def replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        value = get_env_var(name, default, environ)
        if value is None:
            raise ConfigError(
                "env_substitution",
                f"Environment variable '{name}' is not set and has no default",
            )
        return value

    return ENV_VAR_PATTERN.sub(replace, text)
