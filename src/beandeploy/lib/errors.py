"""Custom exception hierarchy for beandeploy configuration and operations."""

from typing import Any


class BeanDeployError(Exception):
    """Base exception for all beandeploy errors.

    All beandeploy-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(BeanDeployError):
    """Exception raised for configuration errors.

    Raised when configuration loading or parsing fails, when credentials
    cannot be resolved, or when an environment name is not declared in the
    project. Always raised before any remote call is attempted.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class FileNotFoundError(BeanDeployError):
    """Exception raised when a configuration or artifact file is not found.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize FileNotFoundError with path and message.

        Args:
            path: Path to the file that was not found
            message: Descriptive error message, optionally with suggestions
        """
        self.path = path
        self.message = message
        super().__init__(f"File not found: {path}\n{message}")


class DeploymentError(BeanDeployError):
    """Exception raised when a remote platform or storage call fails.

    Wraps transport, authorization and throttling failures from the
    platform and object storage APIs. These are fatal for the current
    invocation and never retried.

    Attributes:
        operation: The deployment operation that failed (e.g. "upload")
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Initialize DeploymentError with operation and message.

        Args:
            operation: Name of the failed operation
            message: Descriptive error message
        """
        self.operation = operation
        self.message = message
        super().__init__(f"Deployment error during '{operation}': {message}")


class PollTimeoutError(DeploymentError):
    """Raised when a readiness barrier exceeds its configured deadline.

    Attributes:
        last_value: The last value observed before the deadline passed
        attempts: Number of observations made
    """

    def __init__(
        self, operation: str, timeout: float, last_value: Any, attempts: int
    ) -> None:
        self.timeout = timeout
        self.last_value = last_value
        self.attempts = attempts
        super().__init__(
            operation,
            f"Condition not met after {timeout:g}s ({attempts} attempts)",
        )
