"""Logging setup for beandeploy.

CLI commands call ``setup_logging`` once; library modules obtain loggers via
``get_logger(__name__)``.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# The AWS SDK logs every request at INFO/DEBUG.
NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the beandeploy package."""
    return logging.getLogger(name)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging for CLI usage.

    Args:
        verbose: Enable DEBUG level output
        quiet: Only show errors
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
