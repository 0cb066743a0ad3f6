"""Application version labels and artifact object keys."""

from __future__ import annotations

from datetime import datetime, timezone

VERSION_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def generate_version_label(app_name: str, now: datetime | None = None) -> str:
    """Generate a version label of the form ``{app_name}-{yyyyMMddHHmmss}``.

    Naive datetimes are taken to be UTC. Two labels generated within the
    same second for the same application are identical.

    Example:
        >>> generate_version_label("hello", datetime(2024, 1, 2, 3, 4, 5))
        'hello-20240102030405'
    """
    if now is None:
        now = utc_now()
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{app_name}-{now.strftime(VERSION_TIMESTAMP_FORMAT)}"


def artifact_key(version_label: str, extension: str) -> str:
    """Return the object key an artifact is stored under for a version."""
    return f"{version_label}.{extension.lstrip('.')}"
