"""boto3 client construction from resolved credentials."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config

from beandeploy.models.project import Credentials

USER_AGENT_EXTRA = "beandeploy"


def create_session(credentials: Credentials, region: str) -> boto3.session.Session:
    """Create a boto3 session bound to explicit credentials and a region."""
    return boto3.session.Session(
        aws_access_key_id=credentials.access_key,
        aws_secret_access_key=credentials.secret_key.get_secret_value(),
        region_name=region,
    )


def create_s3_client(
    session: boto3.session.Session,
    endpoint: str | None = None,
    signature_version: str | None = None,
) -> Any:
    """Create an object storage client, optionally against a custom endpoint."""
    config = Config(user_agent_extra=USER_AGENT_EXTRA)
    if signature_version:
        config = config.merge(Config(signature_version=signature_version))
    return session.client("s3", endpoint_url=endpoint, config=config)


def create_eb_client(
    session: boto3.session.Session, endpoint: str | None = None
) -> Any:
    """Create a platform API client, optionally against a custom endpoint."""
    return session.client(
        "elasticbeanstalk",
        endpoint_url=endpoint,
        config=Config(user_agent_extra=USER_AGENT_EXTRA),
    )
