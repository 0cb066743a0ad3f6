"""Artifact upload to the object-storage bucket.

Two variants share one interface: ``ArtifactStore`` uploads the artifact as
is, ``EncryptingArtifactStore`` envelope-encrypts the body on the client
before uploading it.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from beandeploy.deploy.encryption import encrypt_stream, generate_key_pair
from beandeploy.lib.errors import DeploymentError, FileNotFoundError
from beandeploy.lib.logging_config import get_logger

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

logger = get_logger(__name__)

# Buckets in this region are created without a LocationConstraint.
DEFAULT_BUCKET_REGION = "us-east-1"

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}

# Ciphertext larger than this is spooled to disk before upload.
SPOOL_MAX_BYTES = 8 * 1024 * 1024


class ArtifactStore:
    """Upload build artifacts to a bucket under deterministic keys."""

    encrypted = False

    def __init__(self, client: Any, region: str | None = None) -> None:
        """Initialize the store.

        Args:
            client: boto3 ``s3`` client
            region: Region new buckets are created in
        """
        self._client = client
        self._region = region

    def bucket_exists(self, bucket: str) -> bool:
        """Return True if ``bucket`` exists and is reachable."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_BUCKET_CODES:
                return False
            raise DeploymentError(
                operation="upload",
                message=f"Failed to check bucket '{bucket}': {exc}",
            ) from exc
        except BotoCoreError as exc:
            raise DeploymentError(
                operation="upload",
                message=f"Failed to check bucket '{bucket}': {exc}",
            ) from exc
        return True

    def ensure_bucket(self, bucket: str) -> bool:
        """Create ``bucket`` if it does not exist.

        Returns:
            True if the bucket was created, False if it already existed
        """
        if self.bucket_exists(bucket):
            return False

        kwargs: dict[str, Any] = {"Bucket": bucket}
        if self._region and self._region != DEFAULT_BUCKET_REGION:
            kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": self._region
            }

        logger.info(f"Creating bucket {bucket}")
        try:
            self._client.create_bucket(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(
                operation="upload",
                message=f"Failed to create bucket '{bucket}': {exc}",
            ) from exc
        return True

    def upload(self, bucket: str, key: str, path: Path | str) -> str:
        """Upload the file at ``path`` to ``bucket``/``key``.

        An existing object under the same key is overwritten.

        Returns:
            The object key

        Raises:
            FileNotFoundError: If the artifact does not exist locally
            DeploymentError: If any storage call fails
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(
                str(path), "Build the artifact before uploading it."
            )

        self.ensure_bucket(bucket)
        logger.info(f"Uploading {path.name} to s3://{bucket}/{key}")
        try:
            self._put_object(bucket, key, path)
        except (ClientError, BotoCoreError) as exc:
            raise DeploymentError(
                operation="upload",
                message=f"Failed to upload {path.name} to '{bucket}': {exc}",
            ) from exc
        return key

    def _put_object(self, bucket: str, key: str, path: Path) -> None:
        with path.open("rb") as body:
            self._client.put_object(Bucket=bucket, Key=key, Body=body)


class EncryptingArtifactStore(ArtifactStore):
    """Artifact store that encrypts object bodies before upload."""

    encrypted = True

    def __init__(
        self,
        client: Any,
        region: str | None = None,
        key_pair: RSAPrivateKey | None = None,
    ) -> None:
        super().__init__(client, region)
        self._key_pair = key_pair if key_pair is not None else generate_key_pair()

    @property
    def key_pair(self) -> RSAPrivateKey:
        return self._key_pair

    def _put_object(self, bucket: str, key: str, path: Path) -> None:
        with path.open("rb") as source, tempfile.SpooledTemporaryFile(
            max_size=SPOOL_MAX_BYTES
        ) as sink:
            metadata = encrypt_stream(source, sink, self._key_pair)
            sink.seek(0)
            self._client.put_object(
                Bucket=bucket, Key=key, Body=sink, Metadata=metadata
            )
