from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError

from common.config import DEFAULT_SNAPSHOT_KEY, ENV_SNAPSHOT_BUCKET, ENV_SNAPSHOT_KEY


logger = logging.getLogger(__name__)


class OptimisticLockError(Exception):
    """Raised when an ETag precondition fails during a conditional write."""


@dataclass
class S3ObjectRef:
    bucket: str
    key: str


class S3SnapshotStore:
    """
    S3-backed retention for snapshot blobs.

    The store moves opaque bytes; encryption and schema live in
    `state.codec.SnapshotCodec`.

    Usage
    - `read()` returns a `(data, etag)` pair. If the object does not exist,
      it returns `(None, None)`.
    - `write(data, if_match=None)` writes the bytes and returns the new ETag.
      When `if_match` is provided, uses a copy-based conditional update so the write
      succeeds only if the current object ETag matches `if_match` (optimistic lock).
    - `load()` / `save()` mirror `FileSnapshotStore` for callers that don't care
      about ETags.

    Environment variables (optional)
    - `SINGLETON_SNAPSHOT_BUCKET`: S3 bucket for the snapshot object
    - `SINGLETON_SNAPSHOT_KEY`:    S3 key (defaults to "singleton.snapshot")
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        key: str,
        region_name: Optional[str] = None,
    ) -> None:
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._obj = S3ObjectRef(bucket=bucket, key=key)

    # -------- Construction helpers --------
    @classmethod
    def from_env(cls) -> "S3SnapshotStore":
        bucket = os.environ.get(ENV_SNAPSHOT_BUCKET)
        key = os.environ.get(ENV_SNAPSHOT_KEY) or DEFAULT_SNAPSHOT_KEY
        if not bucket:
            raise RuntimeError(
                f"Missing required environment variables for S3 snapshot store: {ENV_SNAPSHOT_BUCKET}"
            )
        return cls(bucket=bucket, key=key)

    # -------- Core operations --------
    def read(self) -> Tuple[Optional[bytes], Optional[str]]:
        """Read the snapshot blob from S3.

        Returns: (data, etag)
        - If object not found, returns (None, None).
        Raises:
        - botocore.exceptions.ClientError for other S3 issues.
        """
        try:
            resp = self._s3.get_object(Bucket=self._obj.bucket, Key=self._obj.key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return (None, None)
            raise

        return (resp["Body"].read(), resp.get("ETag"))

    def write(self, data: bytes, *, if_match: Optional[str] = None) -> str:
        """Write the snapshot blob to S3; returns the new ETag.

        Args:
        - data: snapshot bytes as produced by `SnapshotCodec.encode`.
        - if_match: expected current ETag of the destination object for
          optimistic locking. If provided, the write proceeds only if the
          current object ETag matches `if_match`. Otherwise, an
          `OptimisticLockError` is raised.
        """
        if if_match is None:
            resp = self._s3.put_object(
                Bucket=self._obj.bucket,
                Key=self._obj.key,
                Body=data,
                ContentType="application/octet-stream",
            )
            return str(resp.get("ETag"))

        # PutObject has no If-Match, so upload to a temporary key and COPY it
        # over the destination with a precondition on the destination ETag.
        temp_key = f"{self._obj.key}.tmp-{uuid4().hex}"
        self._s3.put_object(
            Bucket=self._obj.bucket,
            Key=temp_key,
            Body=data,
            ContentType="application/octet-stream",
        )

        try:
            resp = self._s3.copy_object(
                Bucket=self._obj.bucket,
                Key=self._obj.key,
                CopySource={"Bucket": self._obj.bucket, "Key": temp_key},
                IfMatch=if_match,
                MetadataDirective="COPY",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("PreconditionFailed", "412"):
                raise OptimisticLockError(
                    f"ETag mismatch for s3://{self._obj.bucket}/{self._obj.key}"
                ) from e
            raise
        finally:
            try:
                self._s3.delete_object(Bucket=self._obj.bucket, Key=temp_key)
            except ClientError as e:
                logger.warning("Could not delete temporary snapshot %s: %s", temp_key, e)

        return str(resp.get("ETag"))

    def load(self) -> Optional[bytes]:
        data, _etag = self.read()
        return data

    def save(self, data: bytes) -> None:
        self.write(data)


__all__ = [
    "OptimisticLockError",
    "S3ObjectRef",
    "S3SnapshotStore",
]
