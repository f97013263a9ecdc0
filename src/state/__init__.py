"""
Snapshot schema, codec and retention stores.

A snapshot is the deterministic JSON encoding of `InstanceSnapshot`,
optionally encrypted with Fernet, kept in a local file or in S3.
"""

from .codec import DecodeError, SnapshotCodec
from .file_store import FileSnapshotStore
from .models import SNAPSHOT_VERSION, InstanceSnapshot

__all__ = [
    "DecodeError",
    "FileSnapshotStore",
    "InstanceSnapshot",
    "SNAPSHOT_VERSION",
    "SnapshotCodec",
]
