from __future__ import annotations

import json
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from common.config import ENV_FERNET_KEY

from .models import SNAPSHOT_VERSION, InstanceSnapshot


class DecodeError(ValueError):
    """Raised when snapshot bytes are malformed or from an incompatible version."""


def _to_fernet(key: str | bytes) -> Fernet:
    """Construct a Fernet instance from a user-provided key.

    The key must be a URL-safe base64-encoded 32-byte key (str or bytes),
    as returned by `cryptography.fernet.Fernet.generate_key()`.
    """
    if isinstance(key, str):
        key_bytes = key.encode("utf-8")
    else:
        key_bytes = key
    return Fernet(key_bytes)


class SnapshotCodec:
    """
    Encode/decode facility for `InstanceSnapshot`.

    - `encode()` produces deterministic JSON bytes (stable key order, no extra
      whitespace), encrypted with Fernet when a key is configured.
    - `decode()` reverses it and raises `DecodeError` for anything it cannot
      turn back into a valid snapshot of the current version.
    """

    def __init__(self, *, fernet_key: Optional[str | bytes] = None) -> None:
        self._fernet = _to_fernet(fernet_key) if fernet_key else None

    @classmethod
    def from_env(cls) -> "SnapshotCodec":
        key = os.environ.get(ENV_FERNET_KEY) or None
        return cls(fernet_key=key)

    @property
    def encrypted(self) -> bool:
        return self._fernet is not None

    def encode(self, snapshot: InstanceSnapshot) -> bytes:
        payload = json.dumps(
            snapshot.model_dump(), separators=(",", ":"), sort_keys=True
        ).encode("utf-8")
        if self._fernet is None:
            return payload
        return self._fernet.encrypt(payload)

    def decode(self, data: bytes) -> InstanceSnapshot:
        """Decode snapshot bytes.

        Raises:
        - DecodeError for non-bytes input, an invalid Fernet token, invalid
          UTF-8/JSON, a version other than SNAPSHOT_VERSION, or a payload that
          does not match the schema.
        """
        if not isinstance(data, (bytes, bytearray)):
            raise DecodeError(f"snapshot must be bytes, got {type(data).__name__}")

        plaintext = bytes(data)
        if self._fernet is not None:
            try:
                plaintext = self._fernet.decrypt(plaintext)
            except InvalidToken as ex:
                raise DecodeError("Failed to decrypt snapshot: invalid Fernet token") from ex

        try:
            raw = json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as ex:
            raise DecodeError("Failed to parse snapshot JSON") from ex

        if not isinstance(raw, dict):
            raise DecodeError("Snapshot JSON must be an object")

        version = raw.get("version")
        # bool and float compare equal to 1, so check the type too
        if type(version) is not int or version != SNAPSHOT_VERSION:
            raise DecodeError(
                f"Unsupported snapshot version {version!r} (expected {SNAPSHOT_VERSION})"
            )

        try:
            return InstanceSnapshot.model_validate(raw)
        except ValidationError as ex:
            raise DecodeError("Snapshot does not match the expected schema") from ex


__all__ = [
    "DecodeError",
    "SnapshotCodec",
]
