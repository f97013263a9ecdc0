from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from state.codec import DecodeError, SnapshotCodec

from .singleton import GuardedInstance, SingletonRegistry, default_registry


logger = logging.getLogger(__name__)

_PLAIN_CODEC = SnapshotCodec()


class SnapshotSource(Protocol):
    def load(self) -> Optional[bytes]: ...


def snapshot(instance: GuardedInstance, *, codec: Optional[SnapshotCodec] = None) -> bytes:
    """Encode the instance's current payload into snapshot bytes."""
    codec = codec or _PLAIN_CODEC
    return codec.encode(instance.to_snapshot())


def restore(
    data: bytes,
    *,
    registry: Optional[SingletonRegistry[GuardedInstance]] = None,
    codec: Optional[SnapshotCodec] = None,
    apply_payload: bool = False,
) -> GuardedInstance:
    """
    Resolve snapshot bytes back to the registry's live instance.

    The bytes are fully decoded before the registry is touched, so a
    DecodeError leaves the live instance as it was. By default the live
    payload is returned unchanged; with `apply_payload=True` the decoded
    value is written into it.

    Raises:
    - DecodeError if the bytes are malformed, from another snapshot version,
      or were taken from a different registry.
    - InitializationError if the live instance did not exist yet and
      could not be created.
    """
    codec = codec or _PLAIN_CODEC
    registry = registry or default_registry()

    decoded = codec.decode(data)
    if decoded.owner != registry.name:
        raise DecodeError(
            f"Snapshot belongs to registry {decoded.owner!r}, not {registry.name!r}"
        )

    instance = registry.get_instance()
    if apply_payload:
        instance.set(decoded.value)
        logger.info("Applied snapshot value to singleton %s", registry.name)
    return instance


def naive_restore(data: bytes, *, codec: Optional[SnapshotCodec] = None) -> GuardedInstance:
    """Decode into a detached GuardedInstance that no registry knows about.

    This is what a plain deserializer does: the result has the snapshot's
    value but is a different object from the live singleton.
    """
    codec = codec or _PLAIN_CODEC
    decoded = codec.decode(data)
    return GuardedInstance(decoded.value, owner=decoded.owner)


def stored_value_seed(
    store: SnapshotSource,
    *,
    codec: Optional[SnapshotCodec] = None,
    default: int = 0,
) -> Callable[[], int]:
    """Seed callable for `guarded_registry` that starts from a saved snapshot."""
    codec = codec or _PLAIN_CODEC

    def seed() -> int:
        data = store.load()
        if data is None:
            return default
        return codec.decode(data).value

    return seed


__all__ = [
    "SnapshotSource",
    "naive_restore",
    "restore",
    "snapshot",
    "stored_value_seed",
]
