"""
Thread-safe singleton and multiton registries.

- singleton: SingletonRegistry, GuardedInstance and the process-wide accessor
- snapshot: snapshot/restore that resolves back to the live instance
- multiton: one instance per key
"""

from state.codec import DecodeError

from .multiton import Multiton
from .singleton import (
    DEFAULT_REGISTRY_NAME,
    GuardedInstance,
    InitializationError,
    RegistryState,
    SingletonRegistry,
    default_registry,
    get_instance,
    guarded_registry,
)
from .snapshot import naive_restore, restore, snapshot, stored_value_seed

__all__ = [
    "DEFAULT_REGISTRY_NAME",
    "DecodeError",
    "GuardedInstance",
    "InitializationError",
    "Multiton",
    "RegistryState",
    "SingletonRegistry",
    "default_registry",
    "get_instance",
    "guarded_registry",
    "naive_restore",
    "restore",
    "snapshot",
    "stored_value_seed",
]
