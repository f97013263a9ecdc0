from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from state.models import InstanceSnapshot


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_REGISTRY_NAME = "guarded_instance"


class InitializationError(RuntimeError):
    """Raised when first-time construction of a singleton fails."""

    def __init__(self, message: str, *, registry_name: str) -> None:
        super().__init__(message)
        self.registry_name = registry_name


class RegistryState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


# Every registry ever created, by name. Entries are never removed once a
# registry is constructed, so a name always resolves to the same instance.
_REGISTRIES: "Dict[str, SingletonRegistry[Any]]" = {}
_REGISTRIES_LOCK = threading.Lock()


class SingletonRegistry(Generic[T]):
    """
    Owns at most one instance produced by `factory`.

    - `get_instance()` creates the instance on first use (double-checked
      locking: unlocked fast path, then lock + re-check on the slow path).
    - A failing factory leaves the registry UNINITIALIZED; the next call retries.
    - `eager=True` creates the instance in the constructor instead.
    - The transition UNINITIALIZED -> READY is one-way.
    """

    def __init__(self, factory: Callable[[], T], *, name: str, eager: bool = False) -> None:
        if not name:
            raise ValueError("name is required")
        self._factory = factory
        self._name = name
        self._instance: Optional[T] = None
        self._constructions = 0
        self._lock = threading.Lock()

        with _REGISTRIES_LOCK:
            if name in _REGISTRIES:
                raise ValueError(f"singleton registry name already in use: {name!r}")
            _REGISTRIES[name] = self

        if eager:
            try:
                self.get_instance()
            except InitializationError:
                with _REGISTRIES_LOCK:
                    _REGISTRIES.pop(name, None)
                raise

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> RegistryState:
        return RegistryState.READY if self._instance is not None else RegistryState.UNINITIALIZED

    @property
    def is_initialized(self) -> bool:
        return self._instance is not None

    @property
    def construction_count(self) -> int:
        return self._constructions

    def peek(self) -> Optional[T]:
        """Return the instance if it exists, without creating it."""
        return self._instance

    def get_instance(self) -> T:
        instance = self._instance
        if instance is not None:
            return instance
        with self._lock:
            # Another thread may have created it while we waited for the lock
            if self._instance is None:
                self._instance = self._create()
            return self._instance

    def _create(self) -> T:
        logger.debug("Initializing singleton %s", self._name)
        try:
            instance = self._factory()
        except InitializationError:
            logger.warning("Initialization of singleton %s failed", self._name)
            raise
        except Exception as ex:
            logger.warning("Initialization of singleton %s failed: %s", self._name, ex)
            raise InitializationError(
                f"Failed to initialize singleton {self._name!r}: {ex}",
                registry_name=self._name,
            ) from ex
        if instance is None:
            raise InitializationError(
                f"Factory for singleton {self._name!r} returned None",
                registry_name=self._name,
            )
        self._constructions += 1
        logger.info("Singleton %s initialized", self._name)
        return instance

    def __repr__(self) -> str:
        return f"SingletonRegistry(name={self._name!r}, state={self.state.value})"


def lookup_registry(name: str) -> SingletonRegistry[Any]:
    registry = _REGISTRIES.get(name)
    if registry is None:
        raise LookupError(f"no singleton registry named {name!r}")
    return registry


def resolve_instance(name: str) -> Any:
    """Return the live instance of the registry called `name`.

    Used as the unpickling hook of `GuardedInstance`, so loading a pickle
    yields the existing instance rather than a copy.
    """
    return lookup_registry(name).get_instance()


class GuardedInstance:
    """Mutable integer payload shared through a SingletonRegistry."""

    def __init__(self, value: int = 0, *, owner: str = DEFAULT_REGISTRY_NAME) -> None:
        self._owner = owner
        self._value = 0
        self.set(value)

    @property
    def owner(self) -> str:
        return self._owner

    def get(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"value must be int, got {type(value).__name__}")
        self._value = value

    def to_snapshot(self) -> InstanceSnapshot:
        return InstanceSnapshot(owner=self._owner, value=self._value)

    def __reduce__(self):
        return (resolve_instance, (self._owner,))

    def __copy__(self) -> "GuardedInstance":
        return self

    def __deepcopy__(self, memo: dict) -> "GuardedInstance":
        return self

    def __repr__(self) -> str:
        return f"GuardedInstance(owner={self._owner!r}, value={self._value})"


def guarded_registry(
    name: str,
    *,
    seed: Optional[Callable[[], int]] = None,
    eager: bool = False,
) -> SingletonRegistry[GuardedInstance]:
    """Build a registry of `GuardedInstance` owned by `name`.

    `seed`, when given, supplies the initial value at construction time; if it
    raises, construction fails with InitializationError and can be retried.
    """

    def factory() -> GuardedInstance:
        value = seed() if seed is not None else 0
        return GuardedInstance(value, owner=name)

    return SingletonRegistry(factory, name=name, eager=eager)


_default_registry = guarded_registry(DEFAULT_REGISTRY_NAME)


def default_registry() -> SingletonRegistry[GuardedInstance]:
    return _default_registry


def get_instance() -> GuardedInstance:
    """Global accessor for the process-wide GuardedInstance."""
    return _default_registry.get_instance()


__all__ = [
    "DEFAULT_REGISTRY_NAME",
    "GuardedInstance",
    "InitializationError",
    "RegistryState",
    "SingletonRegistry",
    "default_registry",
    "get_instance",
    "guarded_registry",
    "lookup_registry",
    "resolve_instance",
]
