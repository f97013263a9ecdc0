from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Optional, TypeVar

from .singleton import InitializationError


logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class Multiton(Generic[K, T]):
    """
    One lazily created instance per key.

    - `factory(key)` builds the instance for a key the first time it is requested.
    - `keys`, when given (an Enum class works), is the closed set of allowed keys.
    - `name` identifies the multiton in logs and in InitializationError.
    - Same double-checked locking as SingletonRegistry; one lock for all keys
      since creation is rare.
    """

    def __init__(
        self,
        factory: Callable[[K], T],
        *,
        name: str = "multiton",
        keys: Optional[Iterable[K]] = None,
    ) -> None:
        self._name = name
        self._factory = factory
        self._allowed = frozenset(keys) if keys is not None else None
        self._instances: Dict[K, T] = {}
        self._lock = threading.Lock()

    @property
    def instance_count(self) -> int:
        return len(self._instances)

    def created_keys(self) -> List[K]:
        with self._lock:
            return list(self._instances)

    def __contains__(self, key: object) -> bool:
        return key in self._instances

    def get(self, key: K) -> T:
        instance = self._instances.get(key)
        if instance is not None:
            return instance

        if self._allowed is not None and key not in self._allowed:
            raise KeyError(f"unknown multiton key: {key!r}")

        with self._lock:
            instance = self._instances.get(key)
            if instance is None:
                instance = self._create(key)
                self._instances[key] = instance
            return instance

    def _create(self, key: K) -> T:
        try:
            instance = self._factory(key)
        except InitializationError:
            logger.warning("Initialization of %s instance %r failed", self._name, key)
            raise
        except Exception as ex:
            logger.warning("Initialization of %s instance %r failed: %s", self._name, key, ex)
            raise InitializationError(
                f"Failed to initialize {self._name!r} instance {key!r}: {ex}",
                registry_name=self._name,
            ) from ex
        if instance is None:
            raise InitializationError(
                f"Factory for {self._name!r} instance {key!r} returned None",
                registry_name=self._name,
            )
        logger.info(
            "%s instance %r initialized (%d total)", self._name, key, len(self._instances) + 1
        )
        return instance
