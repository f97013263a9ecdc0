from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from common.config import Settings
from registry.singleton import SingletonRegistry


logger = logging.getLogger(__name__)

BUNDLED_CAPITALS_FILE = Path(__file__).with_name("capitals.txt")


def _parse_capitals(lines: Iterable[str]) -> Dict[str, int]:
    """Parse alternating `name` / `population` lines, skipping blank lines."""
    cleaned: List[str] = [ln.strip() for ln in lines if ln.strip()]
    if len(cleaned) % 2:
        raise ValueError(f"capitals data has a dangling entry: {cleaned[-1]!r}")
    out: Dict[str, int] = {}
    for name, raw in zip(cleaned[0::2], cleaned[1::2]):
        try:
            out[name] = int(raw)
        except ValueError as ex:
            raise ValueError(f"invalid population for {name!r}: {raw!r}") from ex
    return out


class Database(Protocol):
    def get_population(self, name: str) -> int: ...


class PopulationDatabase:
    """
    City populations loaded from a capitals file.

    Meant to be reached through `get_database()`; constructing one reads the
    file, and `instance_count` records how many times that happened.
    """

    instance_count = 0
    _count_lock = threading.Lock()

    def __init__(self, path: Optional[os.PathLike[str] | str] = None) -> None:
        self._path = Path(path) if path else BUNDLED_CAPITALS_FILE
        logger.info("Loading population database from %s", self._path)
        with self._path.open("r", encoding="utf-8") as f:
            self._capitals = _parse_capitals(f)
        with PopulationDatabase._count_lock:
            PopulationDatabase.instance_count += 1

    @property
    def cities(self) -> List[str]:
        return sorted(self._capitals)

    def get_population(self, name: str) -> int:
        try:
            return self._capitals[name]
        except KeyError:
            raise KeyError(f"unknown city: {name!r}") from None


class DummyDatabase:
    """In-memory stand-in with three fixed entries, for unit tests."""

    def __init__(self) -> None:
        self._data = {"alpha": 1, "beta": 2, "gamma": 3}

    def get_population(self, name: str) -> int:
        return self._data[name]


def load_configured_database(settings: Optional[Settings] = None) -> PopulationDatabase:
    """Build the database from `SINGLETON_CAPITALS_FILE` (env or .env), else the bundled file."""
    settings = settings or Settings.from_env()
    return PopulationDatabase(settings.capitals_file)


_database = SingletonRegistry(load_configured_database, name="population_database")


def database_registry() -> SingletonRegistry[PopulationDatabase]:
    return _database


def get_database() -> PopulationDatabase:
    return _database.get_instance()


class SingletonRecordFinder:
    """Sums populations straight from the process-wide database."""

    def total_population(self, names: Iterable[str]) -> int:
        return sum(get_database().get_population(name) for name in names)


class ConfigurableRecordFinder:
    """Sums populations from whichever database it was given."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def total_population(self, names: Iterable[str]) -> int:
        return sum(self._database.get_population(name) for name in names)
