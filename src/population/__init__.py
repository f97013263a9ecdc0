"""
Population lookups through a singleton database versus an injected one.
"""

from .database import (
    ConfigurableRecordFinder,
    Database,
    DummyDatabase,
    PopulationDatabase,
    SingletonRecordFinder,
    get_database,
)

__all__ = [
    "ConfigurableRecordFinder",
    "Database",
    "DummyDatabase",
    "PopulationDatabase",
    "SingletonRecordFinder",
    "get_database",
]
