"""
Common utilities for singleton-registry.

Modules:
- config: environment-driven settings (with .env support)
- logger_config: console / rotating-file logging setup
"""

__all__ = [
    "config",
    "logger_config",
]
