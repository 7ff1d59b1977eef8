"""
Storage module.

The counter store implementation is in storage.database.
"""

from .database import Database, EXPECTED_SCHEMA_VERSION, PERIOD_FORMATS

__all__ = ["Database", "EXPECTED_SCHEMA_VERSION", "PERIOD_FORMATS"]
