"""Execution engine: connection registry, statement execution and result caching."""

from querystone.engine.database import Database
from querystone.engine.driver import Driver, DriverState

__all__ = ["Database", "Driver", "DriverState"]
