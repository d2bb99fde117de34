"""Model and recordset layer built on the query builder."""

from querystone.models.model import Model, snake_case
from querystone.models.record import RecordItem, field_getter, field_setter
from querystone.models.recordset import Recordset

__all__ = [
    "Model",
    "RecordItem",
    "Recordset",
    "field_getter",
    "field_setter",
    "snake_case",
]
