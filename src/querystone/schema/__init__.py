"""Schema builder module.

DDL rendering for tables, columns, indexes and databases. Column and index
builders hold dialect-independent definitions; the dialect they were
created for renders them.
"""

from querystone.schema.builder import SchemaBuilder
from querystone.schema.column import ColumnBuilder, ColumnDefinition
from querystone.schema.factory import SchemaBuilderFactory
from querystone.schema.index import IndexBuilder, IndexDefinition

__all__ = [
    "ColumnBuilder",
    "ColumnDefinition",
    "IndexBuilder",
    "IndexDefinition",
    "SchemaBuilder",
    "SchemaBuilderFactory",
]
