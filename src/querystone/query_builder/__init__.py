"""Query builder module.

Layout:
    - quoting: identifier and value quoting
    - clauses: clause accumulation, bracket groups
    - base: prepare/realize/flush lifecycle shared with the schema builder
    - statement: QueryBuilder, the public fluent API
"""

from querystone.query_builder.base import BaseBuilder
from querystone.query_builder.clauses import ClauseComposer
from querystone.query_builder.quoting import IdentifierQuoter, has_operator
from querystone.query_builder.statement import QueryBuilder

__all__ = [
    "BaseBuilder",
    "ClauseComposer",
    "IdentifierQuoter",
    "QueryBuilder",
    "has_operator",
]
