"""chainQL schema models: QueryDescriptor, input specs, introspection records."""
from chainql.schema.descriptor import (
    Comparison,
    JoinClause,
    Membership,
    OrderClause,
    QueryDescriptor,
    SelectColumn,
)
from chainql.schema.introspection import ColumnInfo, IndexInfo
from chainql.schema.operators import (
    WHERE_OPERATORS,
    SortDirection,
    validate_operator,
    validate_sort_direction,
)

__all__ = [
    "Comparison",
    "JoinClause",
    "Membership",
    "OrderClause",
    "QueryDescriptor",
    "SelectColumn",
    "ColumnInfo",
    "IndexInfo",
    "WHERE_OPERATORS",
    "SortDirection",
    "validate_operator",
    "validate_sort_direction",
]
