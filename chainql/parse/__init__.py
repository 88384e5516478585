"""chainQL input normalization: loose fluent arguments → descriptor entries."""
from chainql.parse.normalizers import (
    identifier,
    parse_columns,
    parse_join_on,
    parse_where,
    parse_where_null,
)

__all__ = [
    "identifier",
    "parse_columns",
    "parse_join_on",
    "parse_where",
    "parse_where_null",
]
