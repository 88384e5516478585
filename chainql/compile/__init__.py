"""chainQL compilation layer: QueryDescriptor → parameterized SQL."""
from chainql.compile.base import CompiledSQL
from chainql.compile.builder import StatementCompiler
from chainql.compile.clause_builders import WhereFragment

__all__ = [
    "CompiledSQL",
    "StatementCompiler",
    "WhereFragment",
]
