"""Look up Rust crate documentation from docs.rs or local rustdoc builds."""

from rustdoc_lookup.engine import DocsEngine, QueryOptions, build_engine
from rustdoc_lookup.errors import DocsLookupError
from rustdoc_lookup.models import QueryResult, QuerySpec, ResolutionContext
from rustdoc_lookup.spec_parser import parse_query_spec

__all__ = [
    "DocsEngine",
    "DocsLookupError",
    "QueryOptions",
    "QueryResult",
    "QuerySpec",
    "ResolutionContext",
    "build_engine",
    "parse_query_spec",
]
