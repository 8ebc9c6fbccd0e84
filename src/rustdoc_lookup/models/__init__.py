"""Domain models for documentation lookups."""

from rustdoc_lookup.models.item import DocItemGraph, Entry, EntryKind, Item, ItemKind
from rustdoc_lookup.models.query import (
    LocalTarget,
    Provenance,
    QueryResult,
    QuerySpec,
    RemoteTarget,
    ResolutionContext,
    Target,
    VersionResolution,
    normalize_crate_name,
)

__all__ = [
    "DocItemGraph",
    "Entry",
    "EntryKind",
    "Item",
    "ItemKind",
    "LocalTarget",
    "Provenance",
    "QueryResult",
    "QuerySpec",
    "RemoteTarget",
    "ResolutionContext",
    "Target",
    "VersionResolution",
    "normalize_crate_name",
]
