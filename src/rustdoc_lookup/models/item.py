"""Documentation item graph models."""

from dataclasses import dataclass, field
from enum import Enum


class ItemKind(Enum):
    """Kinds of documented items."""

    MODULE = "module"
    FUNCTION = "function"
    STRUCT = "struct"
    UNION = "union"
    ENUM = "enum"
    VARIANT = "variant"
    TRAIT = "trait"
    TRAIT_ALIAS = "trait_alias"
    TYPE_ALIAS = "type"
    CONSTANT = "constant"
    STATIC = "static"
    MACRO = "macro"
    PROC_MACRO = "proc_macro"
    ASSOC_CONST = "assoc_const"
    ASSOC_TYPE = "assoc_type"
    STRUCT_FIELD = "struct_field"
    PRIMITIVE = "primitive"
    EXTERN_CRATE = "extern_crate"
    EXTERN_TYPE = "extern_type"
    REEXPORT = "reexport"
    OTHER = "other"


@dataclass(frozen=True)
class Item:
    """One documented item.

    ``associated`` holds ids of enum variants, trait items and inherent impl
    members, reachable as one extra path segment below this item.
    """

    id: str
    kind: ItemKind
    name: str
    owning_module: str | None
    visibility: str
    doc_text: str = ""
    signature_text: str = ""
    associated: tuple[str, ...] = ()

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"


class EntryKind(Enum):
    """How a declaration makes a name visible inside a module."""

    CHILD = "child"
    REEXPORT = "reexport"
    GLOB = "glob"


@dataclass(frozen=True)
class Entry:
    """One declaration inside a module, kept in schema order.

    ``name`` is None for glob imports, whose ``target`` is the source module.
    """

    name: str | None
    target: str
    kind: EntryKind


@dataclass(frozen=True)
class DocItemGraph:
    """Arena of items addressed by string ids.

    Containment (``entries`` of kind CHILD) forms a tree rooted at
    ``root_module``. Cycles may only appear through re-export edges:
    ``reexports`` maps ``(module_id, visible_name)`` to a target id, and
    ``aliases`` maps the id of a ``use`` declaration to its own
    ``(module_id, visible_name)`` key so a re-export can point at another one.
    """

    items: dict[str, Item]
    root_module: str
    entries: dict[str, tuple[Entry, ...]] = field(default_factory=dict)
    reexports: dict[tuple[str, str], str] = field(default_factory=dict)
    aliases: dict[str, tuple[str, str]] = field(default_factory=dict)
    glob_imports: dict[str, tuple[str, ...]] = field(default_factory=dict)
    crate_version: str | None = None
    format_version: int | None = None

    def children(self, module_id: str) -> tuple[Item, ...]:
        """Public items directly contained in a module, in declaration order."""
        return tuple(
            self.items[entry.target]
            for entry in self.entries.get(module_id, ())
            if entry.kind is EntryKind.CHILD
            and entry.target in self.items
            and self.items[entry.target].is_public
        )

    def child_named(self, module_id: str, name: str) -> Item | None:
        for child in self.children(module_id):
            if child.name == name:
                return child
        return None
