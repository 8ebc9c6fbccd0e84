"""Parse rustdoc JSON into a DocItemGraph."""

import json
from collections import deque
from typing import Any

import zstandard
from loguru import logger

from rustdoc_lookup.config import MAX_FORMAT_VERSION, MIN_FORMAT_VERSION
from rustdoc_lookup.core.model.signature import render_signature
from rustdoc_lookup.errors import SchemaError
from rustdoc_lookup.models.item import DocItemGraph, Entry, EntryKind, Item, ItemKind

ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"

_KINDS = {
    "module": ItemKind.MODULE,
    "function": ItemKind.FUNCTION,
    "struct": ItemKind.STRUCT,
    "union": ItemKind.UNION,
    "enum": ItemKind.ENUM,
    "variant": ItemKind.VARIANT,
    "trait": ItemKind.TRAIT,
    "trait_alias": ItemKind.TRAIT_ALIAS,
    "type_alias": ItemKind.TYPE_ALIAS,
    "constant": ItemKind.CONSTANT,
    "static": ItemKind.STATIC,
    "macro": ItemKind.MACRO,
    "proc_macro": ItemKind.PROC_MACRO,
    "assoc_const": ItemKind.ASSOC_CONST,
    "assoc_type": ItemKind.ASSOC_TYPE,
    "struct_field": ItemKind.STRUCT_FIELD,
    "primitive": ItemKind.PRIMITIVE,
    "extern_crate": ItemKind.EXTERN_CRATE,
    "extern_type": ItemKind.EXTERN_TYPE,
}

# Item kinds that never become graph nodes of their own.
_STRUCTURAL = frozenset({"impl", "use"})


def decompress(data: bytes) -> bytes:
    """Return ``data`` unchanged unless it is a zstd frame."""
    if not data.startswith(ZSTD_MAGIC):
        return data
    try:
        with zstandard.ZstdDecompressor().stream_reader(data) as reader:
            return reader.read()
    except zstandard.ZstdError as e:
        msg = f"Could not decompress documentation: {e}"
        raise SchemaError(msg) from e


def _inner(item: dict[str, Any]) -> tuple[str, Any]:
    """Return ``(kind tag, payload)`` from an item's externally tagged ``inner``."""
    inner = item.get("inner")
    if isinstance(inner, dict) and len(inner) == 1:
        tag, payload = next(iter(inner.items()))
        return tag, payload
    if isinstance(inner, str):
        return inner, None
    return "", None


def _visibility(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return "restricted"
    return "default"


def _payload(item_id: str, tag: str, payload: Any) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        msg = f"Item {item_id}: '{tag}' must be an object, got {type(payload).__name__}"
        raise SchemaError(msg)
    return payload


def _ids(values: Any) -> list[str]:
    if values is None:
        return []
    if not isinstance(values, list):
        msg = f"Expected a list of item ids, got {type(values).__name__}"
        raise SchemaError(msg)
    return [str(v) for v in values if v is not None]


def _name(item_id: str, raw: dict[str, Any]) -> str | None:
    name = raw.get("name")
    if name is not None and not isinstance(name, str):
        msg = f"Item {item_id} has a non-string name"
        raise SchemaError(msg)
    return name


def parse(data: bytes) -> DocItemGraph:
    """Build a DocItemGraph from (optionally zstd-compressed) rustdoc JSON.

    Raises:
        SchemaError: Not JSON, an unsupported ``format_version``, missing
            top-level fields, wrongly shaped item fields, or module
            containment that is not a tree.
    """
    raw = decompress(data)
    try:
        doc = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        msg = f"Documentation is not valid JSON: {e}"
        raise SchemaError(msg) from e
    if not isinstance(doc, dict):
        msg = "Documentation root must be a JSON object"
        raise SchemaError(msg)

    fmt = doc.get("format_version")
    if not isinstance(fmt, int):
        msg = "Documentation has no format_version"
        raise SchemaError(msg)
    if not MIN_FORMAT_VERSION <= fmt <= MAX_FORMAT_VERSION:
        msg = (
            f"Unsupported rustdoc format_version {fmt} "
            f"(supported: {MIN_FORMAT_VERSION}-{MAX_FORMAT_VERSION})"
        )
        raise SchemaError(msg)

    index = doc.get("index")
    if not isinstance(index, dict) or "root" not in doc:
        msg = "Documentation is missing 'root' or 'index'"
        raise SchemaError(msg)
    raw_items: dict[str, dict[str, Any]] = {str(k): v for k, v in index.items() if isinstance(v, dict)}
    root_id = str(doc["root"])
    if _inner(raw_items.get(root_id, {}))[0] != "module":
        msg = f"Root item {root_id} is not a module"
        raise SchemaError(msg)

    return _GraphBuilder(raw_items, root_id).build(doc.get("crate_version"), fmt)


class _GraphBuilder:
    def __init__(self, raw_items: dict[str, dict[str, Any]], root_id: str) -> None:
        self.raw = raw_items
        self.root_id = root_id
        self.items: dict[str, Item] = {}
        self.owner: dict[str, str] = {}
        self.inherited_vis: dict[str, str] = {}
        self.entries: dict[str, tuple[Entry, ...]] = {}
        self.reexports: dict[tuple[str, str], str] = {}
        self.aliases: dict[str, tuple[str, str]] = {}
        self.glob_imports: dict[str, tuple[str, ...]] = {}

    def build(self, crate_version: str | None, fmt: int) -> DocItemGraph:
        self._walk_modules()
        self._inherit_visibility()
        for item_id in self.raw:
            self._convert(item_id)
        logger.debug(
            "Parsed {} items, {} re-exports (format {})", len(self.items), len(self.reexports), fmt
        )
        return DocItemGraph(
            items=self.items,
            root_module=self.root_id,
            entries=self.entries,
            reexports=self.reexports,
            aliases=self.aliases,
            glob_imports=self.glob_imports,
            crate_version=crate_version,
            format_version=fmt,
        )

    def _walk_modules(self) -> None:
        """Record module entries breadth-first, checking containment is a tree."""
        seen = {self.root_id}
        todo = deque([self.root_id])
        while todo:
            module_id = todo.popleft()
            _, payload = _inner(self.raw[module_id])
            payload = _payload(module_id, "module", payload)
            entries: list[Entry] = []
            globs: list[str] = []
            for child_id in _ids(payload.get("items")):
                child = self.raw.get(child_id)
                if child is None:
                    continue
                tag, inner = _inner(child)
                if tag == "use":
                    entry = self._use_entry(module_id, child_id, child, _payload(child_id, tag, inner))
                    if entry is not None:
                        entries.append(entry)
                        if entry.kind is EntryKind.GLOB:
                            globs.append(entry.target)
                    continue
                name = _name(child_id, child)
                if tag in _STRUCTURAL or not name:
                    continue
                self.owner[child_id] = module_id
                entries.append(Entry(name=name, target=child_id, kind=EntryKind.CHILD))
                if tag == "module":
                    if child_id in seen:
                        msg = f"Module {child_id} is contained in more than one module"
                        raise SchemaError(msg)
                    seen.add(child_id)
                    todo.append(child_id)
            self.entries[module_id] = tuple(entries)
            if globs:
                self.glob_imports[module_id] = tuple(globs)

    def _use_entry(
        self, module_id: str, use_id: str, use: dict[str, Any], inner: dict[str, Any]
    ) -> Entry | None:
        if _visibility(use.get("visibility")) != "public":
            return None
        target = inner.get("id")
        target_id = str(target) if target is not None else None
        source = inner.get("source") or ""
        if not isinstance(source, str):
            msg = f"Item {use_id}: use source must be a string"
            raise SchemaError(msg)

        if inner.get("is_glob"):
            if target_id is None or target_id not in self.raw:
                logger.debug("Skipping glob import of external {}", source)
                return None
            return Entry(name=None, target=target_id, kind=EntryKind.GLOB)

        name = inner.get("name") or _name(use_id, use)
        if not isinstance(name, str) or not name:
            return None
        key = (module_id, name)
        self.aliases[use_id] = key
        if target_id is None or target_id not in self.raw:
            # Target lives in another crate: keep a leaf describing the import.
            self.items[use_id] = Item(
                id=use_id,
                kind=ItemKind.REEXPORT,
                name=name,
                owning_module=module_id,
                visibility="public",
                doc_text=use.get("docs") or "",
                signature_text=_use_signature(source, name),
            )
            target_id = use_id
        self.reexports[key] = target_id
        return Entry(name=name, target=target_id, kind=EntryKind.REEXPORT)

    def _inherit_visibility(self) -> None:
        """Enum variants and trait items take their parent's visibility."""
        for raw in self.raw.values():
            tag, inner = _inner(raw)
            if tag not in ("enum", "trait") or not isinstance(inner, dict):
                continue
            parent_vis = _visibility(raw.get("visibility"))
            members = inner.get("variants") if tag == "enum" else inner.get("items")
            for member in _ids(members):
                self.inherited_vis[member] = parent_vis

    def _associated(self, tag: str, inner: dict[str, Any]) -> list[str]:
        if tag == "enum":
            return _ids(inner.get("variants")) + self._inherent_members(inner.get("impls"))
        if tag == "trait":
            return _ids(inner.get("items"))
        if tag in ("struct", "union", "primitive"):
            return self._inherent_members(inner.get("impls"))
        return []

    def _inherent_members(self, impl_ids: Any) -> list[str]:
        members = []
        for impl_id in _ids(impl_ids):
            impl = self.raw.get(impl_id)
            if impl is None:
                continue
            tag, inner = _inner(impl)
            if tag != "impl" or not isinstance(inner, dict):
                continue
            if inner.get("trait") is not None or inner.get("is_synthetic", inner.get("synthetic")):
                continue
            if inner.get("blanket_impl") is not None:
                continue
            members.extend(
                i for i in _ids(inner.get("items"))
                if _visibility(self.raw.get(i, {}).get("visibility")) == "public"
            )
        return members

    def _convert(self, item_id: str) -> None:
        if item_id in self.items:
            return
        raw = self.raw[item_id]
        tag, inner = _inner(raw)
        name = _name(item_id, raw)
        if tag in _STRUCTURAL or not name:
            return

        kind = _KINDS.get(tag, ItemKind.OTHER)
        visibility = _visibility(raw.get("visibility"))
        if visibility == "default" and item_id in self.inherited_vis:
            visibility = self.inherited_vis[item_id]

        associated: list[str] = []
        if isinstance(inner, dict):
            associated = [i for i in self._associated(tag, inner) if i in self.raw]

        self.items[item_id] = Item(
            id=item_id,
            kind=kind,
            name=name,
            owning_module=self.owner.get(item_id),
            visibility=visibility,
            doc_text=raw.get("docs") or "",
            signature_text=render_signature(tag, name, inner, public=visibility == "public"),
            associated=tuple(dict.fromkeys(associated)),
        )


def _use_signature(source: str, name: str) -> str:
    if source.rsplit("::", 1)[-1] == name:
        return f"pub use {source}"
    return f"pub use {source} as {name}"
