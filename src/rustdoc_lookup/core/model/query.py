"""Path resolution and filtered listing over a DocItemGraph."""

import dataclasses

from loguru import logger

from rustdoc_lookup.errors import PathNotFound, ReexportCycle
from rustdoc_lookup.models.item import DocItemGraph, EntryKind, Item, ItemKind


def _follow_reexport(graph: DocItemGraph, key: tuple[str, str]) -> str:
    """Follow a re-export (and any re-export it points at) to a real item id."""
    seen: set[tuple[str, str]] = set()
    while True:
        if key in seen:
            msg = f"Re-export cycle through '{key[1]}' in {_module_label(graph, key[0])}"
            raise ReexportCycle(msg)
        seen.add(key)
        target = graph.reexports[key]
        if target in graph.items:
            return target
        next_key = graph.aliases.get(target)
        if next_key is None or next_key not in graph.reexports:
            msg = f"Re-export '{key[1]}' points at an unknown item"
            raise PathNotFound(msg)
        key = next_key


def _module_label(graph: DocItemGraph, module_id: str) -> str:
    item = graph.items.get(module_id)
    if item is None or module_id == graph.root_module:
        return "crate root"
    return f"module '{item.name}'"


def _associated_named(graph: DocItemGraph, item: Item, name: str) -> str | None:
    for member_id in item.associated:
        member = graph.items.get(member_id)
        if member is not None and member.name == name:
            return member_id
    return None


def _lookup_in_module(
    graph: DocItemGraph, module_id: str, name: str, searched: set[str]
) -> tuple[str, bool] | None:
    """Find ``name`` in a module: children, then re-exports, then glob imports.

    ``searched`` holds the modules already searched. Glob imports may point
    at each other, so a module is searched at most once.

    Returns ``(item_id, via_reexport)`` or None.
    """
    child = graph.child_named(module_id, name)
    if child is not None:
        return child.id, False

    key = (module_id, name)
    if key in graph.reexports:
        return _follow_reexport(graph, key), True

    for source_id in graph.glob_imports.get(module_id, ()):
        if source_id in searched:
            continue
        source = graph.items.get(source_id)
        if source is None:
            continue
        if source.kind is ItemKind.MODULE:
            searched.add(source_id)
            found = _lookup_in_module(graph, source_id, name, searched)
            if found is not None:
                return found[0], True
        else:
            member_id = _associated_named(graph, source, name)
            if member_id is not None:
                return member_id, True
    return None


def resolve_path(graph: DocItemGraph, segments: tuple[str, ...] | list[str]) -> str:
    """Walk ``segments`` from the crate root and return the item id reached.

    Below a non-module item one more segment may name an associated item
    (enum variant, trait item, or inherent method).

    Raises:
        PathNotFound: A segment does not name anything visible.
        ReexportCycle: Re-exports lead back to a module already on the path.
    """
    current = graph.root_module
    visited = {current}
    walked: list[str] = []
    for segment in segments:
        item = graph.items[current]
        via_reexport = False
        if item.kind is ItemKind.MODULE:
            found = _lookup_in_module(graph, current, segment, {current})
            next_id = None
            if found is not None:
                next_id, via_reexport = found
        else:
            next_id = _associated_named(graph, item, segment)

        if next_id is None:
            where = "::".join(walked) or "crate root"
            msg = f"No item named '{segment}' in {where}"
            raise PathNotFound(msg)

        if graph.items[next_id].kind is ItemKind.MODULE:
            if via_reexport and next_id in visited:
                msg = f"Re-export '{segment}' leads back to a module already on the path"
                raise ReexportCycle(msg)
            visited.add(next_id)
        walked.append(segment)
        current = next_id
    return current


def query(graph: DocItemGraph, scope_id: str, filter_term: str | None = None) -> tuple[Item, ...]:
    """List what a path names.

    A leaf scope yields itself (the filter is ignored). A module yields its
    direct public children, re-exports under their visible name, and the
    contents of glob imports, in declaration order, optionally narrowed by a
    case-insensitive substring of the name.
    """
    scope = graph.items.get(scope_id)
    if scope is None:
        msg = f"Unknown item id {scope_id}"
        raise PathNotFound(msg)
    if scope.kind is not ItemKind.MODULE:
        return (scope,)

    items: list[Item] = []
    _collect(graph, scope_id, items, {scope_id})
    if filter_term:
        needle = filter_term.casefold()
        items = [item for item in items if needle in item.name.casefold()]
    return tuple(items)


def _collect(graph: DocItemGraph, module_id: str, out: list[Item], expanded: set[str]) -> None:
    for entry in graph.entries.get(module_id, ()):
        if entry.kind is EntryKind.CHILD:
            item = graph.items.get(entry.target)
            if item is not None and item.is_public:
                out.append(item)
        elif entry.kind is EntryKind.REEXPORT:
            try:
                target_id = _follow_reexport(graph, (module_id, entry.name))
            except (ReexportCycle, PathNotFound) as e:
                logger.debug("Skipping re-export {}: {}", entry.name, e)
                continue
            target = graph.items[target_id]
            if target.name != entry.name:
                target = dataclasses.replace(target, name=entry.name)
            out.append(target)
        elif entry.target not in expanded:
            expanded.add(entry.target)
            source = graph.items.get(entry.target)
            if source is None:
                continue
            if source.kind is ItemKind.MODULE:
                _collect(graph, entry.target, out, expanded)
            else:
                out.extend(graph.items[i] for i in source.associated if i in graph.items)
