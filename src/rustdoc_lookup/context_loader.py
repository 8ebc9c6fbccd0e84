"""Build a ResolutionContext from ``cargo metadata``."""

import json
import subprocess
from collections import defaultdict
from pathlib import Path
from typing import Any

from loguru import logger

from rustdoc_lookup.config import CARGO_BIN
from rustdoc_lookup.models.query import ResolutionContext, normalize_crate_name

METADATA_TIMEOUT = 60.0


def find_manifest_dir(start: Path | None = None) -> Path | None:
    """Return the nearest directory at or above ``start`` holding a Cargo.toml."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / "Cargo.toml").is_file():
            return candidate
    return None


def context_from_metadata(meta: dict[str, Any]) -> ResolutionContext:
    """Map ``cargo metadata --format-version 1`` output onto a ResolutionContext.

    Direct dependencies are those of every workspace member. Dev and build
    dependencies count too, since their docs are just as useful to look up.
    """
    packages = {pkg["id"]: pkg for pkg in meta.get("packages", ())}
    member_ids = set(meta.get("workspace_members", ()))

    members: dict[str, Path] = {}
    for pkg_id in sorted(member_ids):
        pkg = packages.get(pkg_id)
        if pkg is not None:
            members[normalize_crate_name(pkg["name"])] = Path(pkg["manifest_path"]).parent

    graph: dict[str, set[tuple[str, str]]] = defaultdict(set)
    direct: dict[str, str] = {}
    for node in (meta.get("resolve") or {}).get("nodes", ()):
        pkg = packages.get(node["id"])
        if pkg is None:
            continue
        name = normalize_crate_name(pkg["name"])
        for dep in node.get("deps", ()):
            dep_pkg = packages.get(dep.get("pkg"))
            if dep_pkg is None:
                continue
            dep_name = normalize_crate_name(dep_pkg["name"])
            graph[name].add((dep_name, dep_pkg["version"]))
            if node["id"] in member_ids and dep.get("pkg") not in member_ids:
                direct.setdefault(dep_name, dep_pkg["version"])

    return ResolutionContext(
        direct_dependencies=direct,
        dependency_graph={name: frozenset(deps) for name, deps in graph.items()},
        workspace_members=members,
    )


def load_context(manifest_dir: Path | None = None) -> ResolutionContext:
    """Run ``cargo metadata`` for the project around ``manifest_dir``.

    Outside a Cargo project, or when cargo is unavailable or fails, the empty
    context is returned and every lookup falls back to the registry.
    """
    if manifest_dir is None:
        manifest_dir = find_manifest_dir()
    if manifest_dir is None:
        logger.debug("No Cargo.toml found, using empty dependency context")
        return ResolutionContext.empty()

    cmd = [CARGO_BIN, "metadata", "--format-version", "1"]
    try:
        proc = subprocess.run(
            cmd,
            cwd=manifest_dir,
            capture_output=True,
            text=True,
            timeout=METADATA_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("cargo metadata could not run: {}", e)
        return ResolutionContext.empty()
    if proc.returncode != 0:
        logger.debug("cargo metadata failed ({}): {}", proc.returncode, proc.stderr.strip())
        return ResolutionContext.empty()

    try:
        meta = json.loads(proc.stdout)
    except json.JSONDecodeError as e:
        logger.debug("cargo metadata printed invalid JSON: {}", e)
        return ResolutionContext.empty()

    context = context_from_metadata(meta)
    logger.debug(
        "Loaded {} workspace members, {} direct dependencies",
        len(context.workspace_members),
        len(context.direct_dependencies),
    )
    return context
