"""Resolve a crate reference to a concrete documentation target."""

from collections import deque

from loguru import logger

from rustdoc_lookup.core.resolve.constraint import validate_constraint
from rustdoc_lookup.models.query import (
    LocalTarget,
    Provenance,
    QuerySpec,
    RemoteTarget,
    ResolutionContext,
    VersionResolution,
    normalize_crate_name,
)


def resolve(spec: QuerySpec, context: ResolutionContext) -> VersionResolution:
    """Pick the documentation target for a query.

    Precedence, first match wins:

    1. explicit version in the query (the context is not consulted),
    2. local workspace member,
    3. direct dependency,
    4. transitive dependency (shortest path, then lexicographic),
    5. latest version from the registry.

    Raises:
        ConstraintInvalid: The explicit version requirement is malformed.
    """
    name = normalize_crate_name(spec.package)

    if spec.version_constraint is not None:
        version = validate_constraint(spec.version_constraint)
        return VersionResolution(
            target=RemoteTarget(package=name, version=None if version == "latest" else version),
            provenance=Provenance.EXPLICIT,
        )

    for member, path in sorted(context.workspace_members.items()):
        if normalize_crate_name(member) == name:
            logger.debug("{} is a workspace member at {}", name, path)
            return VersionResolution(
                target=LocalTarget(package=name, path=path),
                provenance=Provenance.LOCAL,
            )

    for dep, version in sorted(context.direct_dependencies.items()):
        if normalize_crate_name(dep) == name:
            return VersionResolution(
                target=RemoteTarget(package=name, version=version),
                provenance=Provenance.DIRECT,
            )

    found = _find_transitive(name, context)
    if found is not None:
        version, chain = found
        return VersionResolution(
            target=RemoteTarget(package=name, version=version),
            provenance=Provenance.TRANSITIVE,
            chain=chain,
        )

    logger.debug("{} not found in the dependency graph, deferring to latest", name)
    return VersionResolution(
        target=RemoteTarget(package=name, version=None),
        provenance=Provenance.FALLBACK_LATEST,
    )


def _find_transitive(
    name: str, context: ResolutionContext
) -> tuple[str, tuple[str, ...]] | None:
    """Breadth-first search from the direct dependencies.

    Returns:
        (version, chain) for the first match, where ``chain`` runs from a
        direct dependency to the target. None if unreachable.
    """
    todo: deque[tuple[str, tuple[str, ...]]] = deque(
        (dep, (dep,)) for dep in sorted(context.direct_dependencies)
    )
    visited = {normalize_crate_name(dep) for dep in context.direct_dependencies}

    while todo:
        current, chain = todo.popleft()
        for dep, version in sorted(context.dependency_graph.get(current, ())):
            normalized = normalize_crate_name(dep)
            if normalized == name:
                return version, (*chain, dep)
            if normalized in visited:
                continue
            visited.add(normalized)
            todo.append((dep, (*chain, dep)))

    return None
