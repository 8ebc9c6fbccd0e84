"""Query-side models: what was asked, against which project, and how it resolved."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rustdoc_lookup.models.item import Item


def normalize_crate_name(name: str) -> str:
    """Cargo treats ``-`` and ``_`` in crate names as the same character."""
    return name.replace("-", "_")


@dataclass(frozen=True)
class QuerySpec:
    """A parsed crate reference: ``crate[@version][::path]`` plus a filter."""

    package: str
    version_constraint: str | None = None
    path: tuple[str, ...] = ()
    filter: str | None = None


@dataclass(frozen=True)
class ResolutionContext:
    """Read-only snapshot of the current project's dependency information.

    ``dependency_graph`` maps a crate to the ``(dependency, version)`` pairs
    it depends on.
    """

    direct_dependencies: Mapping[str, str] = field(default_factory=dict)
    dependency_graph: Mapping[str, frozenset[tuple[str, str]]] = field(default_factory=dict)
    workspace_members: Mapping[str, Path] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "ResolutionContext":
        """Context used outside of any Cargo project."""
        return cls()


@dataclass(frozen=True)
class RemoteTarget:
    """Documentation published on the registry. ``version=None`` means latest."""

    package: str
    version: str | None = None


@dataclass(frozen=True)
class LocalTarget:
    """A workspace member whose documentation is built locally."""

    package: str
    path: Path


Target = RemoteTarget | LocalTarget


class Provenance(Enum):
    """Which resolution rule produced a version."""

    EXPLICIT = "explicit"
    LOCAL = "local"
    DIRECT = "direct"
    TRANSITIVE = "transitive"
    FALLBACK_LATEST = "fallback_latest"


def format_dep_chain(chain: tuple[str, ...]) -> str:
    """Join a dependency chain, eliding the middle when longer than three."""
    if len(chain) <= 3:
        return " → ".join(chain)
    return f"{chain[0]} → {chain[1]} → ... → {chain[-1]}"


@dataclass(frozen=True)
class VersionResolution:
    """The outcome of version resolution."""

    target: Target
    provenance: Provenance
    chain: tuple[str, ...] = ()

    def describe(self) -> str:
        """Human-readable explanation of where the version came from."""
        target = self.target
        if isinstance(target, LocalTarget):
            return f"Using local crate {target.package} at {target.path}"
        version = target.version or "latest"
        if self.provenance is Provenance.TRANSITIVE:
            return f"Found {target.package}@{version} via: {format_dep_chain(self.chain)}"
        if self.provenance is Provenance.DIRECT:
            return f"Using dependency {target.package}@{version}"
        if self.provenance is Provenance.EXPLICIT:
            return f"Using requested version {target.package}@{version}"
        return f"{target.package!r} is not a dependency of this project; using the latest version"


@dataclass(frozen=True)
class QueryResult:
    """Everything a renderer needs for one answered query."""

    items: tuple[Item, ...]
    provenance: Provenance
    is_stale_fallback: bool = False
    warnings: tuple[str, ...] = ()
    resolution: VersionResolution | None = None
