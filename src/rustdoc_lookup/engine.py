"""One documentation lookup, end to end.

SpecParser -> VersionResolver -> DocCache(SourceAcquirer) -> DocModel.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from loguru import logger

from rustdoc_lookup.config import resolve_cache_dir
from rustdoc_lookup.context_loader import load_context
from rustdoc_lookup.core.acquire.acquirer import SourceAcquirer
from rustdoc_lookup.core.acquire.local_build import LocalBuilder
from rustdoc_lookup.core.acquire.registry import DocsRsRegistry
from rustdoc_lookup.core.cache.store import DocCache, cache_key_for
from rustdoc_lookup.core.model.parser import parse
from rustdoc_lookup.core.model.query import query, resolve_path
from rustdoc_lookup.core.resolve.version_resolver import resolve
from rustdoc_lookup.models.query import (
    LocalTarget,
    Provenance,
    QueryResult,
    QuerySpec,
    ResolutionContext,
)
from rustdoc_lookup.protocols import AcquirerProtocol, BuilderProtocol


@dataclass(frozen=True)
class QueryOptions:
    """Engine-level switches.

    ``bypass_cache`` skips the cache read but still writes the fresh entry.
    ``clear_cache`` wipes the cache and stops before any resolution.
    """

    bypass_cache: bool = False
    clear_cache: bool = False


def _format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=UTC).isoformat(timespec="seconds")


class DocsEngine:
    """Answers crate documentation queries for one project context.

    ``builder`` fingerprints local sources so the cache key is known before
    anything is acquired.
    """

    def __init__(
        self,
        cache: DocCache,
        acquirer: AcquirerProtocol,
        context: ResolutionContext,
        builder: BuilderProtocol,
    ) -> None:
        self.cache = cache
        self.acquirer = acquirer
        self.context = context
        self.builder = builder

    def run(self, spec: QuerySpec | None, options: QueryOptions) -> QueryResult | None:
        """Apply ``options`` and answer ``spec``; returns None after a cache clear."""
        if options.clear_cache:
            self.cache.clear()
            return None
        if spec is None:
            msg = "A query is required unless the cache is being cleared"
            raise ValueError(msg)
        return self.lookup(spec, bypass_cache=options.bypass_cache)

    def lookup(self, spec: QuerySpec, *, bypass_cache: bool = False) -> QueryResult:
        """Resolve, acquire (through the cache), parse and query.

        Acquisition errors propagate only when no cached copy exists. Parse
        and path errors always propagate.
        """
        resolution = resolve(spec, self.context)
        note = resolution.describe()
        logger.info(note)

        warnings: list[str] = []
        if resolution.provenance in (Provenance.FALLBACK_LATEST, Provenance.TRANSITIVE):
            warnings.append(note)

        fingerprint = None
        if isinstance(resolution.target, LocalTarget):
            fingerprint = self.builder.fingerprint(resolution.target)
        key = cache_key_for(resolution, fingerprint)

        cached = self.cache.get_or_acquire(
            key, lambda: self.acquirer.acquire(resolution), bypass=bypass_cache
        )
        if cached.is_stale_fallback:
            warnings.append(
                f"Using cached documentation from {_format_time(cached.acquired_at)}: {cached.failure}"
            )

        graph = parse(cached.data)
        scope = resolve_path(graph, spec.path)
        items = query(graph, scope, spec.filter)
        logger.debug("Query {} matched {} items", spec, len(items))

        return QueryResult(
            items=items,
            provenance=resolution.provenance,
            is_stale_fallback=cached.is_stale_fallback,
            warnings=tuple(warnings),
            resolution=resolution,
        )


def build_engine(
    *,
    cache_dir: Path | str | None = None,
    manifest_dir: Path | None = None,
    load_project: bool = True,
) -> DocsEngine:
    """Wire the default collaborators: docs.rs, cargo, and the on-disk cache.

    With ``load_project=False`` the dependency context is left empty, which
    is enough for clearing the cache.
    """
    builder = LocalBuilder()
    context = load_context(manifest_dir) if load_project else ResolutionContext.empty()
    return DocsEngine(
        cache=DocCache(resolve_cache_dir(cache_dir)),
        acquirer=SourceAcquirer(DocsRsRegistry(), builder),
        context=context,
        builder=builder,
    )


def result_to_dict(result: QueryResult) -> dict[str, Any]:
    """JSON-able view of a QueryResult, shared by ``--json`` and the MCP tool."""
    data: dict[str, Any] = {
        "items": [
            {
                "name": item.name,
                "kind": item.kind.value,
                "signature": item.signature_text,
                "docs": item.doc_text,
            }
            for item in result.items
        ],
        "count": len(result.items),
        "provenance": result.provenance.value,
        "is_stale_fallback": result.is_stale_fallback,
        "warnings": list(result.warnings),
    }
    if result.resolution is not None:
        target = result.resolution.target
        data["crate"] = target.package
        if isinstance(target, LocalTarget):
            data["path"] = str(target.path)
        else:
            data["version"] = target.version or "latest"
    return data
