"""Tests for version resolution precedence."""

from collections.abc import Iterator, Mapping
from pathlib import Path

import pytest

from rustdoc_lookup.core.resolve.version_resolver import resolve
from rustdoc_lookup.errors import ConstraintInvalid
from rustdoc_lookup.models.query import (
    LocalTarget,
    Provenance,
    QuerySpec,
    RemoteTarget,
    ResolutionContext,
)


class ExplodingMapping(Mapping[str, object]):
    """Fails on any access, proving the context was never consulted."""

    def __getitem__(self, key: str) -> object:
        raise AssertionError("context was consulted")

    def __iter__(self) -> Iterator[str]:
        raise AssertionError("context was consulted")

    def __len__(self) -> int:
        raise AssertionError("context was consulted")


def _context(
    direct: dict[str, str] | None = None,
    graph: dict[str, set[tuple[str, str]]] | None = None,
    members: dict[str, Path] | None = None,
) -> ResolutionContext:
    return ResolutionContext(
        direct_dependencies=direct or {},
        dependency_graph={k: frozenset(v) for k, v in (graph or {}).items()},
        workspace_members=members or {},
    )


def test_explicit_version_never_consults_context() -> None:
    context = ResolutionContext(
        direct_dependencies=ExplodingMapping(),  # type: ignore[arg-type]
        dependency_graph=ExplodingMapping(),  # type: ignore[arg-type]
        workspace_members=ExplodingMapping(),  # type: ignore[arg-type]
    )
    resolution = resolve(QuerySpec(package="serde", version_constraint="1.0.100"), context)
    assert resolution.provenance is Provenance.EXPLICIT
    assert resolution.target == RemoteTarget(package="serde", version="1.0.100")


def test_explicit_latest_means_no_version() -> None:
    resolution = resolve(QuerySpec(package="serde", version_constraint="latest"), _context())
    assert resolution.provenance is Provenance.EXPLICIT
    assert resolution.target == RemoteTarget(package="serde", version=None)


def test_malformed_constraint_raises() -> None:
    with pytest.raises(ConstraintInvalid):
        resolve(QuerySpec(package="serde", version_constraint="not-a-version"), _context())


def test_local_member_wins_over_direct_dependency(tmp_path: Path) -> None:
    context = _context(direct={"alpha": "1.2.0"}, members={"alpha": tmp_path})
    resolution = resolve(QuerySpec(package="alpha"), context)
    assert resolution.provenance is Provenance.LOCAL
    assert resolution.target == LocalTarget(package="alpha", path=tmp_path)


def test_direct_dependency_uses_pinned_version() -> None:
    resolution = resolve(QuerySpec(package="alpha"), _context(direct={"alpha": "1.2.0"}))
    assert resolution.provenance is Provenance.DIRECT
    assert resolution.target == RemoteTarget(package="alpha", version="1.2.0")


def test_names_match_across_hyphen_and_underscore() -> None:
    resolution = resolve(QuerySpec(package="serde_json"), _context(direct={"serde-json": "1.0.1"}))
    assert resolution.provenance is Provenance.DIRECT
    assert resolution.target == RemoteTarget(package="serde_json", version="1.0.1")


def test_transitive_dependency_records_chain() -> None:
    context = _context(
        direct={"serde": "1.0.210"},
        graph={"serde": {("serde_derive", "1.0.210")}},
    )
    resolution = resolve(QuerySpec(package="serde_derive"), context)
    assert resolution.provenance is Provenance.TRANSITIVE
    assert resolution.target == RemoteTarget(package="serde_derive", version="1.0.210")
    assert resolution.chain == ("serde", "serde_derive")
    assert resolution.describe() == "Found serde_derive@1.0.210 via: serde → serde_derive"


def test_transitive_prefers_shortest_path() -> None:
    context = _context(
        direct={"aaa": "1.0", "zzz": "1.0"},
        graph={
            "aaa": {("mid", "1.0")},
            "mid": {("target", "2.0")},
            "zzz": {("target", "1.0")},
        },
    )
    resolution = resolve(QuerySpec(package="target"), context)
    assert resolution.target == RemoteTarget(package="target", version="1.0")
    assert resolution.chain == ("zzz", "target")


def test_transitive_tie_breaks_lexicographically() -> None:
    context = _context(
        direct={"bbb": "1.0", "aaa": "1.0"},
        graph={
            "bbb": {("target", "2.0")},
            "aaa": {("target", "1.0")},
        },
    )
    resolution = resolve(QuerySpec(package="target"), context)
    assert resolution.chain == ("aaa", "target")
    assert resolution.target == RemoteTarget(package="target", version="1.0")


def test_transitive_search_survives_cycles() -> None:
    context = _context(
        direct={"a": "1.0"},
        graph={"a": {("b", "1.0")}, "b": {("a", "1.0")}},
    )
    resolution = resolve(QuerySpec(package="missing"), context)
    assert resolution.provenance is Provenance.FALLBACK_LATEST


def test_unknown_crate_falls_back_to_latest() -> None:
    resolution = resolve(QuerySpec(package="rand"), _context())
    assert resolution.provenance is Provenance.FALLBACK_LATEST
    assert resolution.target == RemoteTarget(package="rand", version=None)
    assert "not a dependency" in resolution.describe()


def test_long_chain_is_truncated_in_description() -> None:
    context = _context(
        direct={"a": "1"},
        graph={"a": {("b", "1")}, "b": {("c", "1")}, "c": {("d", "1")}},
    )
    resolution = resolve(QuerySpec(package="d"), context)
    assert resolution.chain == ("a", "b", "c", "d")
    assert resolution.describe() == "Found d@1 via: a → b → ... → d"
