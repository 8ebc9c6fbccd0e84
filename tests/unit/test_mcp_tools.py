"""Tests for MCP tool core functions."""

import pytest

from rustdoc_lookup.core.acquire.acquirer import SourceAcquirer
from rustdoc_lookup.core.cache.store import DocCache
from rustdoc_lookup.engine import DocsEngine
from rustdoc_lookup.errors import RegistryUnavailable
from rustdoc_lookup.mcp.server import lookup_docs
from rustdoc_lookup.models.query import ResolutionContext
from tests.unit.fakes import FakeBuilder, FakeRegistry


@pytest.fixture
def registry(alpha_bytes: bytes) -> FakeRegistry:
    registry = FakeRegistry()
    registry.add_response("alpha", "1.2.0", alpha_bytes)
    registry.add_response("alpha", None, alpha_bytes)
    return registry


@pytest.fixture
def engine(cache: DocCache, registry: FakeRegistry) -> DocsEngine:
    builder = FakeBuilder()
    return DocsEngine(
        cache,
        SourceAcquirer(registry, builder),
        ResolutionContext(direct_dependencies={"alpha": "1.2.0"}),
        builder,
    )


def test_lookup_docs_lists_module(engine: DocsEngine) -> None:
    result = lookup_docs(engine, crate_spec="alpha::task")

    assert "error" not in result
    assert result["count"] == 3
    assert result["crate"] == "alpha"
    assert result["items"][0] == {
        "name": "spawn",
        "kind": "function",
        "signature": "pub fn spawn(future: F) -> JoinHandle",
        "docs": "Spawns a task.",
    }


def test_lookup_docs_applies_filter(engine: DocsEngine) -> None:
    result = lookup_docs(engine, crate_spec="alpha", filter="THING")
    assert [i["name"] for i in result["items"]] == ["Thing"]


def test_lookup_docs_reports_reexport_under_visible_name(engine: DocsEngine) -> None:
    result = lookup_docs(engine, crate_spec="alpha::Y")
    assert result["items"][0]["name"] == "X"
    assert result["items"][0]["docs"] == "The original X."


def test_lookup_docs_explicit_version_outside_project(engine: DocsEngine, registry: FakeRegistry) -> None:
    registry.add_response("beta", "0.3.0", RegistryUnavailable("docs.rs is still building beta@0.3.0"))

    result = lookup_docs(engine, crate_spec="beta@0.3.0")

    assert result == {"error": "docs.rs is still building beta@0.3.0", "items": [], "count": 0}


def test_lookup_docs_invalid_spec_returns_error(engine: DocsEngine) -> None:
    result = lookup_docs(engine, crate_spec="::task")
    assert result["count"] == 0
    assert "Crate name" in result["error"]


def test_lookup_docs_missing_path_returns_error(engine: DocsEngine) -> None:
    result = lookup_docs(engine, crate_spec="alpha::task::nope")
    assert result["error"] == "No item named 'nope' in task"
