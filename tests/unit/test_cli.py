"""Tests for the rustdoc-lookup CLI."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from rustdoc_lookup.cli import app
from rustdoc_lookup.core.acquire.acquirer import SourceAcquirer
from rustdoc_lookup.core.cache.store import CacheKey, DocCache
from rustdoc_lookup.engine import DocsEngine
from rustdoc_lookup.errors import PackageNotFound
from rustdoc_lookup.models.query import ResolutionContext
from tests.unit.fakes import FakeBuilder, FakeRegistry

runner = CliRunner()


@pytest.fixture(autouse=True)
def _keep_test_logging() -> Iterator[None]:
    """Keep loguru sinks out of the runner's captured output."""
    with patch("rustdoc_lookup.cli.configure_logging"):
        yield


@pytest.fixture
def registry(alpha_bytes: bytes) -> FakeRegistry:
    registry = FakeRegistry()
    registry.add_response("alpha", "1.2.0", alpha_bytes)
    return registry


@pytest.fixture
def engine(cache: DocCache, registry: FakeRegistry) -> Iterator[DocsEngine]:
    builder = FakeBuilder()
    engine = DocsEngine(
        cache,
        SourceAcquirer(registry, builder),
        ResolutionContext(direct_dependencies={"alpha": "1.2.0"}),
        builder,
    )
    with patch("rustdoc_lookup.cli.build_engine", return_value=engine):
        yield engine


def test_lookup_module_lists_items(engine: DocsEngine) -> None:
    result = runner.invoke(app, ["lookup", "alpha::task"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines == [
        "function  pub fn spawn(future: F) -> JoinHandle",
        "function  pub fn spawn_blocking(f: F) -> JoinHandle",
        "function  pub fn join(handle: &JoinHandle) -> u8",
    ]


def test_lookup_single_item_shows_docs(engine: DocsEngine) -> None:
    result = runner.invoke(app, ["lookup", "alpha::task::spawn"])

    assert result.exit_code == 0, result.output
    assert result.stdout == "pub fn spawn(future: F) -> JoinHandle\n\nSpawns a task.\n"


def test_lookup_filter_without_matches(engine: DocsEngine) -> None:
    result = runner.invoke(app, ["lookup", "alpha::task", "nothing"])

    assert result.exit_code == 0
    assert "No matching items." in result.stdout


def test_lookup_json_output(engine: DocsEngine) -> None:
    result = runner.invoke(app, ["lookup", "alpha::task", "spawn", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["count"] == 2
    assert data["provenance"] == "direct"
    assert data["version"] == "1.2.0"
    assert [i["name"] for i in data["items"]] == ["spawn", "spawn_blocking"]


def test_lookup_error_exits_with_code_1(engine: DocsEngine, registry: FakeRegistry) -> None:
    registry.add_response("alpha", "1.2.0", PackageNotFound("No documentation for alpha@1.2.0"))

    result = runner.invoke(app, ["lookup", "alpha"])

    assert result.exit_code == 1


def test_lookup_invalid_spec_exits_with_code_1(engine: DocsEngine, registry: FakeRegistry) -> None:
    result = runner.invoke(app, ["lookup", "alpha@"])

    assert result.exit_code == 1
    assert registry.calls == []


def test_no_cache_fetches_again(engine: DocsEngine, registry: FakeRegistry) -> None:
    runner.invoke(app, ["lookup", "alpha"])
    runner.invoke(app, ["lookup", "alpha"])
    assert len(registry.calls) == 1

    result = runner.invoke(app, ["lookup", "alpha", "--no-cache"])

    assert result.exit_code == 0
    assert len(registry.calls) == 2


def test_lookup_clear_cache_flag(engine: DocsEngine, registry: FakeRegistry) -> None:
    runner.invoke(app, ["lookup", "alpha"])

    result = runner.invoke(app, ["lookup", "--clear-cache"])

    assert result.exit_code == 0, result.output
    assert "Cache cleared." in result.stdout
    assert engine.cache.read(CacheKey("remote", "alpha", "1.2.0")) is None
    assert registry.calls == [("alpha", "1.2.0")]


def test_lookup_clear_cache_ignores_spec(engine: DocsEngine, registry: FakeRegistry) -> None:
    result = runner.invoke(app, ["lookup", "alpha@", "--clear-cache"])

    assert result.exit_code == 0, result.output
    assert "Cache cleared." in result.stdout
    assert registry.calls == []


def test_lookup_without_spec_exits_with_code_1(engine: DocsEngine, registry: FakeRegistry) -> None:
    result = runner.invoke(app, ["lookup"])

    assert result.exit_code == 1
    assert registry.calls == []


def test_clear_cache_command(tmp_path: Path) -> None:
    cache = DocCache(tmp_path / "cache")
    cache.publish(CacheKey("remote", "alpha", "1.2.0"), b"{}", 1.0)
    cache.publish(CacheKey("remote", "beta", "latest"), b"{}", 1.0)

    result = runner.invoke(app, ["clear-cache", "--cache-dir", str(tmp_path / "cache")])

    assert result.exit_code == 0, result.output
    assert "Removed 2 cache entries" in result.stdout
    assert not list((tmp_path / "cache").rglob("*.entry"))
