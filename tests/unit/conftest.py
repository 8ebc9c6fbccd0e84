"""Shared test fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from rustdoc_lookup.core.cache.store import DocCache
from rustdoc_lookup.core.model.parser import parse
from rustdoc_lookup.models.item import DocItemGraph
from tests.unit.fakes import FakeClock, alpha_crate, encode


@pytest.fixture
def alpha_bytes() -> bytes:
    return encode(alpha_crate())


@pytest.fixture
def alpha_graph(alpha_bytes: bytes) -> DocItemGraph:
    return parse(alpha_bytes)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path: Path, clock: FakeClock) -> DocCache:
    return DocCache(tmp_path / "cache", clock=clock)


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture loguru messages at DEBUG and above."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
