"""MCP server exposing crate documentation lookup."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from rustdoc_lookup.engine import DocsEngine, build_engine, result_to_dict
from rustdoc_lookup.errors import DocsLookupError
from rustdoc_lookup.spec_parser import parse_query_spec

# --- Core functions (testable without MCP context) ---


def lookup_docs(
    engine: DocsEngine,
    *,
    crate_spec: str,
    filter: str | None = None,  # noqa: A002
    bypass_cache: bool = False,
) -> dict[str, Any]:
    """Look up documentation for a crate, module or item.

    Args:
        crate_spec: ``crate[@version][::path]``, e.g. ``tokio::task`` or
            ``serde@1.0::Deserialize``.
        filter: Case-insensitive substring filter on item names.
        bypass_cache: Skip the cache read and fetch or build fresh docs.
    """
    try:
        spec = parse_query_spec(crate_spec, filter)
        result = engine.lookup(spec, bypass_cache=bypass_cache)
    except DocsLookupError as e:
        logger.debug("Lookup of {} failed: {}", crate_spec, e)
        return {"error": str(e), "items": [], "count": 0}
    return result_to_dict(result)


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    engine: DocsEngine


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Load the project's dependency context once on startup."""
    yield ServerContext(engine=build_engine())


mcp_server = FastMCP(
    "rustdoc-lookup",
    instructions="""\
Look up Rust documentation for crates, modules and items.

Versions are resolved against the Cargo project the server was started in:
workspace members are built locally, dependencies use their locked version,
and anything else uses the latest release on docs.rs.

## Tips
- Start from a crate (`tokio`) or module (`tokio::task`) to list its items,
  then query a single item (`tokio::task::spawn`) for its signature and docs.
- Use `filter` to narrow large modules by name.
- Pin a version with `crate@version` when the project does not depend on it.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool(name="lookup_docs")
def lookup_docs_tool(
    ctx: Context,
    crate_spec: str,
    filter: str | None = None,  # noqa: A002
) -> dict[str, Any]:
    """Look up Rust documentation for a crate, module or item.

    A module lists its public items (kind, signature, docs); a single item
    returns its full signature and documentation. Warnings explain which
    version was chosen and whether cached docs were served after a failure.

    Args:
        crate_spec: ``crate[@version][::path]``, e.g. ``serde::de::Deserialize``.
        filter: Case-insensitive substring filter on item names.
    """
    return lookup_docs(_ctx(ctx).engine, crate_spec=crate_spec, filter=filter)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from rustdoc_lookup.logging_config import configure_logging

    configure_logging(quiet=True)
    mcp_server.run(transport="stdio")
