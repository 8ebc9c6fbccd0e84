"""Command-line interface for rustdoc-lookup."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from rustdoc_lookup.config import resolve_cache_dir
from rustdoc_lookup.core.cache.store import DocCache
from rustdoc_lookup.engine import QueryOptions, build_engine, result_to_dict
from rustdoc_lookup.errors import DocsLookupError
from rustdoc_lookup.logging_config import configure_logging
from rustdoc_lookup.models.item import ItemKind
from rustdoc_lookup.models.query import QueryResult
from rustdoc_lookup.spec_parser import parse_query_spec

app = typer.Typer(help="Look up Rust crate documentation from docs.rs or local builds.")

CacheDirOption = Annotated[
    Path | None,
    typer.Option("--cache-dir", help="Cache directory (default: $RUSTDOC_LOOKUP_CACHE_DIR or ~/.cache)"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _print_result(result: QueryResult) -> None:
    items = result.items
    if not items:
        typer.echo("No matching items.")
        return
    if len(items) == 1 and items[0].kind is not ItemKind.MODULE:
        item = items[0]
        typer.echo(item.signature_text)
        if item.doc_text:
            typer.echo()
            typer.echo(item.doc_text)
        return
    width = max(len(item.kind.value) for item in items)
    for item in items:
        typer.echo(f"{item.kind.value:<{width}}  {item.signature_text}")


@app.command()
def lookup(
    spec: str | None = typer.Argument(None, help="Crate reference: crate[@version][::path]"),
    filter_term: str | None = typer.Argument(None, metavar="FILTER", help="Substring filter on item names"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Skip the cache read (still writes it)"),
    clear_cache: bool = typer.Option(False, "--clear-cache", help="Wipe the cache and exit"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    cache_dir: CacheDirOption = None,
) -> None:
    """Show documentation for a crate, module or item."""
    if spec is None and not clear_cache:
        logger.error("A crate reference is required unless --clear-cache is given")
        raise typer.Exit(1)
    options = QueryOptions(bypass_cache=no_cache, clear_cache=clear_cache)
    try:
        query_spec = None if clear_cache or spec is None else parse_query_spec(spec, filter_term)
        engine = build_engine(cache_dir=cache_dir, load_project=not clear_cache)
        result = engine.run(query_spec, options)
    except DocsLookupError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e

    if result is None:
        typer.echo("Cache cleared.")
        return
    for warning in result.warnings:
        logger.warning("{}", warning)
    if output_json:
        typer.echo(json.dumps(result_to_dict(result), indent=2))
    else:
        _print_result(result)


@app.command(name="clear-cache")
def clear_cache_cmd(cache_dir: CacheDirOption = None) -> None:
    """Remove every cached documentation entry."""
    cache = DocCache(resolve_cache_dir(cache_dir))
    removed = cache.clear()
    typer.echo(f"Removed {removed} cache entries from {cache.cache_dir}")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from rustdoc_lookup.mcp.server import run_mcp_server

    run_mcp_server()
