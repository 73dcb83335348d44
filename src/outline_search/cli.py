"""CLI for outline-search (search, documents, parse, MCP server)."""

import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from outline_search.config import DEFAULT_RESULT_LIMIT, load_settings, resolve_vault_directory
from outline_search.core.importer.loader import VaultIndex, build_index, load_vault
from outline_search.core.query.formatter import format_query, query_to_dict
from outline_search.core.query.highlight import collect_highlight_patterns
from outline_search.core.query.parser import parse_query
from outline_search.core.search.searcher import search_items
from outline_search.core.tree.markdown import render_group_as_markdown
from outline_search.logging_config import configure_logging

app = typer.Typer(help="Outline search: structured queries over markdown list items.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _load_index(vault: Path | None) -> VaultIndex:
    """Load and index the vault, exiting if it doesn't exist."""
    root = vault or resolve_vault_directory()
    if not root.is_dir():
        logger.error("Vault directory not found: {}", root)
        raise typer.Exit(1)
    return build_index(load_vault(root))


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    vault: Annotated[
        Path | None,
        typer.Option("--vault", "-V", help="Directory with markdown notes"),
    ] = None,
    case_sensitive: bool = typer.Option(
        False, "--case-sensitive", "-c", help="Match case unless ignore-case: is used"
    ),
    no_operators: bool = typer.Option(
        False, "--no-operators", help="Treat 'name:' prefixes as plain words"
    ),
    limit: int = typer.Option(DEFAULT_RESULT_LIMIT, "--limit", "-n", help="Max results"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Search outline item groups matching a query."""
    settings = load_settings()
    sensitive = case_sensitive or settings.case_sensitive
    allow_operators = settings.enable_operators and not no_operators

    parsed = parse_query(query, allow_operators=allow_operators)
    if parsed.errors:
        typer.echo(f"Invalid query: {parsed.errors[0]}", err=True)
        raise typer.Exit(2)

    index = _load_index(vault)
    outcome = search_items(
        query,
        index.items,
        index.contexts,
        case_sensitive=sensitive,
        allow_operators=allow_operators,
    )
    results = outcome.results[:limit]

    if output_json:
        data = {
            "results": [
                {
                    "file": r.root.file_name,
                    "path": r.root.file_path,
                    "line": r.root.line_number + 1,
                    "section": r.root.section_id,
                    "score": r.score,
                    "items": [item.text for item in r.items],
                }
                for r in results
            ],
            "total": len(outcome.results),
        }
        typer.echo(json.dumps(data, indent=2))
        return

    patterns = collect_highlight_patterns(parsed.root, case_sensitive=sensitive)
    typer.echo(f"Found {len(outcome.results)} results (showing {len(results)}):\n")
    for r in results:
        typer.echo(f"  [{r.root.file_name}:{r.root.line_number + 1}] score={r.score}")
        for line in render_group_as_markdown(r.items, patterns=patterns).splitlines():
            typer.echo(f"    {line}")
        typer.echo()


@app.command()
def documents(
    vault: Annotated[
        Path | None,
        typer.Option("--vault", "-V", help="Directory with markdown notes"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List all documents in the vault."""
    index = _load_index(vault)
    item_counts: dict[str, int] = {}
    for item in index.items:
        item_counts[item.file_path] = item_counts.get(item.file_path, 0) + 1

    if output_json:
        data = {
            "documents": [
                {
                    "path": ctx.file_path,
                    "name": ctx.file_name,
                    "item_count": item_counts.get(ctx.file_path, 0),
                    "section_count": len(ctx.sections),
                    "tags": sorted(ctx.tags),
                }
                for ctx in index.contexts.values()
            ],
            "count": len(index.contexts),
        }
        typer.echo(json.dumps(data, indent=2))
        return

    typer.echo(f"{len(index.contexts)} documents:\n")
    for ctx in index.contexts.values():
        count = item_counts.get(ctx.file_path, 0)
        tags = " ".join(sorted(ctx.tags))
        typer.echo(f"  {ctx.file_path} - {count} items, {len(ctx.sections)} sections  {tags}")


@app.command()
def parse(
    query: str = typer.Argument(..., help="Query to parse"),
    no_operators: bool = typer.Option(
        False, "--no-operators", help="Treat 'name:' prefixes as plain words"
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output the tree as JSON"),
) -> None:
    """Show how a query is parsed."""
    parsed = parse_query(query, allow_operators=not no_operators)
    if parsed.errors:
        for error in parsed.errors:
            typer.echo(f"error: {error}", err=True)
        raise typer.Exit(2)

    if output_json:
        typer.echo(json.dumps(query_to_dict(parsed.root), indent=2))
    else:
        typer.echo(format_query(parsed.root))


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from outline_search.mcp.server import run_mcp_server

    run_mcp_server()
