"""MCP server exposing outline search over a markdown vault."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from outline_search.config import (
    DEFAULT_RESULT_LIMIT,
    MAX_RESULT_LIMIT,
    VAULT_ENV_VAR,
    SearchSettings,
    load_settings,
    resolve_vault_directory,
)
from outline_search.core.importer.loader import VaultSource, build_index
from outline_search.core.query.formatter import format_query, query_to_dict
from outline_search.core.query.highlight import collect_highlight_patterns
from outline_search.core.query.parser import parse_query
from outline_search.core.search.searcher import search_items
from outline_search.core.tree.markdown import render_group_as_markdown
from outline_search.protocols import DocumentSourceProtocol

# --- Core functions (testable without MCP context) ---


def outline_search(
    source: DocumentSourceProtocol,
    *,
    query: str = "",
    case_sensitive: bool = False,
    enable_operators: bool = True,
    limit: int = DEFAULT_RESULT_LIMIT,
    offset: int = 0,
    highlight: bool = True,
) -> dict[str, Any]:
    """Search outline item groups with the structured query language.

    Query syntax: words are ANDed, ``OR`` between terms, ``-term`` negates,
    ``"quoted phrase"``, ``/regex/flags``, ``(grouping)``, operators such as
    ``tag:#work``, ``file:``, ``section:``, ``task-todo:`` and front-matter
    filters ``[priority:>3]``, ``[status:null]``.

    Args:
        source: Document store to search.
        query: Query text.
        case_sensitive: Default case mode.
        enable_operators: Recognise ``name:`` operators.
        limit: Max results (1-100, default 20).
        offset: Pagination offset.
        highlight: Mark matched text in the rendered groups with ``**``.
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0, "total": 0}

    limit = max(1, min(limit, MAX_RESULT_LIMIT))

    parsed = parse_query(query, allow_operators=enable_operators)
    if parsed.errors:
        return {
            "error": parsed.errors[0],
            "errors": list(parsed.errors),
            "results": [],
            "count": 0,
            "total": 0,
        }

    try:
        index = build_index(source.load_documents())
    except FileNotFoundError as e:
        return {"error": str(e), "results": [], "count": 0, "total": 0}

    outcome = search_items(
        query,
        index.items,
        index.contexts,
        case_sensitive=case_sensitive,
        allow_operators=enable_operators,
    )

    patterns = (
        collect_highlight_patterns(parsed.root, case_sensitive=case_sensitive)
        if highlight
        else None
    )
    page = outcome.results[offset : offset + limit]
    serialized = []
    for result in page:
        root = result.root
        serialized.append(
            {
                "file": root.file_name,
                "path": root.file_path,
                "line": root.line_number + 1,
                "section": root.section_id,
                "score": result.score,
                "item_count": len(result.items),
                "content": render_group_as_markdown(result.items, patterns=patterns),
            }
        )

    total = len(outcome.results)
    output: dict[str, Any] = {
        "results": serialized,
        "count": len(serialized),
        "total": total,
        "has_more": offset + len(serialized) < total,
    }
    if output["has_more"]:
        output["next_offset"] = offset + limit
    return output


def outline_list_documents(source: DocumentSourceProtocol) -> dict[str, Any]:
    """List all documents with their outline item and section counts."""
    try:
        index = build_index(source.load_documents())
    except FileNotFoundError as e:
        return {"error": str(e), "documents": [], "count": 0}

    item_counts: dict[str, int] = {}
    for item in index.items:
        item_counts[item.file_path] = item_counts.get(item.file_path, 0) + 1

    documents = [
        {
            "path": ctx.file_path,
            "name": ctx.file_name,
            "item_count": item_counts.get(ctx.file_path, 0),
            "section_count": len(ctx.sections),
            "tags": sorted(ctx.tags),
            "properties": sorted(ctx.front_matter or {}),
        }
        for ctx in index.contexts.values()
    ]
    return {
        "documents": documents,
        "count": len(documents),
        "total_items": len(index.items),
    }


def outline_parse_query(query: str, *, enable_operators: bool = True) -> dict[str, Any]:
    """Parse a query and report its structure or its errors."""
    parsed = parse_query(query, allow_operators=enable_operators)
    if parsed.errors:
        return {"ok": False, "errors": list(parsed.errors)}
    return {
        "ok": True,
        "errors": [],
        "normalized": format_query(parsed.root),
        "tree": query_to_dict(parsed.root),
    }


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    source: DocumentSourceProtocol
    settings: SearchSettings


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Resolve the vault directory and settings on startup."""
    vault_dir: Path = resolve_vault_directory()
    if not vault_dir.is_dir():
        logger.warning("Vault directory {} does not exist (set {})", vault_dir, VAULT_ENV_VAR)
    yield ServerContext(source=VaultSource(vault_dir), settings=load_settings())


mcp_server = FastMCP(
    "outline-search",
    instructions="""\
Search markdown notes by outline item. Every result is a group: a list item
plus all items nested below it, rendered as an indented bullet list.

## Query language
- `word`, `"exact phrase"`, `/regex/i`; terms side by side must all match.
- `a OR b`, `-term` (exclude), `(grouping)`.
- Scoped operators: `file:`, `path:`, `content:`, `tag:`, `line:`, `block:`,
  `section:`, `task:`, `task-todo:`, `task-done:`, `match-case:`, `ignore-case:`.
- Front matter: `[status]`, `[status:done]`, `[priority:>3]`, `[due:null]`.

Use outline_parse_query_tool to check a query before searching.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def outline_search_tool(
    ctx: Context,
    query: str,
    case_sensitive: bool | None = None,
    limit: int = DEFAULT_RESULT_LIMIT,
    offset: int = 0,
) -> dict[str, Any]:
    """Search outline item groups with the structured query language.

    Pagination: When has_more is true, use next_offset in a follow-up call.

    Args:
        query: Query text, e.g. `tag:#work -task-done:report`.
        case_sensitive: Override the default case mode.
        limit: Max results (1-100, default 20).
        offset: Pagination offset.
    """
    server = _ctx(ctx)
    return outline_search(
        server.source,
        query=query,
        case_sensitive=(
            server.settings.case_sensitive if case_sensitive is None else case_sensitive
        ),
        enable_operators=server.settings.enable_operators,
        limit=limit,
        offset=offset,
    )


@mcp_server.tool()
async def outline_list_documents_tool(ctx: Context) -> dict[str, Any]:
    """List all documents in the vault with item counts, tags and properties.

    Use this to discover file names, tags and front-matter keys for queries.
    """
    return outline_list_documents(_ctx(ctx).source)


@mcp_server.tool()
async def outline_parse_query_tool(ctx: Context, query: str) -> dict[str, Any]:
    """Parse a query and return its normalized form and tree, or its errors.

    Args:
        query: Query text to check.
    """
    return outline_parse_query(query, enable_operators=_ctx(ctx).settings.enable_operators)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from outline_search.logging_config import configure_logging

    configure_logging(quiet=True)
    mcp_server.run(transport="stdio")
