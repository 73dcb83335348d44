"""Structured query search over outline-style markdown notes."""

from outline_search.core.query.parser import parse_query
from outline_search.core.search.searcher import SearchOutcome, search_items
from outline_search.protocols import DocumentSourceProtocol

__all__ = ["DocumentSourceProtocol", "SearchOutcome", "parse_query", "search_items"]
