"""Facade over the CodeQL command-line interface."""

from .analyzer import analyze_with_codeql, apply_query_filters, get_results_path
from .database import create_database, get_database_path
from .installer import initialize_codeql
from .query_packs import download_query_packs, get_query_pack

__all__ = [
    "initialize_codeql",
    "download_query_packs",
    "get_query_pack",
    "create_database",
    "get_database_path",
    "analyze_with_codeql",
    "apply_query_filters",
    "get_results_path",
]
