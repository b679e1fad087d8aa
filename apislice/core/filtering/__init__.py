"""Operation selection and subset extraction."""

from apislice.core.filtering.predicate import create_predicate, normalize_url
from apislice.core.filtering.search import SearchResult, find_operations
from apislice.core.filtering.subset import (
    copy_references, create_filtered_document, format_path_functions,
    prune_unreferenced_components
)

__all__ = [
    "create_predicate",
    "normalize_url",
    "SearchResult",
    "find_operations",
    "copy_references",
    "create_filtered_document",
    "format_path_functions",
    "prune_unreferenced_components",
]
