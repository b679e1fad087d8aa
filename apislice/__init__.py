"""apislice: Filter and re-style large OpenAPI documents into consumer-specific subsets."""

__version__ = "0.1.0"
__author__ = "apislice Team"

from apislice.models.document import Document, HttpMethod, Operation, PathItem, Reference, ReferenceKind
from apislice.core.styling.style import OpenApiStyle
from apislice.core.service import SliceService

__all__ = [
    "__version__",
    "__author__",
    "Document",
    "HttpMethod",
    "Operation",
    "PathItem",
    "Reference",
    "ReferenceKind",
    "OpenApiStyle",
    "SliceService",
]
