"""Operation search over a source document."""

from typing import List

from pydantic import BaseModel, ConfigDict

from apislice.core.filtering.predicate import OperationPredicate
from apislice.models.document import Document, HttpMethod, Operation


class SearchResult(BaseModel):
    """An operation that satisfied a predicate, with where it was found."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: HttpMethod
    operation: Operation


def find_operations(source: Document, predicate: OperationPredicate) -> List[SearchResult]:
    """Collect ``(path, method, operation)`` entries satisfying ``predicate``.

    Args:
        source: Document to search
        predicate: Test over operations

    Returns:
        Matches in document order
    """
    return [
        SearchResult(path=path, method=method, operation=operation)
        for path, method, operation in source.iter_operations()
        if predicate(operation)
    ]
