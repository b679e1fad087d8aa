"""Request and response body stripping for the autocomplete consumer."""

from typing import Any, Dict

from apislice.core.filtering.subset import prune_unreferenced_components
from apislice.core.walker import NodeKind, WalkContext, walk
from apislice.models.document import Document
from apislice.utils.logging import get_logger

logger = get_logger(__name__)


class ContentRemover:
    """Walker callback emptying the ``content`` map of bodies it visits."""

    def __init__(self):
        self.cleared = 0

    def __call__(self, node: Dict[str, Any], context: WalkContext) -> None:
        if node.get("content"):
            self.cleared += 1
        node["content"] = {}


def remove_content(document: Document) -> int:
    """Empty every request body and response content, then drop orphaned components.

    Args:
        document: Document to rewrite in place

    Returns:
        Number of non-empty content maps cleared
    """
    remover = ContentRemover()
    walk(document, {NodeKind.REQUEST_BODY: remover, NodeKind.RESPONSE: remover})
    pruned = prune_unreferenced_components(document)
    logger.debug("Removed request and response content", cleared=remover.cleared, pruned=pruned)
    return remover.cleared
