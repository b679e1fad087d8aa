"""URL segment tree.

A trie over path segments that merges one or more labeled source documents
(typically one per API version) and resolves concrete or templated paths to
the operations defined there.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, TextIO

from apislice.models.document import Document, Operation, PathItem
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

ROOT_SEGMENT = "/"


def is_parameter_segment(segment: str) -> bool:
    """A segment shaped as ``{...}`` is a path parameter placeholder."""
    return segment.startswith("{") and segment.endswith("}")


def split_segments(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


class UrlTreeNode:
    """One segment of the URL tree."""

    def __init__(self, segment: str, path: str = ROOT_SEGMENT):
        self.segment = segment
        self.path = path
        self.is_parameter = is_parameter_segment(segment)
        self.path_items: Dict[str, PathItem] = {}
        # Keyed by lower-cased segment text; insertion ordered
        self._children: Dict[str, "UrlTreeNode"] = {}
        self._parameter_child: Optional["UrlTreeNode"] = None

    @property
    def children(self) -> List["UrlTreeNode"]:
        return list(self._children.values())

    @property
    def parameter_child(self) -> Optional["UrlTreeNode"]:
        return self._parameter_child

    def get_child(self, segment: str) -> Optional["UrlTreeNode"]:
        """Case-insensitive literal child lookup."""
        return self._children.get(segment.lower())

    def add_child(self, segment: str) -> "UrlTreeNode":
        """Get or create the child for ``segment``.

        A node owns at most one parameter child; a differently named
        parameter segment merges into the existing one.
        """
        existing = self.get_child(segment)
        if existing is not None:
            return existing

        if is_parameter_segment(segment) and self._parameter_child is not None:
            return self._parameter_child

        child_path = f"{self.path.rstrip('/')}/{segment}"
        child = UrlTreeNode(segment, child_path)
        self._children[segment.lower()] = child
        if child.is_parameter:
            self._parameter_child = child
        return child

    def attach_path_item(self, label: str, path_item: PathItem) -> None:
        """Record ``path_item`` under ``label``; same label merges operations."""
        existing = self.path_items.get(label)
        if existing is None:
            self.path_items[label] = path_item
            return
        merged = existing.model_copy(deep=False)
        merged.operations = {**existing.operations, **path_item.operations}
        self.path_items[label] = merged

    def has_operations(self, label: str) -> bool:
        path_item = self.path_items.get(label)
        return path_item is not None and bool(path_item.operations)

    def attach(self, document: Document, label: str) -> "UrlTreeNode":
        """Attach every path template of ``document`` under ``label``.

        Args:
            document: Source document
            label: Source identifier, e.g. the API version

        Returns:
            This node, for chaining
        """
        for path, path_item in document.paths.items():
            node = self
            for segment in split_segments(path):
                node = node.add_child(segment)
            node.attach_path_item(label, path_item)
        return self

    def __repr__(self) -> str:
        return f"UrlTreeNode({self.path!r}, labels={list(self.path_items)})"


def create_url_tree(sources: Mapping[str, Document]) -> UrlTreeNode:
    """Build a URL tree from a ``label -> document`` mapping.

    Args:
        sources: Source documents keyed by label

    Returns:
        Root node of the tree
    """
    root = UrlTreeNode(ROOT_SEGMENT)
    for label, document in sources.items():
        root.attach(document, label)
        logger.debug("Attached document to url tree", label=label, paths=len(document.paths))
    return root


def find_node(root: UrlTreeNode, relative_url: str) -> Optional[UrlTreeNode]:
    """Walk the tree for ``relative_url``.

    Each segment first tries a case-insensitive literal match. On a miss the
    single parameter child is used instead, but never for two segments in a
    row; a miss on the first segment aborts.
    """
    if relative_url == ROOT_SEGMENT:
        return root

    segments = split_segments(relative_url)
    if not segments:
        return None

    node = root
    parameter_name_offset = 0
    for index, segment in enumerate(segments):
        child = node.get_child(segment)
        if child is not None:
            parameter_name_offset = 0
            node = child
            continue

        if index == 0:
            return None
        if node.parameter_child is None or parameter_name_offset != 0:
            return None
        parameter_name_offset += 1
        node = node.parameter_child

    return node


def get_operations(root: UrlTreeNode, relative_url: str, label: str) -> Optional[List[Operation]]:
    """Resolve ``relative_url`` to the operations registered under ``label``.

    Args:
        root: Tree root
        relative_url: Concrete or templated path
        label: Source label

    Returns:
        Operations at the matched node (possibly empty), or None when no node matched
    """
    if relative_url == ROOT_SEGMENT and not root.has_operations(label):
        return None

    node = find_node(root, relative_url)
    if node is None:
        return None

    path_item = node.path_items.get(label)
    if path_item is None:
        return []
    return list(path_item.operations.values())


def url_tree_to_dict(node: UrlTreeNode) -> Dict[str, Any]:
    """Export a tree as ``{segment, labels, children}`` data."""
    data: Dict[str, Any] = {
        "segment": node.segment,
        "labels": [
            {
                "name": label,
                "methods": [method.display_name for method in path_item.operations],
            }
            for label, path_item in node.path_items.items()
        ],
    }
    if node.children:
        data["children"] = [
            url_tree_to_dict(child)
            for child in sorted(node.children, key=lambda child: child.segment)
        ]
    return data


def write_url_tree_json(root: UrlTreeNode, sink: TextIO) -> None:
    """Write the tree as compact JSON to ``sink``."""
    json.dump(url_tree_to_dict(root), sink, separators=(",", ":"), ensure_ascii=False)
    sink.flush()
