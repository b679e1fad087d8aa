"""Rewrites applied only for the PowerShell client generator.

The generator derives cmdlet names from operation ids, so ids are
re-synthesized from the path shape: ``users.user_UpdateUser``,
``applications_GetCreatedOnBehalfOfByRef``, ``administrativeUnits_restore``.
"""

import re
from typing import Any, Dict, List, Optional, Set

from apislice.core.walker import NodeKind, WalkContext, walk
from apislice.models.document import Document, HttpMethod, Operation, Reference
from apislice.utils.constants import COUNT_SEGMENT, NETWORK_INTERFACE_SCHEMA, REF_SEGMENT, VALUE_SEGMENT
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

VERSION_PREFIX = "v1.0-"
_VERSION_PATTERN = re.compile(r"\d\.\d")

_VERB_FRAGMENTS = {
    HttpMethod.POST: "Create",
    HttpMethod.PATCH: "Update",
    HttpMethod.PUT: "Set",
    HttpMethod.DELETE: "Remove",
}

_SPECIAL_TARGETS = {
    VALUE_SEGMENT: "Content",
    COUNT_SEGMENT: "Count",
}

_SKIPPED_PREFIX_SEGMENTS = {REF_SEGMENT, VALUE_SEGMENT, COUNT_SEGMENT}


def split_path(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


def is_key_segment(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def key_entity_name(segment: str) -> str:
    """``{user-id}`` -> ``user``."""
    name = segment[1:-1]
    if name.endswith("-id"):
        name = name[:-3]
    return name


def strip_parameter_list(segment: str) -> str:
    """``microsoft.graph.getX(period={period})`` -> ``microsoft.graph.getX``."""
    return segment.split("(", 1)[0]


def is_qualified_segment(segment: str) -> bool:
    """Namespace-qualified segments name bound actions, functions or casts."""
    return "." in strip_parameter_list(segment)


def last_dotted_part(value: str) -> str:
    return value.rsplit(".", 1)[-1]


def upper_first(value: str) -> str:
    return value[:1].upper() + value[1:]


class OperationIdFormatter:
    """Synthesizes operation ids from path shape, verb and operation kind."""

    def __init__(self, document: Document):
        """Initialize formatter.

        Args:
            document: Document whose paths decide which segments are collections
        """
        self.document = document
        self._key_children: Dict[str, str] = {}
        for path in document.paths:
            segments = split_path(path)
            if segments and is_key_segment(segments[-1]):
                parent = "/" + "/".join(segments[:-1])
                self._key_children.setdefault(parent.lower(), segments[-1])
        self._assigned: Set[str] = set()
        self.renamed = 0

    def __call__(self, operation: Operation, context: WalkContext) -> None:
        operation_id = self.synthesize(context.path, context.method, operation)
        operation.operation_id = self._make_unique(operation_id)
        self.renamed += 1

    def _make_unique(self, operation_id: str) -> str:
        candidate = operation_id
        suffix = 2
        while candidate in self._assigned:
            candidate = f"{operation_id}{suffix}"
            suffix += 1
        self._assigned.add(candidate)
        return candidate

    def synthesize(self, path: str, method: HttpMethod, operation: Operation) -> str:
        """Build the operation id for ``method`` on ``path``.

        Args:
            path: Path template
            method: HTTP verb
            operation: Operation at that path and verb

        Returns:
            Synthesized operation id
        """
        segments = split_path(path)
        if not segments:
            return f"{self._verb_fragment(method, False)}Root"

        last = segments[-1]
        if is_qualified_segment(last) or operation.is_action or operation.is_function:
            return self._bound_operation_id(segments)
        if last == REF_SEGMENT:
            return self._reference_operation_id(segments, method, operation)
        return self._entity_operation_id(segments, method, operation)

    def _bound_operation_id(self, segments: List[str]) -> str:
        prefix = [
            self._literal_name(segment) for segment in segments[:-1]
            if not is_key_segment(segment) and segment not in _SKIPPED_PREFIX_SEGMENTS
        ]
        name = last_dotted_part(strip_parameter_list(segments[-1]))
        return f"{'.'.join(prefix)}_{name}" if prefix else name

    def _reference_operation_id(self, segments: List[str], method: HttpMethod, operation: Operation) -> str:
        literals = [
            self._literal_name(segment) for segment in segments[:-1]
            if not is_key_segment(segment) and segment not in _SKIPPED_PREFIX_SEGMENTS
        ]
        navigation = literals[-1] if literals else "Reference"
        prefix = literals[:-1]
        collection = self._is_collection(segments[:-1], operation)
        fragment = self._verb_fragment(method, collection)
        name = f"{fragment}{upper_first(navigation)}ByRef"
        return f"{'.'.join(prefix)}_{name}" if prefix else name

    def _entity_operation_id(self, segments: List[str], method: HttpMethod, operation: Operation) -> str:
        prefix: List[str] = []
        for segment in segments[:-1]:
            if is_key_segment(segment):
                prefix.append(key_entity_name(segment))
            elif segment not in _SKIPPED_PREFIX_SEGMENTS:
                prefix.append(self._literal_name(segment))

        last = segments[-1]
        collection = False
        if is_key_segment(last):
            target = key_entity_name(last)
            prefix.append(target)
        elif last in _SPECIAL_TARGETS:
            target = _SPECIAL_TARGETS[last]
        elif self._is_collection(segments, operation):
            collection = True
            target = self._collection_entity_name(segments, operation)
            prefix.extend([last, target])
        else:
            target = self._literal_name(last)

        fragment = self._verb_fragment(method, collection)
        name = f"{fragment}{upper_first(target)}"
        return f"{'.'.join(prefix)}_{name}" if prefix else name

    def _literal_name(self, segment: str) -> str:
        if is_qualified_segment(segment):
            return last_dotted_part(strip_parameter_list(segment))
        return segment

    def _verb_fragment(self, method: HttpMethod, collection: bool) -> str:
        if method == HttpMethod.GET:
            return "List" if collection else "Get"
        return _VERB_FRAGMENTS.get(method, method.display_name)

    def _is_collection(self, segments: List[str], operation: Operation) -> bool:
        if not segments or is_key_segment(segments[-1]):
            return False
        if segments[-1] in _SKIPPED_PREFIX_SEGMENTS:
            return False
        parent = "/" + "/".join(segments)
        if parent.lower() in self._key_children:
            return True
        schema = self._success_schema(operation)
        if schema is None:
            return False
        if schema.get("type") == "array":
            return True
        value = self._resolve_schema((schema.get("properties") or {}).get("value"))
        return isinstance(value, dict) and value.get("type") == "array"

    def _collection_entity_name(self, segments: List[str], operation: Operation) -> str:
        key = self._key_children.get(("/" + "/".join(segments)).lower())
        if key is not None:
            return key_entity_name(key)

        schema = self._success_schema(operation) or {}
        items = schema.get("items")
        if items is None:
            value = self._resolve_schema((schema.get("properties") or {}).get("value")) or {}
            items = value.get("items")
        reference = Reference.from_node(items)
        if reference is not None:
            return last_dotted_part(reference.id)
        return segments[-1]

    def _success_schema(self, operation: Operation) -> Optional[Dict[str, Any]]:
        for status, response in operation.responses.items():
            if not status.startswith("2"):
                continue
            response = self._resolve(response)
            for media_type in ((response or {}).get("content") or {}).values():
                schema = self._resolve_schema((media_type or {}).get("schema"))
                if schema is not None:
                    return schema
        return None

    def _resolve(self, node: Any) -> Any:
        reference = Reference.from_node(node)
        if reference is None:
            return node
        return self.document.components.resolve(reference)

    def _resolve_schema(self, schema: Any) -> Optional[Dict[str, Any]]:
        resolved = self._resolve(schema)
        return resolved if isinstance(resolved, dict) else None


def format_operation_ids(document: Document) -> int:
    """Replace every operation id in ``document`` with a synthesized one.

    Returns:
        Number of operations renamed
    """
    formatter = OperationIdFormatter(document)
    walk(document, {NodeKind.OPERATION: formatter}, include_components=False)
    logger.debug("Formatted operation ids", count=formatter.renamed)
    return formatter.renamed


def prefix_version(version: str) -> str:
    """Prefix ``v1.0-`` unless the version already looks like ``<digit>.<digit>``."""
    if _VERSION_PATTERN.search(version or ""):
        return version
    return f"{VERSION_PREFIX}{version}"


def remove_root_path(document: Document) -> bool:
    return document.paths.pop("/", None) is not None


def escape_pound_tokens(document: Document) -> bool:
    """Replace ``<#>`` with ``<#/>`` in one known schema property description.

    The token in ``microsoft.graph.networkInterface`` breaks the generator's
    help text.
    """
    schema = document.components.schemas.get(NETWORK_INTERFACE_SCHEMA)
    if not isinstance(schema, dict):
        return False
    prop = (schema.get("properties") or {}).get("description")
    if not isinstance(prop, dict) or not isinstance(prop.get("description"), str):
        return False
    if "<#>" not in prop["description"]:
        return False
    prop["description"] = prop["description"].replace("<#>", "<#/>")
    return True
