"""Generic document traversal with per-node-kind callbacks.

Rewriting passes (composition flattening, content stripping, reference
collection) are expressed as a table of callbacks keyed by ``NodeKind``
instead of visitor subclasses. The walker owns the shape of an OpenAPI
document; callbacks only see one node at a time.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from apislice.models.document import Document, HttpMethod, Operation, PathItem, Reference, ReferenceKind


class NodeKind(str, Enum):
    """Kinds of node the walker reports."""

    DOCUMENT = "document"
    PATH_ITEM = "path_item"
    OPERATION = "operation"
    PARAMETER = "parameter"
    REQUEST_BODY = "request_body"
    RESPONSE = "response"
    HEADER = "header"
    MEDIA_TYPE = "media_type"
    SCHEMA = "schema"
    EXAMPLE = "example"
    LINK = "link"
    SECURITY_SCHEME = "security_scheme"
    REFERENCE = "reference"


# Site kind a bare ``$ref`` at a given node kind points into
_SITE_REFERENCE_KINDS = {
    NodeKind.PARAMETER: ReferenceKind.PARAMETER,
    NodeKind.REQUEST_BODY: ReferenceKind.REQUEST_BODY,
    NodeKind.RESPONSE: ReferenceKind.RESPONSE,
    NodeKind.HEADER: ReferenceKind.HEADER,
    NodeKind.SCHEMA: ReferenceKind.SCHEMA,
    NodeKind.EXAMPLE: ReferenceKind.EXAMPLE,
    NodeKind.LINK: ReferenceKind.LINK,
    NodeKind.SECURITY_SCHEME: ReferenceKind.SECURITY_SCHEME,
}

_COMPONENT_NODE_KINDS = {
    ReferenceKind.SCHEMA: NodeKind.SCHEMA,
    ReferenceKind.RESPONSE: NodeKind.RESPONSE,
    ReferenceKind.PARAMETER: NodeKind.PARAMETER,
    ReferenceKind.EXAMPLE: NodeKind.EXAMPLE,
    ReferenceKind.REQUEST_BODY: NodeKind.REQUEST_BODY,
    ReferenceKind.HEADER: NodeKind.HEADER,
    ReferenceKind.SECURITY_SCHEME: NodeKind.SECURITY_SCHEME,
    ReferenceKind.LINK: NodeKind.LINK,
}

_SCHEMA_LIST_KEYS = ("allOf", "anyOf", "oneOf")
_SCHEMA_SINGLE_KEYS = ("items", "not")


@dataclass(frozen=True)
class WalkContext:
    """Where in the document the current node sits."""

    path: Optional[str] = None
    method: Optional[HttpMethod] = None
    component: Optional[Tuple[ReferenceKind, str]] = None
    site: Optional[NodeKind] = None
    reference: Optional[Reference] = None


Callback = Callable[[Any, WalkContext], None]


def site_reference_kind(site: Optional[NodeKind]) -> ReferenceKind:
    """Reference kind implied by the site a ``$ref`` was found at."""
    return _SITE_REFERENCE_KINDS.get(site, ReferenceKind.SCHEMA)


class DocumentWalker:
    """Walks a document and dispatches nodes to callbacks."""

    def __init__(self, callbacks: Dict[NodeKind, Callback], include_components: bool = True):
        """Initialize walker.

        Args:
            callbacks: Callback per node kind; kinds without one are only traversed
            include_components: Also walk the components section
        """
        self.callbacks = callbacks
        self.include_components = include_components

    def _emit(self, kind: NodeKind, node: Any, context: WalkContext) -> None:
        callback = self.callbacks.get(kind)
        if callback is not None:
            callback(node, context)

    def _reference(self, node: Any, kind: NodeKind, context: WalkContext) -> bool:
        """Report ``node`` as a reference if it is one.

        Returns:
            True when the node was a reference and must not be descended into
        """
        if not isinstance(node, dict) or "$ref" not in node:
            return False
        reference = Reference.from_node(node)
        self._emit(
            NodeKind.REFERENCE, node,
            replace(context, site=kind, reference=reference)
        )
        return True

    def walk(self, document: Document) -> None:
        context = WalkContext()
        self._emit(NodeKind.DOCUMENT, document, context)

        for path, path_item in document.paths.items():
            self.walk_path_item(path_item, replace(context, path=path))

        if self.include_components:
            self.walk_components(document, context)

        self.walk_security(document.security, context)

    def walk_path_item(self, path_item: PathItem, context: WalkContext) -> None:
        self._emit(NodeKind.PATH_ITEM, path_item, context)
        for parameter in path_item.parameters:
            self.walk_parameter(parameter, context)
        for method, operation in path_item.operations.items():
            self.walk_operation(operation, replace(context, method=method))

    def walk_operation(self, operation: Operation, context: WalkContext) -> None:
        self._emit(NodeKind.OPERATION, operation, context)
        self._walk_operation_parts(
            operation.parameters,
            operation.request_body,
            operation.responses,
            (operation.model_extra or {}).get("callbacks"),
            context,
        )
        if operation.security:
            self.walk_security(operation.security, context)

    def _walk_operation_parts(
        self,
        parameters: List[Any],
        request_body: Any,
        responses: Dict[str, Any],
        callbacks: Any,
        context: WalkContext
    ) -> None:
        for parameter in parameters or []:
            self.walk_parameter(parameter, context)
        if request_body is not None:
            self.walk_request_body(request_body, context)
        for response in (responses or {}).values():
            self.walk_response(response, context)
        if isinstance(callbacks, dict):
            for callback in callbacks.values():
                self.walk_callback(callback, context)

    def walk_callback(self, callback: Any, context: WalkContext) -> None:
        """Walk a callback object: expression -> raw path item mapping."""
        if self._reference(callback, NodeKind.REFERENCE, context) or not isinstance(callback, dict):
            return
        for raw_path_item in callback.values():
            if not isinstance(raw_path_item, dict):
                continue
            for key, raw_operation in raw_path_item.items():
                if HttpMethod.is_method(key) and isinstance(raw_operation, dict):
                    self._walk_operation_parts(
                        raw_operation.get("parameters"),
                        raw_operation.get("requestBody"),
                        raw_operation.get("responses"),
                        raw_operation.get("callbacks"),
                        context,
                    )
                elif key == "parameters" and isinstance(raw_operation, list):
                    for parameter in raw_operation:
                        self.walk_parameter(parameter, context)

    def walk_parameter(self, parameter: Any, context: WalkContext) -> None:
        if self._reference(parameter, NodeKind.PARAMETER, context) or not isinstance(parameter, dict):
            return
        self._emit(NodeKind.PARAMETER, parameter, replace(context, site=NodeKind.PARAMETER))
        self._walk_schema_holder(parameter, context)

    def walk_header(self, header: Any, context: WalkContext) -> None:
        if self._reference(header, NodeKind.HEADER, context) or not isinstance(header, dict):
            return
        self._emit(NodeKind.HEADER, header, replace(context, site=NodeKind.HEADER))
        self._walk_schema_holder(header, context)

    def walk_request_body(self, request_body: Any, context: WalkContext) -> None:
        if self._reference(request_body, NodeKind.REQUEST_BODY, context) or not isinstance(request_body, dict):
            return
        self._emit(NodeKind.REQUEST_BODY, request_body, replace(context, site=NodeKind.REQUEST_BODY))
        self._walk_content(request_body.get("content"), context)

    def walk_response(self, response: Any, context: WalkContext) -> None:
        if self._reference(response, NodeKind.RESPONSE, context) or not isinstance(response, dict):
            return
        self._emit(NodeKind.RESPONSE, response, replace(context, site=NodeKind.RESPONSE))
        for header in (response.get("headers") or {}).values():
            self.walk_header(header, context)
        self._walk_content(response.get("content"), context)
        for link in (response.get("links") or {}).values():
            self.walk_link(link, context)

    def walk_link(self, link: Any, context: WalkContext) -> None:
        if self._reference(link, NodeKind.LINK, context) or not isinstance(link, dict):
            return
        self._emit(NodeKind.LINK, link, replace(context, site=NodeKind.LINK))

    def walk_example(self, example: Any, context: WalkContext) -> None:
        if self._reference(example, NodeKind.EXAMPLE, context) or not isinstance(example, dict):
            return
        self._emit(NodeKind.EXAMPLE, example, replace(context, site=NodeKind.EXAMPLE))

    def _walk_schema_holder(self, holder: Dict[str, Any], context: WalkContext) -> None:
        """Parameters and headers carry either a schema or a content map."""
        if "schema" in holder:
            self.walk_schema(holder["schema"], context)
        self._walk_content(holder.get("content"), context)
        for example in (holder.get("examples") or {}).values():
            self.walk_example(example, context)

    def _walk_content(self, content: Any, context: WalkContext) -> None:
        if not isinstance(content, dict):
            return
        for media_type in content.values():
            if not isinstance(media_type, dict):
                continue
            self._emit(NodeKind.MEDIA_TYPE, media_type, replace(context, site=NodeKind.MEDIA_TYPE))
            if "schema" in media_type:
                self.walk_schema(media_type["schema"], context)
            for example in (media_type.get("examples") or {}).values():
                self.walk_example(example, context)
            for encoding in (media_type.get("encoding") or {}).values():
                if isinstance(encoding, dict):
                    for header in (encoding.get("headers") or {}).values():
                        self.walk_header(header, context)

    def walk_schema(self, schema: Any, context: WalkContext) -> None:
        """Walk a schema and its children.

        The schema callback runs before children are read, so it may
        rewrite them.
        """
        if self._reference(schema, NodeKind.SCHEMA, context) or not isinstance(schema, dict):
            return
        self._emit(NodeKind.SCHEMA, schema, replace(context, site=NodeKind.SCHEMA))

        for child in (schema.get("properties") or {}).values():
            self.walk_schema(child, context)
        for key in _SCHEMA_SINGLE_KEYS:
            if key in schema:
                self.walk_schema(schema[key], context)
        if isinstance(schema.get("additionalProperties"), dict):
            self.walk_schema(schema["additionalProperties"], context)
        for key in _SCHEMA_LIST_KEYS:
            for member in schema.get(key) or []:
                self.walk_schema(member, context)

    def walk_components(self, document: Document, context: WalkContext) -> None:
        components = document.components
        for kind in ReferenceKind:
            for name, component in list(components.bucket(kind).items()):
                component_context = replace(context, component=(kind, name))
                if kind == ReferenceKind.CALLBACK:
                    self.walk_callback(component, component_context)
                elif kind == ReferenceKind.SECURITY_SCHEME:
                    if not self._reference(component, NodeKind.SECURITY_SCHEME, component_context):
                        self._emit(
                            NodeKind.SECURITY_SCHEME, component,
                            replace(component_context, site=NodeKind.SECURITY_SCHEME)
                        )
                else:
                    self._dispatch_component(kind, component, component_context)

    def _dispatch_component(self, kind: ReferenceKind, component: Any, context: WalkContext) -> None:
        node_kind = _COMPONENT_NODE_KINDS[kind]
        if node_kind == NodeKind.SCHEMA:
            self.walk_schema(component, context)
        elif node_kind == NodeKind.PARAMETER:
            self.walk_parameter(component, context)
        elif node_kind == NodeKind.REQUEST_BODY:
            self.walk_request_body(component, context)
        elif node_kind == NodeKind.RESPONSE:
            self.walk_response(component, context)
        elif node_kind == NodeKind.HEADER:
            self.walk_header(component, context)
        elif node_kind == NodeKind.EXAMPLE:
            self.walk_example(component, context)
        elif node_kind == NodeKind.LINK:
            self.walk_link(component, context)

    def walk_security(self, requirements: List[Dict[str, List[str]]], context: WalkContext) -> None:
        """Security requirements name schemes; report each name as a reference."""
        for requirement in requirements or []:
            for name in requirement:
                reference = Reference(id=name, kind=ReferenceKind.SECURITY_SCHEME)
                self._emit(
                    NodeKind.REFERENCE, requirement,
                    replace(context, site=NodeKind.SECURITY_SCHEME, reference=reference)
                )


def walk(
    document: Document,
    callbacks: Dict[NodeKind, Callback],
    include_components: bool = True
) -> None:
    """Walk ``document`` dispatching nodes to ``callbacks``.

    Args:
        document: Document to traverse
        callbacks: Callback per node kind
        include_components: Also walk the components section
    """
    DocumentWalker(callbacks, include_components=include_components).walk(document)


def collect_references(document: Document, include_components: bool = True) -> List[Reference]:
    """Collect every local reference used in ``document``, in walk order, deduplicated."""
    seen = set()
    references: List[Reference] = []

    def on_reference(node: Any, context: WalkContext) -> None:
        reference = context.reference
        if reference is not None and reference not in seen:
            seen.add(reference)
            references.append(reference)

    walk(document, {NodeKind.REFERENCE: on_reference}, include_components=include_components)
    return references


def collect_component_references(kind: ReferenceKind, component: Any) -> List[Reference]:
    """Collect local references held inside a single component of ``kind``."""
    references: List[Reference] = []

    def on_reference(node: Any, context: WalkContext) -> None:
        if context.reference is not None and context.reference not in references:
            references.append(context.reference)

    walker = DocumentWalker({NodeKind.REFERENCE: on_reference})
    context = WalkContext()
    if kind == ReferenceKind.CALLBACK:
        walker.walk_callback(component, context)
    elif kind == ReferenceKind.SECURITY_SCHEME:
        walker._reference(component, NodeKind.SECURITY_SCHEME, context)
    else:
        walker._dispatch_component(kind, component, context)
    return references
