"""OpenAPI document data models.

Structural objects (document, paths, operations, components) are pydantic
models. Leaf objects such as schemas, parameters, request bodies and
responses stay plain JSON-compatible dicts, the same shape they have in an
OpenAPI 3.0 JSON/YAML file.
"""

import re
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apislice.utils.constants import (
    OPENAPI_VERSION, OPERATION_TYPE_ACTION, OPERATION_TYPE_EXTENSION, OPERATION_TYPE_FUNCTION
)


class HttpMethod(str, Enum):
    """HTTP verbs an OpenAPI path item can hold, in OpenAPI order."""

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"

    @property
    def display_name(self) -> str:
        """Capitalized verb name, e.g. ``Get``."""
        return self.value.capitalize()

    @classmethod
    def is_method(cls, key: str) -> bool:
        return key.lower() in _HTTP_METHOD_VALUES


_HTTP_METHOD_VALUES = {method.value for method in HttpMethod}


class ReferenceKind(str, Enum):
    """Component buckets a local reference can point into."""

    SCHEMA = "schemas"
    RESPONSE = "responses"
    PARAMETER = "parameters"
    EXAMPLE = "examples"
    REQUEST_BODY = "requestBodies"
    HEADER = "headers"
    SECURITY_SCHEME = "securitySchemes"
    LINK = "links"
    CALLBACK = "callbacks"


_POINTER_PATTERN = re.compile(r"^#/components/([^/]+)/(.+)$")
_KIND_VALUES = {kind.value: kind for kind in ReferenceKind}


class Reference(BaseModel):
    """A named pointer to a component in the same document."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: ReferenceKind

    @property
    def pointer(self) -> str:
        """Canonical ``#/components/<bucket>/<id>`` pointer."""
        escaped = self.id.replace("~", "~0").replace("/", "~1")
        return f"#/components/{self.kind.value}/{escaped}"

    @classmethod
    def from_pointer(cls, pointer: Any) -> Optional["Reference"]:
        """Parse a local component pointer.

        Args:
            pointer: Value of a ``$ref`` key

        Returns:
            Reference, or None when the pointer is not a local component pointer
        """
        if not isinstance(pointer, str):
            return None
        match = _POINTER_PATTERN.match(pointer)
        if not match or match.group(1) not in _KIND_VALUES:
            return None
        ref_id = match.group(2).replace("~1", "/").replace("~0", "~")
        return cls(id=ref_id, kind=_KIND_VALUES[match.group(1)])

    @classmethod
    def from_node(cls, node: Any) -> Optional["Reference"]:
        """Parse the reference held by a dict node, if any."""
        if isinstance(node, dict) and "$ref" in node:
            return cls.from_pointer(node["$ref"])
        return None


class Info(BaseModel):
    """Document metadata."""

    model_config = ConfigDict(extra="allow")

    title: str = ""
    version: str = ""
    description: Optional[str] = None


class Server(BaseModel):
    """Server entry."""

    model_config = ConfigDict(extra="allow")

    url: str
    description: Optional[str] = None


_BUCKET_FIELDS = {
    ReferenceKind.SCHEMA: "schemas",
    ReferenceKind.RESPONSE: "responses",
    ReferenceKind.PARAMETER: "parameters",
    ReferenceKind.EXAMPLE: "examples",
    ReferenceKind.REQUEST_BODY: "request_bodies",
    ReferenceKind.HEADER: "headers",
    ReferenceKind.SECURITY_SCHEME: "security_schemes",
    ReferenceKind.LINK: "links",
    ReferenceKind.CALLBACK: "callbacks",
}


class Components(BaseModel):
    """Reusable components, one mapping per kind, keyed by name."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    schemas: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    responses: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    parameters: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    examples: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    request_bodies: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="requestBodies")
    headers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    security_schemes: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="securitySchemes")
    links: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    callbacks: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def bucket(self, kind: ReferenceKind) -> Dict[str, Dict[str, Any]]:
        """Get the mapping that holds components of the given kind."""
        return getattr(self, _BUCKET_FIELDS[kind])

    def resolve(self, reference: Reference) -> Optional[Dict[str, Any]]:
        """Look a reference up by name.

        Args:
            reference: Reference to resolve

        Returns:
            The component, or None when it is not defined here
        """
        return self.bucket(reference.kind).get(reference.id)

    def count(self) -> int:
        return sum(len(self.bucket(kind)) for kind in ReferenceKind)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        return {key: value for key, value in data.items() if value != {}}


class Operation(BaseModel):
    """One HTTP-verb specific endpoint definition."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    operation_id: Optional[str] = Field(None, alias="operationId")
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    parameters: List[Dict[str, Any]] = Field(default_factory=list)
    request_body: Optional[Dict[str, Any]] = Field(None, alias="requestBody")
    responses: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    security: Optional[List[Dict[str, List[str]]]] = None

    @field_validator("responses", mode="before")
    @classmethod
    def stringify_status_codes(cls, v):
        """YAML loads bare status codes as integers."""
        if isinstance(v, dict):
            return {str(key): value for key, value in v.items()}
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def flatten_tag_objects(cls, v):
        """Accept tag objects (``{"name": ...}``) as well as plain names."""
        if isinstance(v, list):
            return [tag.get("name", "") if isinstance(tag, dict) else tag for tag in v]
        return v

    @property
    def extensions(self) -> Dict[str, Any]:
        """Specification extensions (``x-`` keys)."""
        return {
            key: value for key, value in (self.model_extra or {}).items()
            if key.startswith("x-")
        }

    @property
    def operation_type(self) -> Optional[str]:
        value = self.extensions.get(OPERATION_TYPE_EXTENSION)
        return value if isinstance(value, str) else None

    @property
    def is_function(self) -> bool:
        return self.operation_type == OPERATION_TYPE_FUNCTION

    @property
    def is_action(self) -> bool:
        return self.operation_type == OPERATION_TYPE_ACTION

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True)
        for key in ("tags", "parameters"):
            if not data.get(key):
                data.pop(key, None)
        return data


class PathItem(BaseModel):
    """Mapping of HTTP verb to operation for one path template."""

    model_config = ConfigDict(extra="allow")

    operations: Dict[HttpMethod, Operation] = Field(default_factory=dict)
    parameters: List[Dict[str, Any]] = Field(default_factory=list)
    summary: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PathItem":
        """Build a path item from its OpenAPI mapping.

        Verb keys become operations; every other key is kept as is.
        """
        operations: Dict[HttpMethod, Operation] = {}
        fields: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            if HttpMethod.is_method(key):
                operations[HttpMethod(key.lower())] = Operation.model_validate(value or {})
            else:
                fields[key] = value
        return cls(operations=operations, **fields)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_none=True, exclude={"operations"})
        if not data.get("parameters"):
            data.pop("parameters", None)
        for method, operation in self.operations.items():
            data[method.value] = operation.to_dict()
        return data


class Document(BaseModel):
    """Root aggregate describing an HTTP API surface."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    openapi: str = OPENAPI_VERSION
    info: Info = Field(default_factory=Info)
    servers: List[Server] = Field(default_factory=list)
    paths: Dict[str, PathItem] = Field(default_factory=dict)
    components: Components = Field(default_factory=Components)
    security: List[Dict[str, List[str]]] = Field(default_factory=list)
    tags: List[Dict[str, Any]] = Field(default_factory=list)
    external_docs: Optional[Dict[str, Any]] = Field(None, alias="externalDocs")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Build a document from a parsed OpenAPI 3.0 mapping.

        Args:
            data: Parsed JSON/YAML document

        Returns:
            Document model
        """
        fields = dict(data)
        fields["paths"] = {
            key: item if isinstance(item, PathItem) else PathItem.from_dict(item)
            for key, item in (data.get("paths") or {}).items()
        }
        fields["components"] = data.get("components") or {}
        return cls.model_validate(fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain OpenAPI mapping ready for serialization."""
        data: Dict[str, Any] = {
            "openapi": self.openapi,
            "info": self.info.model_dump(exclude_none=True),
        }
        if self.servers:
            data["servers"] = [server.model_dump(exclude_none=True) for server in self.servers]
        data["paths"] = {key: item.to_dict() for key, item in self.paths.items()}
        components = self.components.to_dict()
        if components:
            data["components"] = components
        if self.security:
            data["security"] = self.security
        if self.tags:
            data["tags"] = self.tags
        if self.external_docs is not None:
            data["externalDocs"] = self.external_docs
        data.update(self.model_extra or {})
        return data

    def iter_operations(self) -> Iterator[Tuple[str, HttpMethod, Operation]]:
        """Yield ``(path, method, operation)`` in document order."""
        for path, path_item in self.paths.items():
            for method, operation in path_item.operations.items():
                yield path, method, operation

    def operation_count(self) -> int:
        return sum(len(item.operations) for item in self.paths.values())
