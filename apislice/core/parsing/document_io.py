"""Loading and writing OpenAPI documents."""

import copy
import json
from pathlib import Path
from typing import Any, Optional, Set
from urllib.parse import urlparse

import aiofiles
import httpx
import yaml
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate
from pydantic import ValidationError as PydanticValidationError

from apislice.models.document import Document, Reference
from apislice.utils.constants import DEFAULT_LOADER_TIMEOUT, USER_AGENT
from apislice.utils.exceptions import ConfigurationError, DocumentLoadError
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

# Only the top-level shape is checked; the engine tolerates everything else
DOCUMENT_SKELETON_SCHEMA = {
    "type": "object",
    "required": ["openapi", "info", "paths"],
    "properties": {
        "openapi": {"type": "string", "pattern": "^3\\."},
        "info": {"type": "object"},
        "paths": {"type": "object"},
        "components": {"type": "object"},
        "servers": {"type": "array"},
        "security": {"type": "array"},
    },
}

SUPPORTED_FORMATS = ("json", "yaml")


class DocumentLoader:
    """Reads OpenAPI 3 documents from files or urls."""

    def __init__(self, timeout: int = DEFAULT_LOADER_TIMEOUT, validate_skeleton: bool = True):
        """Initialize document loader.

        Args:
            timeout: HTTP request timeout in seconds
            validate_skeleton: Check the top-level document shape
        """
        self.timeout = timeout
        self.validate_skeleton = validate_skeleton

    async def load(self, source: str) -> Document:
        """Load a document from a url or file path.

        Args:
            source: URL or file path

        Returns:
            Parsed document

        Raises:
            DocumentLoadError: If the source cannot be read or parsed
        """
        if self._is_url(source):
            content = await self._fetch_from_url(source)
        else:
            content = await self._read_from_file(source)
        return self.parse(content, source)

    def parse(self, content: str, source_name: str = "content") -> Document:
        """Parse document text.

        Args:
            content: JSON or YAML text
            source_name: Name of the source, for error messages

        Returns:
            Parsed document
        """
        try:
            if content.lstrip().startswith("{"):
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise DocumentLoadError(
                f"Invalid JSON/YAML in {source_name}",
                details={"error": str(e)},
                error_code="INVALID_SYNTAX"
            ) from e

        if not isinstance(data, dict):
            raise DocumentLoadError(
                f"API document must be a JSON/YAML object in {source_name}",
                error_code="INVALID_DOCUMENT"
            )

        if self.validate_skeleton:
            try:
                validate(instance=data, schema=DOCUMENT_SKELETON_SCHEMA)
            except JsonSchemaValidationError as e:
                raise DocumentLoadError(
                    f"Unsupported API document in {source_name}: {e.message}",
                    suggestion="Only OpenAPI 3.x documents are supported",
                    error_code="INVALID_DOCUMENT"
                ) from e

        try:
            document = Document.from_dict(data)
        except PydanticValidationError as e:
            raise DocumentLoadError(
                f"Invalid API document in {source_name}",
                details={"error": str(e)},
                error_code="INVALID_DOCUMENT"
            ) from e
        logger.info("Loaded document", source=source_name, paths=len(document.paths))
        return document

    def _is_url(self, source: str) -> bool:
        result = urlparse(source)
        return bool(result.scheme in ("http", "https") and result.netloc)

    async def _fetch_from_url(self, url: str) -> str:
        headers = {"User-Agent": USER_AGENT, "Accept-Encoding": "gzip"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, headers=headers) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as e:
            raise DocumentLoadError(
                f"Failed to fetch API document from {url}",
                details={"error": str(e)},
                error_code="FETCH_FAILED"
            ) from e

    async def _read_from_file(self, file_path: str) -> str:
        path = Path(file_path)
        if not path.exists():
            raise DocumentLoadError(f"File not found: {file_path}", error_code="FILE_NOT_FOUND")
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except UnicodeDecodeError as e:
            raise DocumentLoadError(f"Failed to decode file {file_path}", details={"error": str(e)}) from e
        except OSError as e:
            raise DocumentLoadError(f"Failed to read file {file_path}", details={"error": str(e)}) from e


class DocumentWriter:
    """Serializes documents to JSON or YAML."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def serialize(
        self,
        document: Document,
        fmt: str = "json",
        inline_local_references: bool = False
    ) -> str:
        """Serialize a document.

        Args:
            document: Document to serialize
            fmt: ``json`` or ``yaml``
            inline_local_references: Replace local references with copies of their targets

        Returns:
            Serialized text
        """
        fmt = fmt.lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ConfigurationError(
                f"Unsupported output format: {fmt}",
                suggestion=f"Use one of: {', '.join(SUPPORTED_FORMATS)}",
                error_code="UNSUPPORTED_FORMAT"
            )

        data = document.to_dict()
        if inline_local_references:
            data = inline_references(data, document)

        if fmt == "yaml":
            return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        return json.dumps(data, indent=self.indent, ensure_ascii=False)

    async def write(
        self,
        document: Document,
        path: str,
        fmt: Optional[str] = None,
        inline_local_references: bool = False
    ) -> Path:
        """Write a document to ``path``; the format defaults to the file suffix."""
        output_path = Path(path)
        if fmt is None:
            fmt = "yaml" if output_path.suffix.lower() in (".yaml", ".yml") else "json"
        content = self.serialize(document, fmt, inline_local_references)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(output_path, "w", encoding="utf-8") as f:
            await f.write(content)
        logger.info("Wrote document", path=str(output_path), format=fmt)
        return output_path


def inline_references(data: Any, document: Document, active: Optional[Set[str]] = None) -> Any:
    """Replace local references in ``data`` with copies of their targets.

    A reference already being inlined on the current branch is left as is,
    so recursive schemas terminate.
    """
    active = active or set()
    if isinstance(data, list):
        return [inline_references(item, document, active) for item in data]
    if not isinstance(data, dict):
        return data

    reference = Reference.from_node(data)
    if reference is not None:
        target = document.components.resolve(reference)
        if target is None or reference.pointer in active:
            return dict(data)
        return inline_references(copy.deepcopy(target), document, active | {reference.pointer})

    return {key: inline_references(value, document, active) for key, value in data.items()}
