"""Reference normalizer.

Documents produced by the metadata converter can hold references that do
not yet resolve within the in-memory graph: bare ids, legacy
``#/definitions`` pointers, shared sub-objects, or resolved content sitting
next to ``$ref``. Normalizing rebuilds the document with fresh objects and
relinks every reference by name.

Large documents are processed in batches of path entries. Each batch is
normalized together with the metadata (info, components, ...) produced by
the previous batch, and the results are merged into one accumulator.
"""

from typing import Any, Dict, List, Tuple

from apislice.core.walker import NodeKind, WalkContext, site_reference_kind, walk
from apislice.models.document import Document, PathItem, Reference
from apislice.utils.constants import DEFAULT_NORMALIZER_BATCH_SIZE
from apislice.utils.exceptions import ConfigurationError, ReferenceResolutionError
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

_LEGACY_SCHEMA_PREFIX = "#/definitions/"
_METADATA_FIELDS = ("openapi", "info", "servers", "components", "security", "tags", "external_docs")


def fresh_copy(node: Any) -> Any:
    """Rebuild JSON-like data so that no container is shared."""
    if isinstance(node, dict):
        return {key: fresh_copy(value) for key, value in node.items()}
    if isinstance(node, list):
        return [fresh_copy(value) for value in node]
    return node


def is_bare_id(pointer: str) -> bool:
    """``microsoft.graph.user`` rather than a json pointer or external file."""
    return bool(pointer) and not pointer.startswith("#") and "/" not in pointer and ":" not in pointer \
        and not pointer.endswith((".json", ".yaml", ".yml"))


def canonical_pointer(pointer: str, context: WalkContext) -> str:
    """Rewrite a ``$ref`` value into the canonical component pointer form."""
    if pointer.startswith(_LEGACY_SCHEMA_PREFIX):
        return "#/components/schemas/" + pointer[len(_LEGACY_SCHEMA_PREFIX):]
    if is_bare_id(pointer):
        return Reference(id=pointer, kind=site_reference_kind(context.site)).pointer
    return pointer


class ReferenceRelinker:
    """Walker callback relinking each reference by name."""

    def __init__(self, document: Document):
        self.document = document
        self.diagnostics: List[Dict[str, Any]] = []
        self.relinked = 0

    def __call__(self, node: Dict[str, Any], context: WalkContext) -> None:
        if "$ref" in node:
            pointer = node["$ref"]
            if not isinstance(pointer, str):
                return
            canonical = canonical_pointer(pointer, context)
            if canonical != pointer or len(node) > 1:
                self.relinked += 1
            # Resolved content next to $ref is stale; the name wins
            node.clear()
            node["$ref"] = canonical
            reference = Reference.from_pointer(canonical)
        else:
            reference = context.reference

        if reference is not None and self.document.components.resolve(reference) is None:
            self.diagnostics.append({
                "reference": reference.pointer,
                "path": context.path,
                "component": context.component[1] if context.component else None,
            })
            logger.warning(
                "Reference target not found",
                reference=reference.pointer,
                path=context.path
            )


def clone_and_relink(document: Document) -> Tuple[Document, List[Dict[str, Any]]]:
    """Rebuild ``document`` with fresh objects and re-resolve references by name.

    Args:
        document: Document to normalize; not mutated

    Returns:
        Normalized document and the diagnostics for unresolved references
    """
    clone = Document.from_dict(fresh_copy(document.to_dict()))
    relinker = ReferenceRelinker(clone)
    walk(clone, {NodeKind.REFERENCE: relinker})
    return clone, relinker.diagnostics


class ReferenceNormalizer:
    """Batched reference normalization."""

    def __init__(self, batch_size: int = DEFAULT_NORMALIZER_BATCH_SIZE):
        """Initialize normalizer.

        Args:
            batch_size: Path entries per batch

        Raises:
            ConfigurationError: When batch_size is below 1
        """
        if batch_size < 1:
            raise ConfigurationError(
                f"Batch size must be at least 1, got {batch_size}",
                error_code="INVALID_BATCH_SIZE"
            )
        self.batch_size = batch_size
        self.diagnostics: List[Dict[str, Any]] = []

    def _batch_document(self, metadata: Document, paths: List[Tuple[str, PathItem]]) -> Document:
        batch = metadata.model_copy(update={"paths": dict(paths)})
        return batch

    def _merge_metadata(self, accumulator: Document, batch: Document) -> None:
        for field in _METADATA_FIELDS:
            setattr(accumulator, field, getattr(batch, field))
        if batch.model_extra is not None and accumulator.model_extra is not None:
            accumulator.model_extra.clear()
            accumulator.model_extra.update(batch.model_extra)

    def normalize(self, document: Document) -> Document:
        """Normalize ``document`` batch by batch.

        Args:
            document: Source document; not mutated

        Returns:
            Normalized document holding every path of the source

        Raises:
            ReferenceResolutionError: When a batch yields no paths
        """
        source_paths = list(document.paths.items())
        total = len(source_paths)
        self.diagnostics = []

        accumulator = Document()
        metadata = document
        skip = 0
        batch_number = 0

        while True:
            batch_paths = source_paths[skip:skip + self.batch_size]
            batch_number += 1
            normalized, diagnostics = clone_and_relink(self._batch_document(metadata, batch_paths))
            self.diagnostics.extend(diagnostics)

            before = len(accumulator.paths)
            accumulator.paths.update(normalized.paths)
            self._merge_metadata(accumulator, normalized)
            metadata = accumulator
            added = len(accumulator.paths) - before
            skip += len(batch_paths)

            logger.debug(
                "Normalized batch",
                batch=batch_number,
                paths=len(batch_paths),
                accumulated=len(accumulator.paths),
                total=total
            )

            if len(accumulator.paths) >= total:
                break
            if added == 0:
                raise ReferenceResolutionError(
                    "Normalization batch produced no paths",
                    details={"batch": batch_number, "skip": skip, "total": total},
                    error_code="EMPTY_BATCH"
                )

        logger.info(
            "Normalized document",
            paths=total,
            batches=batch_number,
            unresolved_references=len(self.diagnostics)
        )
        return accumulator


def fix_references(document: Document, batch_size: int = DEFAULT_NORMALIZER_BATCH_SIZE) -> Document:
    """Normalize references in ``document`` using batches of ``batch_size`` paths."""
    return ReferenceNormalizer(batch_size).normalize(document)
