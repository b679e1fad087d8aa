"""Slice service: one entry point for loading, filtering and styling documents."""

from typing import Mapping, Optional, TextIO, Union

from apislice.core.cache import DocumentCache
from apislice.core.filtering.predicate import OperationPredicate
from apislice.core.filtering.predicate import create_predicate as build_predicate
from apislice.core.filtering.subset import create_filtered_document as build_filtered_document
from apislice.core.normalizer import ReferenceNormalizer
from apislice.core.parsing.document_io import DocumentLoader
from apislice.core.styling.style import OpenApiStyle
from apislice.core.styling.style import apply_style as style_document
from apislice.core.url_tree import UrlTreeNode, write_url_tree_json
from apislice.core.url_tree import create_url_tree as build_url_tree
from apislice.models.config import ConvertSettings, SliceConfig
from apislice.models.config import get_convert_settings as build_convert_settings
from apislice.models.document import Document
from apislice.utils.logging import get_logger

logger = get_logger(__name__)


class SliceService:
    """Facade over the filtering, styling and normalization engine.

    The service keeps no per-request state. Its cache only holds source
    documents, which the engine never mutates.
    """

    def __init__(self, config: Optional[SliceConfig] = None, loader: Optional[DocumentLoader] = None):
        """Initialize slice service.

        Args:
            config: Service configuration
            loader: Document loader; built from the config when omitted
        """
        self.config = config or SliceConfig()
        self.loader = loader or DocumentLoader(
            timeout=self.config.loader.timeout,
            validate_skeleton=self.config.loader.validate_skeleton
        )
        self.cache = DocumentCache(self.loader.load)

    def create_predicate(
        self,
        source: Document,
        operation_ids: Optional[str] = None,
        tags: Optional[str] = None,
        url: Optional[str] = None,
        label: Optional[str] = None
    ) -> OperationPredicate:
        return build_predicate(
            operation_ids, tags, url, source,
            label=label or self.config.subset.graph_version
        )

    def create_filtered_document(
        self,
        source: Document,
        title: str,
        version: str,
        predicate: OperationPredicate
    ) -> Document:
        return build_filtered_document(source, title, version, predicate, config=self.config.subset)

    def apply_style(
        self,
        style: Union[str, OpenApiStyle],
        document: Document,
        include_request_body: bool = True
    ) -> Document:
        return style_document(style, document, include_request_body=include_request_body)

    def create_url_tree(self, sources: Mapping[str, Document]) -> UrlTreeNode:
        return build_url_tree(sources)

    def convert_url_tree_to_json(self, root: UrlTreeNode, sink: TextIO) -> None:
        write_url_tree_json(root, sink)

    def fix_references(self, document: Document, batch_size: Optional[int] = None) -> Document:
        """Normalize references batch by batch.

        Args:
            document: Document straight from the converter
            batch_size: Path entries per batch; the configured size when None

        Returns:
            Normalized document
        """
        normalizer = ReferenceNormalizer(batch_size or self.config.normalizer.batch_size)
        return normalizer.normalize(document)

    def get_convert_settings(self, style: Union[str, OpenApiStyle, None] = None) -> ConvertSettings:
        if style is not None:
            style = OpenApiStyle.parse(style)
        return build_convert_settings(style)

    async def get_document(self, source: str, force_refresh: bool = False) -> Document:
        """Load a source document through the cache."""
        return await self.cache.get(source, force_refresh=force_refresh)

    def slice(
        self,
        source: Document,
        operation_ids: Optional[str] = None,
        tags: Optional[str] = None,
        url: Optional[str] = None,
        style: Union[str, OpenApiStyle] = OpenApiStyle.PLAIN,
        include_request_body: bool = True,
        title: Optional[str] = None,
        version: Optional[str] = None
    ) -> Document:
        """Filter and style ``source`` in one call.

        Args:
            source: Source document; never mutated
            operation_ids: Comma separated operation ids, or ``*``
            tags: Tag regex or comma separated tag names
            url: Relative url
            style: Output style
            include_request_body: GEAutocomplete only
            title: Subset title; the configured title when None
            version: Graph version; the configured version when None

        Returns:
            Styled subset document
        """
        style = OpenApiStyle.parse(style)
        version = version or self.config.subset.graph_version
        title = title or self.config.subset.title

        predicate = self.create_predicate(source, operation_ids, tags, url, label=version)
        subset = self.create_filtered_document(source, title, version, predicate)
        styled = self.apply_style(style, subset, include_request_body=include_request_body)
        logger.info("Sliced document", style=style.value, paths=len(styled.paths))
        return styled
