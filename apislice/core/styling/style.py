"""Style rewriter: shapes a subset document for one downstream generator."""

from enum import Enum
from typing import Union

from apislice.core.filtering.subset import NO_PATHS_MESSAGE
from apislice.core.styling.any_of_remover import remove_compositions
from apislice.core.styling.content_remover import remove_content
from apislice.core.styling.powershell_formatter import (
    escape_pound_tokens, format_operation_ids, prefix_version, remove_root_path
)
from apislice.models.document import Document
from apislice.utils.exceptions import ConfigurationError, NotFoundError
from apislice.utils.logging import get_logger

logger = get_logger(__name__)


class OpenApiStyle(str, Enum):
    """Output profiles, one per consumer."""

    PLAIN = "Plain"
    POWERSHELL = "PowerShell"
    POWERPLATFORM = "PowerPlatform"
    GEAUTOCOMPLETE = "GEAutocomplete"

    @classmethod
    def parse(cls, value: Union[str, "OpenApiStyle"]) -> "OpenApiStyle":
        """Parse a style name case-insensitively.

        Raises:
            ConfigurationError: For unknown names
        """
        if isinstance(value, cls):
            return value
        for style in cls:
            if style.value.lower() == str(value).lower():
                return style
        raise ConfigurationError(
            f"Unknown style: {value}",
            suggestion=f"Use one of: {', '.join(style.value for style in cls)}",
            error_code="UNKNOWN_STYLE"
        )


def apply_style(
    style: Union[str, OpenApiStyle],
    document: Document,
    include_request_body: bool = True
) -> Document:
    """Apply a style's rewrite rules.

    Every style except Plain works on a deep copy; ``document`` is never
    mutated.

    Args:
        style: Output style
        document: Subset document
        include_request_body: GEAutocomplete only; False empties all bodies

    Returns:
        Styled document

    Raises:
        NotFoundError: When the styled document has no paths left
    """
    style = OpenApiStyle.parse(style)
    logger.info("Applying style", style=style.value, include_request_body=include_request_body)

    if style == OpenApiStyle.PLAIN:
        styled = document
    else:
        styled = document.model_copy(deep=True)

    if style == OpenApiStyle.GEAUTOCOMPLETE and not include_request_body:
        remove_content(styled)

    if style in (OpenApiStyle.POWERSHELL, OpenApiStyle.POWERPLATFORM):
        remove_compositions(styled)

    if style == OpenApiStyle.POWERSHELL:
        remove_root_path(styled)
        format_operation_ids(styled)
        styled.info.version = prefix_version(styled.info.version)
        escape_pound_tokens(styled)

    if not styled.paths:
        raise NotFoundError(
            NO_PATHS_MESSAGE,
            details={"style": style.value},
            error_code="NO_PATHS"
        )
    return styled
