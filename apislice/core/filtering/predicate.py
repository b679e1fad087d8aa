"""Predicate builder: turns a filter request into a test over operations."""

import re
from typing import Callable, List, Optional, Set
from urllib.parse import unquote

from apislice.core.url_tree import ROOT_SEGMENT, create_url_tree, get_operations
from apislice.models.document import Document, Operation
from apislice.utils.constants import DEFAULT_TREE_LABEL
from apislice.utils.exceptions import ConfigurationError, NotFoundError
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

OperationPredicate = Callable[[Operation], bool]

# segment(key) where key holds no '=' and no nested parentheses
_KEY_SEGMENT_PATTERN = re.compile(r"\(([^()=]+)\)")
_DUPLICATE_SLASHES = re.compile(r"/{2,}")


def normalize_url(url: str) -> str:
    """Normalize a request url to the tree's placeholder convention.

    Args:
        url: Relative url, possibly with a query string and OData key syntax

    Returns:
        Normalized path, e.g. ``/users/{user-id}/messages``
    """
    path = url.split("?", 1)[0]
    path = unquote(path)
    path = _KEY_SEGMENT_PATTERN.sub(lambda match: "/{" + match.group(1) + "}/", path)
    path = _DUPLICATE_SLASHES.sub("/", path)
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or ROOT_SEGMENT
    return path


def _is_supplied(value: Optional[str]) -> bool:
    return value is not None and value != ""


def _split_tokens(value: str) -> List[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def create_predicate(
    operation_ids: Optional[str],
    tags: Optional[str],
    url: Optional[str],
    source: Document,
    label: str = DEFAULT_TREE_LABEL
) -> OperationPredicate:
    """Create a predicate from exactly one of ``operation_ids``, ``tags`` or ``url``.

    Args:
        operation_ids: Comma separated operation ids, or ``*`` for all
        tags: A single tag regex, or comma separated exact tag names
        url: Relative url resolved through a url tree built from ``source``
        source: Source document
        label: Label ``source`` is attached under in the url tree

    Returns:
        Predicate over operations

    Raises:
        ConfigurationError: When zero or more than one filter is supplied
        NotFoundError: When ``url`` matches nothing
    """
    has_ids = _is_supplied(operation_ids)
    has_tags = _is_supplied(tags)
    has_url = _is_supplied(url)

    if has_url and (has_ids or has_tags):
        raise ConfigurationError(
            "Cannot filter by url and either operationIds and tags at the same time.",
            details={"url": url, "operation_ids": operation_ids, "tags": tags},
            error_code="CONFLICTING_FILTERS"
        )
    if has_ids and has_tags:
        raise ConfigurationError(
            "Cannot filter by operationIds and tags at the same time.",
            details={"operation_ids": operation_ids, "tags": tags},
            error_code="CONFLICTING_FILTERS"
        )
    if not (has_ids or has_tags or has_url):
        raise ConfigurationError(
            "Either operationIds, tags or url need to be specified.",
            suggestion="Pass one of operation ids, tags or url",
            error_code="MISSING_FILTER"
        )

    if has_ids:
        return _operation_id_predicate(operation_ids)
    if has_tags:
        return _tag_predicate(tags)
    return _url_predicate(url, source, label)


def _operation_id_predicate(operation_ids: str) -> OperationPredicate:
    if operation_ids.strip() == "*":
        logger.debug("Created accept-all predicate")
        return lambda operation: True

    wanted: Set[str] = set(_split_tokens(operation_ids))
    logger.debug("Created operation id predicate", operation_ids=sorted(wanted))
    return lambda operation: operation.operation_id in wanted


def _tag_predicate(tags: str) -> OperationPredicate:
    tokens = _split_tokens(tags)
    if len(tokens) > 1:
        wanted = set(tokens)
        logger.debug("Created tag membership predicate", tags=sorted(wanted))
        return lambda operation: any(tag in wanted for tag in operation.tags)

    try:
        pattern = re.compile(tokens[0] if tokens else tags)
    except re.error as e:
        raise ConfigurationError(
            f"Invalid tag expression: {tags}",
            details={"error": str(e)},
            suggestion="Escape regular expression characters or list exact tag names",
            error_code="INVALID_TAG_PATTERN"
        )
    logger.debug("Created tag pattern predicate", pattern=pattern.pattern)
    return lambda operation: any(pattern.search(tag) for tag in operation.tags)


def _url_predicate(url: str, source: Document, label: str) -> OperationPredicate:
    relative_url = normalize_url(url)
    root = create_url_tree({label: source})
    operations = get_operations(root, relative_url, label)

    if not operations:
        raise NotFoundError(
            "The url supplied could not be found.",
            details={"url": url, "normalized_url": relative_url, "label": label},
            error_code="URL_NOT_FOUND"
        )

    wanted = {operation.operation_id for operation in operations}
    logger.debug("Created url predicate", url=relative_url, operation_ids=sorted(filter(None, wanted)))
    return lambda operation: operation.operation_id in wanted
