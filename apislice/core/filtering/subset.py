"""Subset builder and reference closure.

Builds a new document holding the operations a predicate selects, then
copies every component those operations reach, directly or transitively,
so that no reference in the result dangles.
"""

import copy
import re
from typing import Any, Dict, Iterable, List, Optional, Set

from apislice.core.filtering.predicate import OperationPredicate
from apislice.core.filtering.search import find_operations
from apislice.core.walker import collect_component_references, collect_references
from apislice.models.config import SubsetConfig
from apislice.models.document import Components, Document, Info, PathItem, Reference, ReferenceKind, Server
from apislice.utils.constants import DEFAULT_SERVER_DESCRIPTION
from apislice.utils.exceptions import NotFoundError, ReferenceResolutionError
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

_FUNCTION_PARAMETER_PATTERN = re.compile(r"(=\{.*?\})")

NO_PATHS_MESSAGE = "No paths found for the supplied parameters."


def format_path_functions(path: str, parameters: Iterable[Dict[str, Any]]) -> str:
    """Quote string-typed function parameters in a path key.

    ``getTeamsUserActivityCounts(period={period})`` becomes
    ``getTeamsUserActivityCounts(period='{period}')`` when ``period`` is a
    string parameter without a format.

    Args:
        path: Path template
        parameters: Resolved operation parameters

    Returns:
        Rewritten path template
    """
    parameter_types: Dict[str, str] = {}
    for parameter in parameters:
        schema = parameter.get("schema") or {}
        schema_type = schema.get("type")
        if schema_type and not schema.get("format") and parameter.get("name"):
            parameter_types[parameter["name"]] = str(schema_type)

    def quote(match: "re.Match") -> str:
        placeholder = match.group(1)
        name = placeholder[2:-1]
        if parameter_types.get(name, "").lower() == "string":
            return "='{" + name + "}'"
        return placeholder

    return _FUNCTION_PARAMETER_PATTERN.sub(quote, path)


def _resolve_parameters(parameters: List[Dict[str, Any]], components: Components) -> List[Dict[str, Any]]:
    resolved = []
    for parameter in parameters:
        reference = Reference.from_node(parameter)
        if reference is not None:
            parameter = components.resolve(reference) or {}
        resolved.append(parameter)
    return resolved


def create_subset_skeleton(title: str, version: str, config: Optional[SubsetConfig] = None) -> Document:
    """Create the empty target document every subset starts from."""
    config = config or SubsetConfig()
    scheme_name = config.security_scheme_name
    components = Components()
    components.security_schemes[scheme_name] = {
        "type": "oauth2",
        "flows": {
            "authorizationCode": {
                "authorizationUrl": config.authorization_url,
                "tokenUrl": config.token_url,
                "scopes": {},
            }
        },
    }
    return Document(
        info=Info(title=title, version=version),
        servers=[Server(url=config.graph_url_template.format(version), description=DEFAULT_SERVER_DESCRIPTION)],
        components=components,
        security=[{scheme_name: []}],
    )


def create_filtered_document(
    source: Document,
    title: str,
    version: str,
    predicate: OperationPredicate,
    config: Optional[SubsetConfig] = None
) -> Document:
    """Build a subset document of the operations ``predicate`` selects.

    Args:
        source: Source document; never mutated
        title: Title of the new document
        version: Graph version written to info and the server url
        predicate: Operation filter
        config: Subset settings

    Returns:
        New document with the reference closure applied

    Raises:
        NotFoundError: When no operation matches
        ReferenceResolutionError: When a reference cannot be resolved
    """
    logger.info("Creating subset document", title=title, version=version)
    subset = create_subset_skeleton(title, version, config)

    for result in find_operations(source, predicate):
        path_key = result.path
        operation = result.operation
        if operation.is_function:
            parameters = list(source.paths[result.path].parameters) + operation.parameters
            path_key = format_path_functions(
                path_key, _resolve_parameters(parameters, source.components)
            )

        path_item = subset.paths.setdefault(path_key, PathItem())
        path_item.operations[result.method] = operation.model_copy(deep=True)

    if not subset.paths:
        raise NotFoundError(NO_PATHS_MESSAGE, error_code="NO_PATHS")

    passes = copy_references(subset, source)
    logger.info(
        "Created subset document",
        paths=len(subset.paths),
        operations=subset.operation_count(),
        components=subset.components.count(),
        closure_passes=passes
    )
    return subset


def copy_references(target: Document, source: Document) -> int:
    """Copy into ``target`` every component it reaches, until a fixed point.

    Each pass walks the whole target; a newly copied schema can reach
    further schemas, so passes repeat until one adds nothing.

    Args:
        target: Document to complete; mutated in place
        source: Document components are copied from

    Returns:
        Number of passes run

    Raises:
        ReferenceResolutionError: When a reference resolves nowhere, or the
            fixed point is not reached within the pass bound
    """
    max_passes = source.components.count() + 1
    for pass_number in range(1, max_passes + 1):
        added = 0
        for reference in collect_references(target):
            bucket = target.components.bucket(reference.kind)
            if reference.id in bucket:
                continue
            component = source.components.resolve(reference)
            if component is None:
                raise ReferenceResolutionError(
                    f"Reference {reference.pointer} could not be resolved",
                    details={"reference": reference.pointer},
                    error_code="UNRESOLVED_REFERENCE"
                )
            bucket[reference.id] = copy.deepcopy(component)
            added += 1
        logger.debug("Reference closure pass", pass_number=pass_number, added=added)
        if added == 0:
            return pass_number

    raise ReferenceResolutionError(
        "Reference closure did not reach a fixed point",
        details={"max_passes": max_passes},
        error_code="CLOSURE_NOT_CONVERGED"
    )


def find_reachable_references(document: Document) -> Set[Reference]:
    """References reachable from paths and security requirements."""
    pending = collect_references(document, include_components=False)
    reachable: Set[Reference] = set()
    while pending:
        reference = pending.pop()
        if reference in reachable:
            continue
        reachable.add(reference)
        component = document.components.resolve(reference)
        if component is not None:
            pending.extend(collect_component_references(reference.kind, component))
    return reachable


def prune_unreferenced_components(document: Document) -> int:
    """Remove components nothing in paths or security requirements reaches.

    Args:
        document: Document to prune in place

    Returns:
        Number of components removed
    """
    reachable = find_reachable_references(document)
    removed = 0
    for reference_kind in ReferenceKind:
        bucket = document.components.bucket(reference_kind)
        for name in list(bucket):
            if Reference(id=name, kind=reference_kind) not in reachable:
                del bucket[name]
                removed += 1
    if removed:
        logger.debug("Pruned unreferenced components", removed=removed)
    return removed
