"""Composition flattening.

Some client generators cannot handle ``anyOf``/``oneOf``. Every composition
is collapsed onto its parent schema, keeping the one member that carries
the meaning; a "nullable wrapper" member turns into ``nullable: true``.
"""

from typing import Any, Dict, List, Optional

from apislice.core.walker import NodeKind, WalkContext, walk
from apislice.models.document import Document
from apislice.utils.logging import get_logger

logger = get_logger(__name__)

COMPOSITION_KEYS = ("anyOf", "oneOf")
_NESTED_COMPOSITION_KEYS = ("anyOf", "oneOf", "allOf")


def is_nullable_wrapper(member: Any) -> bool:
    """Whether ``member`` only says "this may be null".

    A wrapper is nullable, has no properties, is not a reference and is
    neither composed nor an array.
    """
    if not isinstance(member, dict) or "$ref" in member:
        return False
    if member.get("nullable") is not True:
        return False
    if member.get("properties") or "items" in member:
        return False
    if any(member.get(key) for key in _NESTED_COMPOSITION_KEYS):
        return False
    return member.get("type") in (None, "object")


def select_retained_member(members: List[Any]) -> Dict[str, Any]:
    """Pick the member whose shape is hoisted onto the parent.

    Returns:
        ``{"member": ..., "nullable": bool}`` where ``nullable`` tells whether a
        single nullable wrapper was dropped
    """
    wrappers = [member for member in members if is_nullable_wrapper(member)]
    if len(wrappers) == 1:
        others = [member for member in members if not is_nullable_wrapper(member)]
        return {"member": others[0] if others else None, "nullable": True}
    return {"member": members[0], "nullable": False}


def flatten_composition(schema: Dict[str, Any], key: str, context: Optional[WalkContext] = None) -> bool:
    """Collapse ``schema[key]`` onto ``schema``.

    Args:
        schema: Schema holding the composition; mutated in place
        key: ``anyOf`` or ``oneOf``
        context: Where the schema sits, for logging

    Returns:
        True when the schema was rewritten
    """
    members = schema.get(key)
    if not isinstance(members, list) or not members:
        return False

    if len(members) > 2:
        logger.warning(
            "policy gap: flattening composition with more than two members",
            composition=key,
            members=len(members),
            path=context.path if context else None,
            component=context.component[1] if context and context.component else None
        )

    selection = select_retained_member(members)
    retained = selection["member"]
    if selection["nullable"]:
        schema["nullable"] = True

    if isinstance(retained, dict):
        for field in ("type", "format"):
            if field in retained:
                schema[field] = retained[field]
        if retained.get("nullable") is True:
            schema["nullable"] = True
        if "$ref" in retained:
            schema["$ref"] = retained["$ref"]

    del schema[key]
    return True


class CompositionRemover:
    """Walker callback that flattens every composition it sees."""

    def __init__(self):
        self.flattened = 0

    def __call__(self, schema: Dict[str, Any], context: WalkContext) -> None:
        for key in COMPOSITION_KEYS:
            if flatten_composition(schema, key, context):
                self.flattened += 1


def remove_compositions(document: Document) -> int:
    """Flatten every ``anyOf``/``oneOf`` reachable from any schema site.

    Args:
        document: Document to rewrite in place

    Returns:
        Number of compositions flattened
    """
    remover = CompositionRemover()
    walk(document, {NodeKind.SCHEMA: remover})
    logger.debug("Flattened compositions", count=remover.flattened)
    return remover.flattened
