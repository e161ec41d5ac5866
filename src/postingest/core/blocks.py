"""Rich-text body repair: guarantee every block and span carries a unique key"""

import logging
from typing import Any

from postingest.core.models import RichBlock, RichChild
from postingest.core.utils.keys import KeyRegistry


logger = logging.getLogger(__name__)

LENIENT = "lenient"
STRICT = "strict"


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _input_keys(blocks: list) -> list:
    """All block and span keys present in the raw body, in document order."""
    keys = []
    for block in blocks:
        if not isinstance(block, dict):
            continue
        keys.append(block.get("_key"))
        keys.extend(c.get("_key") for c in _as_list(block.get("children")) if isinstance(c, dict))
    return keys


def _type_or(node: dict, default: str) -> str:
    value = node.get("_type")
    return value if isinstance(value, str) and value.strip() else default


def _span(text: str, registry: KeyRegistry) -> RichChild:
    return RichChild(_type="span", _key=registry.fresh(), text=text, marks=[])


def _paragraph(text: str, registry: KeyRegistry) -> RichBlock:
    return RichBlock(
        _type="block", _key=registry.fresh(), style="normal",
        markDefs=[], children=[_span(text, registry)],
    )


def default_block(registry: KeyRegistry | None = None) -> dict:
    """A normal paragraph with one empty span; the body of an empty article."""
    return _paragraph("", registry or KeyRegistry()).model_dump(by_alias=True)


def _repair_child(node: Any, registry: KeyRegistry, mode: str) -> RichChild | None:
    if not isinstance(node, dict):
        if mode == STRICT:
            logger.warning("Dropping unrecognized span of type %s", type(node).__name__)
            return None
        return _span(node if isinstance(node, str) else "", registry)

    fields = {k: v for k, v in node.items() if k not in ("_type", "_key", "marks")}
    return RichChild(
        _type=_type_or(node, "span"),
        _key=registry.claim(node.get("_key")),
        marks=_as_list(node.get("marks")),
        **fields,
    )


def _repair_block(node: Any, registry: KeyRegistry, mode: str) -> RichBlock | None:
    if not isinstance(node, dict):
        if mode == STRICT:
            logger.warning("Dropping unrecognized block of type %s", type(node).__name__)
            return None
        return _paragraph(node if isinstance(node, str) else "", registry)

    key = registry.claim(node.get("_key"))
    children = [
        child for child in (_repair_child(c, registry, mode) for c in _as_list(node.get("children")))
        if child is not None
    ]
    fields = {k: v for k, v in node.items() if k not in ("_type", "_key", "markDefs", "children")}
    return RichBlock(
        _type=_type_or(node, "block"),
        _key=key,
        markDefs=_as_list(node.get("markDefs")),
        children=children,
        **fields,
    )


def repair_body(raw_body: Any, mode: str = LENIENT) -> list[dict]:
    """Return a storable copy of raw_body where every node has a unique, non-blank _key.

    Never raises. Non-list input counts as empty, and an empty result is
    replaced by a single empty paragraph. Existing keys are kept unless blank
    or already used earlier in the body. In lenient mode non-mapping nodes
    are wrapped into paragraphs/spans; in strict mode they are dropped.
    The input is not mutated.
    """
    blocks = _as_list(raw_body)
    registry = KeyRegistry(reserved=_input_keys(blocks))

    repaired = []
    for node in blocks:
        block = _repair_block(node, registry, mode)
        if block is not None:
            repaired.append(block.model_dump(by_alias=True))

    if not repaired:
        return [default_block(registry)]
    return repaired
