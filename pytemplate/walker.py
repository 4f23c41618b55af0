# pytemplate/walker.py
"""
Generic substitution over the closed node model.

Provides:
- ``apply``     : replace every child of a node with ``visit(child)``
- ``rewrite``   : replace every Identifier with a given name
- ``substitute``: apply a whole name → replacement mapping in one pass
- ``subst``     : deep-copy a pattern, stamping it with a source position

References are never followed.  They encode derived relationships (the
enclosing scope of a declaration) that a rewrite invalidates, and they may
point back up the tree, so every reference passing through ``apply`` or
``subst`` comes out absent.
"""

from __future__ import annotations

import logging
import types
from typing import Callable, Mapping, Optional

from pytemplate.errors import InternalInvariantError, SourceSpan
from pytemplate.nodes import (
    Aggregate,
    Identifier,
    Literal,
    Node,
    Position,
    Reference,
    Sequence,
    Slot,
)

__all__ = [
    "apply",
    "rewrite",
    "substitute",
    "subst",
]

logger = logging.getLogger(__name__)

Visit = Callable[[Node], Optional[Node]]


def _describe(node: Node) -> str:
    if isinstance(node, Identifier):
        return f"Identifier '{node.name}'"
    if isinstance(node, Aggregate):
        return f"Aggregate '{node.kind}'"
    return type(node).__name__


def _span(*nodes: Node) -> SourceSpan:
    """Line and 1-based column of the first node that has a valid position.

    The file is left empty; callers that know it fill it in.
    """
    for node in nodes:
        pos = node.pos if isinstance(node, Identifier) else None
        if isinstance(node, Aggregate):
            lit = node.get("pos")
            if isinstance(lit, Literal) and lit.is_position:
                pos = lit.value
        if pos is not None and pos.is_valid():
            return SourceSpan(line=pos.line, column=pos.col + 1)
    return SourceSpan()


def _check_variant(where: str, current: Node, new: Node, span: SourceSpan) -> None:
    # a typed position only accepts its own variant; Slot values are untyped
    if type(current) is not type(new):
        raise InternalInvariantError(
            f"Failure while setting {where}: cannot replace "
            f"{_describe(current)} with {_describe(new)}",
            span=span,
        )


def _set_item(seq: Sequence, index: int, new: Optional[Node]) -> None:
    """Set ``seq.items[index]``; read-only sequences and absent values are skipped."""
    if new is None or not seq.writable:
        return
    current = seq.items[index]
    if new is current:
        return
    span = _span(current)
    _check_variant(f"element {index}", current, new, span)
    try:
        seq.items[index] = new
    except Exception as exc:
        raise InternalInvariantError(
            f"Failure while setting element {index} to {_describe(new)}: {exc}",
            span=span, cause=exc,
        ) from exc


def _set_field(agg: Aggregate, name: str, new: Optional[Node]) -> None:
    """Set ``agg.fields[name]``; read-only fields and absent values are skipped."""
    if new is None or not agg.writable(name):
        return
    current = agg.fields[name]
    if new is current:
        return
    span = _span(current, agg)
    _check_variant(f"{agg.kind}.{name}", current, new, span)
    try:
        agg.fields[name] = new
    except Exception as exc:
        raise InternalInvariantError(
            f"Failure while setting {agg.kind}.{name} to {_describe(new)}: {exc}",
            span=span, cause=exc,
        ) from exc


def _set_slot(slot: Slot, new: Optional[Node]) -> None:
    if new is None or new is slot.value:
        return
    slot.value = new


def apply(visit: Visit, node: Optional[Node]) -> Optional[Node]:
    """Replace each child ``c`` of ``node`` with ``visit(c)``, returning ``node``."""
    if node is None:
        return None

    # references introduce cycles and are likely incorrect after a
    # rewrite; don't follow them but replace them with an absent one
    if isinstance(node, Reference):
        return Reference()

    if isinstance(node, Sequence):
        for i in range(len(node.items)):
            _set_item(node, i, visit(node.items[i]))
    elif isinstance(node, Aggregate):
        for name in list(node.fields):
            _set_field(node, name, visit(node.fields[name]))
    elif isinstance(node, Slot):
        _set_slot(node, visit(node.value))
    elif not isinstance(node, (Identifier, Literal)):
        raise InternalInvariantError(f"Unknown node variant {type(node).__name__}")
    return node


def substitute(tree: Optional[Node], mapping: Mapping[str, Node]) -> Optional[Node]:
    """Replace every Identifier whose name is a key of ``mapping``.

    Each match is replaced by a copy of its mapped node stamped with the
    position of the identifier it replaces.  The walk is post-order and the
    inserted copies are not visited again, so the result does not depend on
    the order of the mapping.
    """
    if not mapping:
        return tree
    logger.debug("Substituting %s", ", ".join(sorted(mapping)))

    def rewrite_node(node: Node) -> Optional[Node]:
        node = apply(rewrite_node, node)
        if isinstance(node, Identifier) and node.name in mapping:
            return subst(mapping[node.name], node.pos)
        return node

    return rewrite_node(tree) if tree is not None else None


def rewrite(tree: Optional[Node], name: str, replacement: Node) -> Optional[Node]:
    """Replace every Identifier called ``name`` in ``tree`` with ``replacement``."""
    return substitute(tree, {name: replacement})


def _stamp(old: Position, pos: Optional[Position]) -> Position:
    # use the new position only if the old one was valid in the first place
    if pos is None or not old.is_valid():
        return old
    return pos


def subst(pattern: Optional[Node], pos: Optional[Position] = None) -> Optional[Node]:
    """Return a copy of ``pattern`` with ``pos`` used as the position of its leaves."""
    if pattern is None:
        return None

    if isinstance(pattern, Reference):
        return Reference()

    if isinstance(pattern, Identifier):
        return Identifier(pattern.name, _stamp(pattern.pos, pos))

    if isinstance(pattern, Literal):
        if pattern.is_position:
            return Literal(_stamp(pattern.value, pos))
        return Literal(pattern.value)

    if isinstance(pattern, Sequence):
        items = [subst(item, pos) for item in pattern.items]
        return Sequence(items if pattern.writable else tuple(items))

    if isinstance(pattern, Aggregate):
        fields = {name: subst(child, pos) for name, child in pattern.fields.items()}
        if isinstance(pattern.fields, types.MappingProxyType):
            return Aggregate(pattern.kind, types.MappingProxyType(fields), pattern.readonly)
        return Aggregate(pattern.kind, fields, pattern.readonly)

    if isinstance(pattern, Slot):
        return Slot(subst(pattern.value, pos))

    raise InternalInvariantError(f"Unknown node variant {type(pattern).__name__}")
