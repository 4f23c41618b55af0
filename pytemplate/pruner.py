# pytemplate/pruner.py
"""
Declaration pruning.

A template module declares a stub for each formal parameter so that it is
importable and checkable on its own::

    A = int

    def Less(a, b):
        return a < b

Before substitution those stubs are removed and every other top-level name
is recorded so the mapper can give it a per-instantiation name.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from pytemplate.errors import ShapeError, SourceSpan, TemplateErrorCodes
from pytemplate.frontend import COMMENT_KIND
from pytemplate.nodes import Aggregate, Identifier, Literal, Node, Sequence, unwrap

__all__ = [
    "DeclarationPruner",
    "DeclaredNameRegistry",
    "is_receiver_function",
]

logger = logging.getLogger(__name__)

FUNCTION_KINDS = frozenset({"FunctionDef", "AsyncFunctionDef"})
TYPE_KINDS = frozenset({"ClassDef", "TypeAlias"})
UNPACK_KINDS = frozenset({"Tuple", "List"})
RECEIVER_NAMES = frozenset({"self", "cls"})


class DeclaredNameRegistry:
    """Insertion-ordered set of the top-level names seen while pruning."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: dict = {}
        for name in names:
            self.add(name)

    def add(self, name: str) -> bool:
        """Record ``name``; returns False if it was already known."""
        if name in self._names:
            return False
        self._names[name] = None
        return True

    def names(self) -> List[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"DeclaredNameRegistry({self.names()!r})"


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _name_of(node: Optional[Node]) -> Optional[str]:
    node = unwrap(node)
    return node.name if isinstance(node, Identifier) else None


def _line_of(stmt: Aggregate) -> int:
    pos = stmt.get("pos")
    if isinstance(pos, Literal) and pos.is_position:
        return pos.value.line
    return 0


def is_receiver_function(stmt: Aggregate) -> bool:
    """True for a module-level def whose first parameter is ``self`` or ``cls``."""
    arguments = stmt.get("args")
    if not isinstance(arguments, Aggregate):
        return False
    for field_name in ("posonlyargs", "args"):
        params = arguments.get(field_name)
        if isinstance(params, Sequence) and params.items:
            first = params.items[0]
            return isinstance(first, Aggregate) and _name_of(first.get("arg")) in RECEIVER_NAMES
    return False


class DeclarationPruner:
    """Removes the formal-parameter stubs from a module, in one pass."""

    def __init__(self, params: Iterable[str], filename: str = "") -> None:
        self.params = frozenset(params)
        self.filename = filename
        self.registry = DeclaredNameRegistry()

    def prune(self, module: Aggregate) -> DeclaredNameRegistry:
        body = module.get("body")
        if not isinstance(body, Sequence) or not body.writable:
            return self.registry

        kept: List[Node] = []
        for item in body.items:
            stmt = unwrap(item)
            if not isinstance(stmt, Aggregate) or stmt.kind == COMMENT_KIND:
                kept.append(item)
            elif stmt.kind in FUNCTION_KINDS:
                if self._declaration(stmt, _name_of(stmt.get("name")), receiver=is_receiver_function(stmt)):
                    kept.append(item)
            elif stmt.kind in TYPE_KINDS:
                if self._declaration(stmt, _name_of(stmt.get("name"))):
                    kept.append(item)
            elif stmt.kind == "Assign":
                if self._assign(stmt):
                    kept.append(item)
            elif stmt.kind == "AnnAssign":
                if self._declaration(stmt, _name_of(stmt.get("target"))):
                    kept.append(item)
            else:
                kept.append(item)

        body.items[:] = kept
        logger.debug("Declared names: %s", ", ".join(self.registry) or "<none>")
        return self.registry

    # ── single declarations ─────────────────────────────────────────

    def _record(self, name: str) -> None:
        if not _is_dunder(name):
            self.registry.add(name)

    def _declaration(self, stmt: Aggregate, name: Optional[str], receiver: bool = False) -> bool:
        """Record one declaration; returns False if it must be removed."""
        if name is None or receiver:
            return True
        self._record(name)
        if name in self.params:
            logger.debug("Removing %s '%s'", stmt.kind, name)
            return False
        return True

    # ── assignments ─────────────────────────────────────────────────

    def _assign(self, stmt: Aggregate) -> bool:
        targets = stmt.get("targets")
        if not isinstance(targets, Sequence):
            return True

        remaining: List[Node] = []
        for target in targets.items:
            node = unwrap(target)
            if isinstance(node, Identifier):
                self._record(node.name)
                if node.name in self.params:
                    logger.debug("Removing value '%s'", node.name)
                    continue
            elif isinstance(node, Aggregate) and node.kind in UNPACK_KINDS:
                target = self._unpack(stmt, target, node, len(targets.items))
                if target is None:
                    continue
            remaining.append(target)

        if not remaining:
            return False
        targets.items[:] = remaining
        return True

    def _unpack(
        self, stmt: Aggregate, slot: Node, target: Aggregate, ntargets: int
    ) -> Optional[Node]:
        """Prune a tuple/list target.

        Returns the target to keep, or None if nothing is left of it.  A
        single survivor replaces the unpacking: ``A, x = int, 1`` becomes
        ``x = 1``.
        """
        elts = target.get("elts")
        if not isinstance(elts, Sequence):
            return slot

        drop: List[int] = []
        for index, elt in enumerate(elts.items):
            name = _name_of(elt)
            if name is None:
                continue
            self._record(name)
            if name in self.params:
                drop.append(index)
        if not drop:
            return slot

        value_elts = self._splittable_value(stmt, elts, ntargets)
        if value_elts is None:
            names = ", ".join(_name_of(elts.items[i]) for i in drop)
            raise ShapeError(
                f"Cannot remove {names} from an unpacking whose value cannot be split",
                text=names,
                code=TemplateErrorCodes.UNSPLITTABLE_BINDING,
                span=SourceSpan(self.filename, _line_of(stmt)),
            ).with_hint("declare template parameters on their own line")

        for index in reversed(drop):
            logger.debug("Removing value '%s'", _name_of(elts.items[index]))
            del elts.items[index]
            del value_elts.items[index]
        if not elts.items:
            return None
        if len(elts.items) == 1:
            stmt.fields["value"] = value_elts.items[0]
            return elts.items[0]
        return slot

    @staticmethod
    def _splittable_value(
        stmt: Aggregate, elts: Sequence, ntargets: int
    ) -> Optional[Sequence]:
        if ntargets != 1 or not elts.writable:
            return None
        if any(isinstance(unwrap(e), Aggregate) and unwrap(e).kind == "Starred" for e in elts.items):
            return None
        value = unwrap(stmt.get("value"))
        if not (isinstance(value, Aggregate) and value.kind in UNPACK_KINDS):
            return None
        value_elts = value.get("elts")
        if not isinstance(value_elts, Sequence) or not value_elts.writable:
            return None
        if len(value_elts.items) != len(elts.items):
            return None
        if any(isinstance(unwrap(e), Aggregate) and unwrap(e).kind == "Starred" for e in value_elts.items):
            return None
        return value_elts

