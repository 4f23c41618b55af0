# pytemplate/nodes.py
"""
Syntax tree node model used by the substitution engine.

The model is closed: every tree the walker sees is built from exactly six
variants.  Language frontends lower their own trees into these variants and
raise them back again, so the walker never needs to discover shapes at
runtime.

    Identifier   a name occurrence, with its source position
    Sequence     ordered children (list = writable, tuple = embedded by copy)
    Aggregate    named fields, tagged with the frontend's node kind
    Slot         holds one concrete node whose variant varies
    Reference    non-owning back-link; may form a cycle, never traversed
    Literal      opaque payload (position, raw text, constant, comments)
"""

from __future__ import annotations

import weakref
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterator, Mapping, Optional, Union


# ── Source Position ─────────────────────────────────────────────

@dataclass(frozen=True)
class Position:
    """Source position; line 0 means "never assigned"."""
    line: int = 0
    col: int = 0

    def is_valid(self) -> bool:
        return self.line > 0

    def __str__(self):
        return f"{self.line}:{self.col}"


NO_POSITION = Position()


# ── Node Variants ───────────────────────────────────────────────

class Node:
    """Base class of the six node variants."""

    __slots__ = ("__weakref__",)


@dataclass
class Identifier(Node):
    name: str
    pos: Position = NO_POSITION


@dataclass
class Sequence(Node):
    items: Union[list, tuple] = field(default_factory=list)

    @property
    def writable(self) -> bool:
        return isinstance(self.items, list)


@dataclass
class Aggregate(Node):
    kind: str
    fields: Mapping[str, Node] = field(default_factory=dict)
    readonly: FrozenSet[str] = frozenset()

    def get(self, name: str) -> Optional[Node]:
        return self.fields.get(name)

    def writable(self, name: str) -> bool:
        return isinstance(self.fields, MutableMapping) and name not in self.readonly


@dataclass
class Slot(Node):
    value: Node


@dataclass
class Reference(Node):
    """Weak back-link.  Two references always compare equal."""
    target: Optional[weakref.ref] = field(default=None, compare=False, repr=False)

    @classmethod
    def to(cls, node: Optional[Node]) -> "Reference":
        return cls(weakref.ref(node) if node is not None else None)

    def resolve(self) -> Optional[Node]:
        return self.target() if self.target is not None else None

    @property
    def absent(self) -> bool:
        return self.resolve() is None


@dataclass
class Literal(Node):
    value: Any = None

    @property
    def is_position(self) -> bool:
        return isinstance(self.value, Position)


# ── Helpers ─────────────────────────────────────────────────────

def unwrap(node: Optional[Node]) -> Optional[Node]:
    """Strip any number of Slot wrappers."""
    while isinstance(node, Slot):
        node = node.value
    return node


def iter_nodes(node: Optional[Node]) -> Iterator[Node]:
    """Pre-order iteration that never follows a Reference."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current is None:
            continue
        yield current
        if isinstance(current, Sequence):
            stack.extend(reversed(list(current.items)))
        elif isinstance(current, Aggregate):
            stack.extend(reversed(list(current.fields.values())))
        elif isinstance(current, Slot):
            stack.append(current.value)


def identifier_names(node: Optional[Node]) -> list:
    """Names of every Identifier below ``node``, in source order."""
    return [n.name for n in iter_nodes(node) if isinstance(n, Identifier)]
