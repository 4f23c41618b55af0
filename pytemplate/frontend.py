# pytemplate/frontend.py
"""Python source ↔ node tree.

This is the parser/formatter collaborator of the substitution engine.  It
lowers a CPython :mod:`ast` tree into the closed node model of
:mod:`pytemplate.nodes` and raises it back again.

Lowering rules
--------------
* every ``ast.expr`` position becomes a :class:`Slot` (any variant may be
  substituted there); an ``ast.Name`` becomes a bare :class:`Identifier`
* name-valued string fields (``FunctionDef.name``, ``arg.arg``,
  ``Attribute.attr`` ...) become :class:`Identifier` nodes that are *not*
  wrapped in a Slot, so only another identifier may replace them
* other AST nodes become :class:`Aggregate` nodes of the same kind, plus a
  ``pos`` Literal holding their :class:`Position`
* ``def``, ``class`` and ``lambda`` carry a ``scope`` :class:`Reference`
  back to the enclosing declaration
* module-level comments are collected with :mod:`tokenize`.  A block that
  sits directly above a statement is attached to it (``comments`` field);
  a block followed by a blank line becomes a free-standing ``Comment``
  pseudo-statement.  Comments inside a statement are not kept.
* a string in an annotation (``-> "Set"``, ``Optional["Set"]``) that parses
  as an expression becomes a ``StringAnnotation`` aggregate around that
  expression, so the names inside it are renamed like any other; it is
  formatted back as a string.  Strings that do not parse stay literals.

Formatting uses :func:`ast.unparse` statement by statement and puts the
comments back in front of the statements they belong to.
"""

from __future__ import annotations

import ast
import io
import logging
import tokenize
from typing import Any, Dict, List, Optional, Tuple

from pytemplate.errors import (
    InternalInvariantError,
    ShapeError,
    SourceParseError,
    SourceSpan,
    TemplateErrorCodes,
)
from pytemplate.nodes import (
    Aggregate,
    Identifier,
    Literal,
    Node,
    Position,
    Reference,
    Sequence,
    Slot,
    unwrap,
)

__all__ = [
    "COMMENT_KIND",
    "STRING_ANNOTATION_KIND",
    "format_node",
    "format_tree",
    "normalize",
    "parse_expression",
    "parse_source",
]

logger = logging.getLogger(__name__)

COMMENT_KIND = "Comment"
STRING_ANNOTATION_KIND = "StringAnnotation"

# String fields holding a name that substitution may rename.
IDENTIFIER_FIELDS = frozenset({"name", "asname", "arg", "attr", "rest", "names"})
# ... except these, which hold dotted module paths.
RAW_TEXT_FIELDS = frozenset({("alias", "name")})

SCOPED_KINDS = frozenset({"FunctionDef", "AsyncFunctionDef", "ClassDef", "Lambda"})
DEFINITION_KINDS = frozenset({"FunctionDef", "AsyncFunctionDef", "ClassDef"})
IMPORT_KINDS = frozenset({"Import", "ImportFrom"})
ANNOTATION_FIELDS = frozenset({"annotation", "returns"})

Comments = Tuple[Tuple[int, str], ...]


# ---------------------------------------------------------------------------
# Lowering: ast → nodes
# ---------------------------------------------------------------------------

def _position(node: ast.AST) -> Position:
    line = getattr(node, "lineno", None)
    if line is None:
        return Position()
    return Position(line, getattr(node, "col_offset", 0) or 0)


def _parse_string_annotation(node: ast.Constant) -> Optional[ast.expr]:
    try:
        parsed = ast.parse(node.value.strip(), mode="eval").body
    except (SyntaxError, ValueError):
        return None
    # positions inside the string are relative to it; use the string's own
    for child in ast.walk(parsed):
        if "lineno" in child._attributes:
            ast.copy_location(child, node)
    return parsed


class _Lowering:
    """Converts one CPython AST into the node model."""

    in_annotation = False

    def expr(self, node: ast.expr, scope: Optional[Aggregate]) -> Node:
        if isinstance(node, ast.Name):
            return Identifier(node.id, _position(node))
        if (
            self.in_annotation
            and isinstance(node, ast.Constant)
            and isinstance(node.value, str)
        ):
            parsed = _parse_string_annotation(node)
            if parsed is not None:
                fields: Dict[str, Node] = {"value": Slot(self.expr(parsed, scope))}
                pos = _position(node)
                if pos.is_valid():
                    fields["pos"] = Literal(pos)
                return Aggregate(STRING_ANNOTATION_KIND, fields)
        return self.node(node, scope)

    def node(self, node: ast.AST, scope: Optional[Aggregate]) -> Node:
        kind = type(node).__name__
        fields: Dict[str, Node] = {}
        agg = Aggregate(kind, fields)
        inner_scope = agg if kind in SCOPED_KINDS else scope
        pos = _position(node)

        for name, value in ast.iter_fields(node):
            fields[name] = self.value(kind, name, value, pos, inner_scope)
        if pos.is_valid():
            fields["pos"] = Literal(pos)
        if kind in SCOPED_KINDS:
            fields["scope"] = Reference.to(scope)
        return agg

    def value(
        self,
        kind: str,
        name: str,
        value: Any,
        pos: Position,
        scope: Optional[Aggregate],
    ) -> Node:
        if isinstance(value, ast.expr):
            if name not in ANNOTATION_FIELDS or self.in_annotation:
                return Slot(self.expr(value, scope))
            self.in_annotation = True
            try:
                return Slot(self.expr(value, scope))
            finally:
                self.in_annotation = False
        if isinstance(value, ast.AST):
            return self.node(value, scope)
        if isinstance(value, list):
            return Sequence([self.value(kind, name, item, pos, scope) for item in value])
        if (
            isinstance(value, str)
            and name in IDENTIFIER_FIELDS
            and (kind, name) not in RAW_TEXT_FIELDS
        ):
            return Identifier(value, pos)
        return Literal(value)


def _statement_start(stmt: ast.stmt) -> int:
    lines = [stmt.lineno]
    for decorator in getattr(stmt, "decorator_list", ()):
        lines.append(decorator.lineno)
    return min(lines)


def _scan_comments(text: str, filename: str) -> List[Tuple[int, str]]:
    """Return ``(line, text)`` for every full-line comment in ``text``."""
    comments = []
    try:
        for tok in tokenize.generate_tokens(io.StringIO(text).readline):
            if tok.type != tokenize.COMMENT:
                continue
            if tok.line[: tok.start[1]].strip():
                continue  # trailing comment after code
            comments.append((tok.start[0], tok.string.rstrip()))
    except (tokenize.TokenError, SyntaxError) as exc:
        raise SourceParseError(
            f"Failed to tokenize {filename or '<source>'}: {exc}",
            span=SourceSpan(filename),
            cause=exc,
        ) from exc
    return comments


def _comment_blocks(comments: List[Tuple[int, str]]) -> List[List[Tuple[int, str]]]:
    blocks: List[List[Tuple[int, str]]] = []
    for line, text in comments:
        if blocks and blocks[-1][-1][0] == line - 1:
            blocks[-1].append((line, text))
        else:
            blocks.append([(line, text)])
    return blocks


def _comment_node(block: List[Tuple[int, str]]) -> Aggregate:
    return Aggregate(
        COMMENT_KIND,
        {
            "comments": Literal(tuple(block)),
            "pos": Literal(Position(block[0][0], 0)),
        },
    )


def parse_source(text: str, filename: str = "") -> Aggregate:
    """Parse Python source into a Module aggregate.

    Raises :class:`SourceParseError` when the text is not valid Python.
    """
    try:
        tree = ast.parse(text, filename=filename or "<unknown>")
    except SyntaxError as exc:
        raise SourceParseError(
            f"Failed to parse file: {exc.msg}",
            span=SourceSpan(filename, exc.lineno or 0, exc.offset or 0),
            cause=exc,
        ) from exc

    lowering = _Lowering()
    module = Aggregate("Module", {})
    body: List[Node] = []

    blocks = _comment_blocks(_scan_comments(text, filename))
    dropped = 0
    for stmt in tree.body:
        start = _statement_start(stmt)
        attached: List[Tuple[int, str]] = []
        while blocks and blocks[0][-1][0] < start:
            block = blocks.pop(0)
            if block[-1][0] == start - 1:
                attached = block
            else:
                body.append(_comment_node(block))
        lowered = lowering.node(stmt, module)
        lowered.fields["comments"] = Literal(tuple(attached))
        body.append(lowered)
        end = getattr(stmt, "end_lineno", None) or start
        while blocks and blocks[0][0][0] <= end:
            dropped += len(blocks.pop(0))
    for block in blocks:
        body.append(_comment_node(block))
    if dropped:
        logger.debug("Dropped %d comment line(s) inside statements of %s", dropped, filename)

    module.fields["body"] = Sequence(body)
    module.fields["type_ignores"] = lowering.value(
        "Module", "type_ignores", tree.type_ignores, Position(), module
    )
    module.fields["identity"] = Literal(None)
    module.fields["origin"] = Literal(None)
    return module


def parse_expression(text: str) -> Node:
    """Parse a single Python expression, e.g. ``int`` or ``lambda a, b: a < b``."""
    try:
        tree = ast.parse(text.strip(), mode="eval")
    except SyntaxError as exc:
        raise ShapeError(
            f"Failed to parse {text!r}: {exc.msg}",
            text=text,
            code=TemplateErrorCodes.INVALID_REQUEST,
            cause=exc,
        ) from exc
    return _Lowering().expr(tree.body, None)


# ---------------------------------------------------------------------------
# Raising: nodes → ast
# ---------------------------------------------------------------------------

def _raise_expr(node: Node) -> Any:
    if isinstance(node, Identifier):
        name = ast.Name(id=node.name, ctx=ast.Load())
        if node.pos.is_valid():
            name.lineno, name.col_offset = node.pos.line, node.pos.col
        return name
    return _raise(node)


def _raise(node: Optional[Node]) -> Any:
    if node is None or isinstance(node, Reference):
        return None
    if isinstance(node, Slot):
        return _raise_expr(node.value)
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Sequence):
        return [_raise(item) for item in node.items]
    if isinstance(node, Aggregate):
        if node.kind == STRING_ANNOTATION_KIND:
            result = ast.Constant(value=format_node(node.fields["value"]), kind=None)
        else:
            cls = getattr(ast, node.kind, None)
            if not (isinstance(cls, type) and issubclass(cls, ast.AST)):
                raise InternalInvariantError(f"Cannot format node of kind '{node.kind}'")
            kwargs = {
                name: _raise(node.fields[name])
                for name in cls._fields
                if name in node.fields
            }
            result = cls(**kwargs)
        pos = node.get("pos")
        if isinstance(pos, Literal) and pos.is_position and pos.value.is_valid():
            result.lineno, result.col_offset = pos.value.line, pos.value.col
        return result
    raise InternalInvariantError(f"Unknown node variant {type(node).__name__}")


def format_node(node: Node) -> str:
    """Render one expression node as source text."""
    return ast.unparse(ast.fix_missing_locations(_raise_expr(unwrap(node))))


def _unparse_statement(stmt: Aggregate) -> str:
    module = ast.Module(body=[_raise(stmt)], type_ignores=[])
    return ast.unparse(ast.fix_missing_locations(module)).strip("\n")


def _blank_lines(prev: Optional[Aggregate], stmt: Aggregate) -> int:
    if prev is None:
        return 0
    if prev.kind in DEFINITION_KINDS or stmt.kind in DEFINITION_KINDS:
        return 2
    if prev.kind == COMMENT_KIND or stmt.kind == COMMENT_KIND:
        return 1
    if _attached(stmt):
        return 1
    if (prev.kind in IMPORT_KINDS) != (stmt.kind in IMPORT_KINDS):
        return 1
    return 0


def _attached(stmt: Aggregate) -> Comments:
    comments = stmt.get("comments")
    if isinstance(comments, Literal) and isinstance(comments.value, tuple):
        return comments.value
    return ()


def _header(module: Aggregate) -> Optional[str]:
    identity = module.get("identity")
    if not isinstance(identity, Literal) or not identity.value:
        return None
    origin = module.get("origin")
    source = origin.value if isinstance(origin, Literal) and origin.value else "a template"
    return f"# Code generated by pytemplate from {source} for {identity.value}; DO NOT EDIT."


def format_tree(module: Aggregate, header: bool = True) -> str:
    """Serialise a Module aggregate back to Python source text."""
    body = module.get("body")
    if not isinstance(body, Sequence):
        raise InternalInvariantError("Module has no statement sequence")

    chunks: List[str] = []
    head = _header(module) if header else None
    if head:
        chunks.append(head + "\n\n")

    prev: Optional[Aggregate] = None
    for item in body.items:
        stmt = unwrap(item)
        if not isinstance(stmt, Aggregate):
            raise InternalInvariantError(f"Unexpected top-level node {type(stmt).__name__}")
        lines = [text for _, text in _attached(stmt)]
        if stmt.kind != COMMENT_KIND:
            lines.append(_unparse_statement(stmt))
        if prev is not None:
            chunks.append("\n" * _blank_lines(prev, stmt))
        chunks.append("\n".join(lines) + "\n")
        prev = stmt
    return "".join(chunks)


def normalize(text: str, filename: str = "") -> str:
    """Pass text through the parser and formatter once more."""
    return format_tree(parse_source(text, filename))
