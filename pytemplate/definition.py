# pytemplate/definition.py
"""
Template definition lookup.

A template module declares itself with exactly one comment of the form::

    # template type Set(A)
    # template type Sort(A, Less)

The directive is matched with a small Parsimonious PEG grammar.  Parameters
are split on top-level commas (bracketed text is kept together) so that a
parameter that is not a bare name can be reported as such instead of as a
parse failure.
"""

from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from pytemplate.errors import (
    ArityError,
    DefinitionError,
    ShapeError,
    SourceSpan,
    TemplateErrorCodes,
)
from pytemplate.nodes import Aggregate, Literal, Sequence, unwrap

__all__ = [
    "DIRECTIVE_GRAMMAR",
    "TemplateDefinition",
    "find_template_definition",
    "iter_comments",
    "parse_directive",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  DIRECTIVE GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

DIRECTIVE_GRAMMAR = Grammar(r'''
    directive   = "#" _ "template" __ "type" __ signature _
    signature   = name _ "(" _ params? _ ")"
    params      = param (comma param)* comma?
    comma       = _ "," _
    param       = chunk+
    chunk       = group / ~r"[^,()\[\]{}]+"
    group       = ("(" inner* ")") / ("[" inner* "]") / ("{" inner* "}")
    inner       = group / ~r"[^()\[\]{}]+"
    name        = ~r"[^\W\d]\w*"
    _           = ~r"[ \t]*"
    __          = ~r"[ \t]+"
''')

# Anything that starts like a directive must parse as one.
_LOOKS_LIKE_DIRECTIVE = re.compile(r"^#\s*template\s+type\b")


@dataclass(frozen=True)
class TemplateDefinition:
    """The template's name and its ordered formal parameters."""
    name: str
    params: Tuple[str, ...]
    span: SourceSpan = SourceSpan()

    def __str__(self):
        return f"{self.name}({', '.join(self.params)})"


class _DirectiveVisitor(NodeVisitor):
    """Turns a directive parse tree into ``(name, [raw parameter text])``."""

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def visit_directive(self, node, visited_children):
        _, _, _, _, _, _, signature, _ = visited_children
        return signature

    def visit_signature(self, node, visited_children):
        name, _, _, _, params, _, _ = visited_children
        if isinstance(params, list):
            params = params[0]
        else:
            params = []
        return name, params

    def visit_params(self, node, visited_children):
        first, rest, _ = visited_children
        params = [first]
        if isinstance(rest, list):
            params.extend(param for _, param in rest)
        return params

    def visit_param(self, node, visited_children):
        return node.text.strip()

    def visit_name(self, node, visited_children):
        return node.text


def parse_directive(text: str, span: SourceSpan = SourceSpan()) -> Optional[TemplateDefinition]:
    """Parse one comment line.

    Returns ``None`` for comments that are not directives at all.
    """
    text = text.strip()
    if not _LOOKS_LIKE_DIRECTIVE.match(text):
        return None
    try:
        tree = DIRECTIVE_GRAMMAR.parse(text)
    except ParseError as exc:
        raise DefinitionError(
            f"Failed to parse template directive {text!r}: expecting "
            "'template type Name(Param, ...)'",
            code=TemplateErrorCodes.MALFORMED_DIRECTIVE,
            span=span,
            cause=exc,
        ) from exc
    try:
        name, raw_params = _DirectiveVisitor().visit(tree)
    except VisitationError as exc:
        raise DefinitionError(
            f"Failed to read template directive {text!r}: {exc}",
            code=TemplateErrorCodes.MALFORMED_DIRECTIVE,
            span=span,
            cause=exc,
        ) from exc

    params = _ensure_identifiers(raw_params, span)
    seen = set()
    for param in params:
        if param in seen:
            raise DefinitionError(
                f"Parameter '{param}' appears twice in template '{name}'",
                name=param,
                code=TemplateErrorCodes.DUPLICATE_PARAMETER,
                span=span,
            )
        if param == name:
            raise DefinitionError(
                f"Parameter '{param}' has the same name as its template",
                name=param,
                code=TemplateErrorCodes.DUPLICATE_PARAMETER,
                span=span,
            )
        seen.add(param)
    return TemplateDefinition(name=name, params=tuple(params), span=span)


def _ensure_identifiers(params: List[str], span: SourceSpan) -> List[str]:
    """Exits with a ShapeError if a parameter is not a bare name."""
    for param in params:
        if not param.isidentifier() or keyword.iskeyword(param):
            raise ShapeError(
                f"Expected identifier instead of {param!r}",
                text=param,
                span=span,
            )
    return params


# ═══════════════════════════════════════════════════════════════════
#  LOOKUP IN A TREE
# ═══════════════════════════════════════════════════════════════════

def _comment_lines(literal) -> Iterator[Tuple[int, str]]:
    if isinstance(literal, Literal) and isinstance(literal.value, tuple):
        for line, text in literal.value:
            yield line, text


def iter_comments(module: Aggregate) -> Iterator[Tuple[int, str]]:
    """Yield ``(line, text)`` for every comment carried by the module tree."""
    body = module.get("body")
    if not isinstance(body, Sequence):
        return
    for item in body.items:
        stmt = unwrap(item)
        if isinstance(stmt, Aggregate):
            yield from _comment_lines(stmt.get("comments"))


def find_template_definition(
    module: Aggregate,
    nargs: int,
    filename: str = "",
) -> TemplateDefinition:
    """Find the single template directive and check it against ``nargs``."""
    found: Optional[TemplateDefinition] = None
    for line, text in iter_comments(module):
        span = SourceSpan(filename, line)
        definition = parse_directive(text, span)
        if definition is None:
            continue
        if found is not None:
            raise DefinitionError(
                f"Found multiple template definitions in {filename or '<source>'}",
                name=definition.name,
                code=TemplateErrorCodes.DUPLICATE_DIRECTIVE,
                span=span,
            ).add_note(f"first definition '{found}'", found.span)
        found = definition

    if found is None:
        raise DefinitionError(
            f"Didn't find template definition in {filename or '<source>'}",
            code=TemplateErrorCodes.MISSING_DIRECTIVE,
            span=SourceSpan(filename),
        ).with_hint("add a comment such as '# template type Set(A)'")

    if len(found.params) != nargs:
        raise ArityError(found.name, expected=len(found.params), actual=nargs, span=found.span)

    logger.debug("templateName = %s, templateArgs = %s", found.name, list(found.params))
    return found
