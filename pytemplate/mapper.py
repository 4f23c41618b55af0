# pytemplate/mapper.py
"""
Identifier mapping: decides what every declared name becomes.

Formal parameters map straight to the caller's argument trees.  Every other
declared name is mangled so that it is unique to one instantiation:

    Set           + MySet  ->  MySet            (the template name itself)
    NewSet        + MySet  ->  NewMySet         (contains the template name)
    SetNothing    + MySet  ->  MySetNothing
    UtilityFunc1  + MySet  ->  UtilityFunc1MySet  (no occurrence: suffix)

A name is exported when its first character is upper case.  When the
instance name is not exported, no generated name may be either, so the
leading character of an exported candidate is lowered (``NewSet`` with
``mySet`` gives ``newMySet``).
"""

from __future__ import annotations

import logging
import types
from typing import Dict, Iterable, Mapping, Sequence

from pytemplate.errors import (
    ArityError,
    DefinitionError,
    SourceSpan,
    TemplateErrorCodes,
)
from pytemplate.nodes import Identifier, Node

__all__ = [
    "IdentifierMapper",
    "SubstitutionMapping",
    "is_exported",
    "mangle",
]

logger = logging.getLogger(__name__)

SubstitutionMapping = Mapping[str, Node]


def is_exported(name: str) -> bool:
    return name[:1].isupper()


def _upper_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def _lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


def mangle(name: str, template_name: str, instance_name: str) -> str:
    """Return the name ``name`` takes in the ``instance_name`` instantiation."""
    if name == template_name:
        replacement = instance_name
    elif template_name and template_name in name:
        # keep compound identifiers readable: newMySet, not newmySet
        inner = instance_name
        if name.index(template_name) != 0:
            inner = _upper_first(inner)
        replacement = name.replace(template_name, inner, 1)
    else:
        replacement = name + _upper_first(instance_name)

    if not is_exported(instance_name) and is_exported(replacement):
        replacement = _lower_first(replacement)
    return replacement


class IdentifierMapper:
    """Builds the SubstitutionMapping for one instantiation."""

    def __init__(
        self,
        template_name: str,
        params: Sequence[str],
        instance_name: str,
        filename: str = "",
    ) -> None:
        self.template_name = template_name
        self.params = tuple(params)
        self.instance_name = instance_name
        self.filename = filename

    def build(
        self,
        declared: Iterable[str],
        args: Sequence[Node],
    ) -> SubstitutionMapping:
        """Map every declared name to its replacement.

        ``declared`` must contain the template name and every formal
        parameter; the returned mapping is read-only.
        """
        declared = list(declared)
        if len(args) != len(self.params):
            raise ArityError(
                self.template_name,
                expected=len(self.params),
                actual=len(args),
                span=SourceSpan(self.filename),
            )

        if self.template_name not in declared:
            raise DefinitionError(
                f"No definition for template type '{self.template_name}'",
                name=self.template_name,
                code=TemplateErrorCodes.UNDECLARED_NAME,
                span=SourceSpan(self.filename),
            )
        for param in self.params:
            if param not in declared:
                raise DefinitionError(
                    f"Template parameter '{param}' has no stub declaration",
                    name=param,
                    code=TemplateErrorCodes.UNDECLARED_NAME,
                    span=SourceSpan(self.filename),
                ).with_hint(f"declare a placeholder such as '{param} = int'")

        mappings: Dict[str, Node] = dict(zip(self.params, args))
        for name in declared:
            if name in mappings:
                continue
            replacement = mangle(name, self.template_name, self.instance_name)
            if name == replacement:
                logger.debug("Top level definition '%s' keeps its name", name)
            elif self.template_name not in name:
                logger.debug(
                    "Top level definition '%s' doesn't contain template name '%s', using '%s'",
                    name, self.template_name, replacement,
                )
            mappings[name] = Identifier(replacement)

        logger.debug("mappings = %r", sorted(mappings))
        return types.MappingProxyType(mappings)

    def table(self, mapping: SubstitutionMapping) -> Dict[str, str]:
        """Name → new name for the mangled entries, sorted by name."""
        return {
            name: node.name
            for name, node in sorted(mapping.items())
            if name not in self.params and isinstance(node, Identifier)
        }
