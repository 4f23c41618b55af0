# pytemplate/instantiate.py
"""
Template instantiation pipeline.

    Locate source → Parse → LocateDefinition → CheckArity → Prune →
    BuildMapping → ApplyMapping → RewriteModuleIdentity → Serialize →
    Normalize → Write

Every step may fail; the failure is handed to the configured
:class:`~pytemplate.errors.ErrorSink`, which terminates the run.

Usage::

    from pytemplate.instantiate import InstantiationConfig, instantiate

    result = instantiate("pytemplate.templates.set", "IntSet(int)",
                         InstantiationConfig(output_dir="mypkg"))
    print(result.output_path)          # mypkg/pytemplate_IntSet.py
"""

from __future__ import annotations

import ast
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from pytemplate.definition import TemplateDefinition, find_template_definition
from pytemplate.errors import (
    ErrorSink,
    InternalInvariantError,
    OutputError,
    ShapeError,
    TemplateError,
    TemplateErrorCodes,
)
from pytemplate.frontend import format_tree, normalize, parse_expression, parse_source
from pytemplate.mapper import IdentifierMapper, SubstitutionMapping
from pytemplate.nodes import Aggregate, Identifier, Literal, Node, Sequence, iter_nodes, unwrap
from pytemplate.pruner import DeclarationPruner
from pytemplate.resolver import GENERATED_PREFIX, ModuleResolver, SourceUnit, find_package_name
from pytemplate.walker import substitute

__all__ = [
    "InstantiationConfig",
    "InstantiationRequest",
    "InstantiationResult",
    "Instantiator",
    "expand",
    "instantiate",
    "parse_instance",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  CONFIGURATION
# ═══════════════════════════════════════════════════════════════════

@dataclass
class InstantiationConfig:
    """Where and how instantiated modules are written."""
    output_dir: str = "."
    prefix: str = GENERATED_PREFIX
    package: Optional[str] = None     # None: derived from output_dir
    normalize: bool = True
    header: bool = True

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if not os.path.isdir(self.output_dir):
            warnings.append(f"output_dir {self.output_dir!r} is not a directory")
        if not (self.prefix + "X").isidentifier():
            warnings.append(f"prefix {self.prefix!r} does not give importable module names")
        if self.package is not None and self.package and not all(
            part.isidentifier() for part in self.package.split(".")
        ):
            warnings.append(f"package {self.package!r} is not a dotted module name")
        return warnings


# ═══════════════════════════════════════════════════════════════════
#  REQUEST / RESULT
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InstantiationRequest:
    """``Name(arg, ...)``: the instance name and the source of each argument."""
    name: str
    args: Tuple[str, ...] = ()

    def arg_nodes(self) -> List[Node]:
        return [parse_expression(arg) for arg in self.args]

    def __str__(self):
        return f"{self.name}({', '.join(self.args)})"


def parse_instance(text: str) -> InstantiationRequest:
    """Parse ``"MySet(int)"`` into an InstantiationRequest.

    Raises :class:`ShapeError` unless the text is a call of a bare name with
    positional arguments only.
    """
    try:
        tree = ast.parse(text.strip(), mode="eval")
    except SyntaxError as exc:
        raise ShapeError(
            f"Failed to parse instance {text!r}: {exc.msg}",
            text=text,
            code=TemplateErrorCodes.INVALID_REQUEST,
            cause=exc,
        ) from exc

    call = tree.body
    if not isinstance(call, ast.Call):
        raise ShapeError(
            f"Expected 'Name(arg, ...)' instead of {text!r}",
            text=text,
            code=TemplateErrorCodes.INVALID_REQUEST,
        )
    if not isinstance(call.func, ast.Name):
        raise ShapeError(
            f"Expected identifier instead of {ast.unparse(call.func)!r}",
            text=text,
        )
    if call.keywords or any(isinstance(arg, ast.Starred) for arg in call.args):
        raise ShapeError(
            f"Only positional arguments are allowed in {text!r}",
            text=text,
            code=TemplateErrorCodes.INVALID_REQUEST,
        )

    source = text.strip()
    args = tuple(ast.get_source_segment(source, arg) or ast.unparse(arg) for arg in call.args)
    return InstantiationRequest(name=call.func.id, args=args)


@dataclass
class InstantiationResult:
    definition: TemplateDefinition
    request: InstantiationRequest
    text: str
    identity: str = ""
    origin: str = ""
    declared: List[str] = field(default_factory=list)
    renames: Dict[str, str] = field(default_factory=dict)
    output_path: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════
#  MODULE IDENTITY
# ═══════════════════════════════════════════════════════════════════

def _rewrite_all(module: Aggregate, mapping: SubstitutionMapping, params) -> None:
    """Rename the string entries of a module-level ``__all__``."""
    body = module.get("body")
    if not isinstance(body, Sequence):
        return
    for item in body.items:
        stmt = unwrap(item)
        if not isinstance(stmt, Aggregate) or stmt.kind not in ("Assign", "AnnAssign"):
            continue
        targets = stmt.get("targets")
        names = targets.items if isinstance(targets, Sequence) else [stmt.get("target")]
        if not any(isinstance(unwrap(t), Identifier) and unwrap(t).name == "__all__" for t in names):
            continue
        value = unwrap(stmt.get("value"))
        elts = value.get("elts") if isinstance(value, Aggregate) else None
        if not isinstance(elts, Sequence) or not elts.writable:
            continue

        kept = []
        for elt in elts.items:
            const = unwrap(elt)
            entry = const.get("value") if isinstance(const, Aggregate) and const.kind == "Constant" else None
            if isinstance(entry, Literal) and isinstance(entry.value, str):
                if entry.value in params:
                    logger.debug("Removing '%s' from __all__", entry.value)
                    continue
                replacement = mapping.get(entry.value)
                if isinstance(replacement, Identifier):
                    const.fields["value"] = Literal(replacement.name)
            kept.append(elt)
        elts.items[:] = kept


def _anchor_relative_imports(module: Aggregate, package: str, filename: str) -> None:
    """Turn ``from .x import y`` into an absolute import from the template's package."""
    parts = package.split(".") if package else []
    for node in list(iter_nodes(module)):
        if not (isinstance(node, Aggregate) and node.kind == "ImportFrom"):
            continue
        level = node.get("level")
        if not (isinstance(level, Literal) and level.value):
            continue
        up = level.value - 1
        if not parts or up >= len(parts):
            logger.warning(
                "%s: relative import (level %d) cannot be anchored to package %r",
                filename, level.value, package,
            )
            continue
        target = parts[: len(parts) - up]
        name = node.get("module")
        if isinstance(name, Literal) and name.value:
            target.append(name.value)
        node.fields["module"] = Literal(".".join(target))
        node.fields["level"] = Literal(0)


def _set_identity(module: Aggregate, identity: str, origin: str) -> None:
    module.fields["identity"] = Literal(identity)
    module.fields["origin"] = Literal(origin)


# ═══════════════════════════════════════════════════════════════════
#  ORCHESTRATOR
# ═══════════════════════════════════════════════════════════════════

class Instantiator:
    """Runs the instantiation pipeline for one configuration."""

    def __init__(
        self,
        config: Optional[InstantiationConfig] = None,
        resolver: Optional[ModuleResolver] = None,
        sink: Optional[ErrorSink] = None,
    ) -> None:
        self.config = config or InstantiationConfig()
        self.resolver = resolver or ModuleResolver(prefix=self.config.prefix)
        self.sink = sink or ErrorSink()
        for warning in self.config.validate():
            logger.warning("InstantiationConfig: %s", warning)

    def module_name(self, request: InstantiationRequest) -> str:
        return f"{self.config.prefix}{request.name}"

    def identity(self, request: InstantiationRequest) -> str:
        package = self.config.package
        if package is None:
            package = find_package_name(self.config.output_dir)
        module = self.module_name(request)
        return f"{package}.{module}" if package else module

    def expand(
        self,
        unit: SourceUnit,
        request: Union[str, InstantiationRequest],
        identity: Optional[str] = None,
    ) -> InstantiationResult:
        """Instantiate ``unit`` in memory and return the generated text."""
        try:
            if isinstance(request, str):
                request = parse_instance(request)
            module = parse_source(unit.text, unit.filename)
            definition = find_template_definition(module, len(request.args), unit.filename)
            args = request.arg_nodes()

            logger.info(
                "Substituting %r with %s into %s",
                unit.origin, request, identity or self.module_name(request),
            )
            registry = DeclarationPruner(definition.params, unit.filename).prune(module)
            mapper = IdentifierMapper(definition.name, definition.params, request.name, unit.filename)
            mapping = mapper.build(registry, args)

            try:
                substitute(module, mapping)
            except InternalInvariantError as err:
                raise err.in_file(unit.filename)
            _rewrite_all(module, mapping, definition.params)
            _anchor_relative_imports(module, unit.package, unit.filename)
            identity = identity if identity is not None else self.module_name(request)
            _set_identity(module, identity, unit.origin)

            text = format_tree(module, header=self.config.header)
            if self.config.normalize:
                text = normalize(text, self.module_name(request) + ".py")
        except TemplateError as err:
            self.sink.fatal(err)
            raise

        return InstantiationResult(
            definition=definition,
            request=request,
            text=text,
            identity=identity,
            origin=unit.origin,
            declared=registry.names(),
            renames=mapper.table(mapping),
        )

    def instantiate(
        self,
        reference: str,
        request: Union[str, InstantiationRequest],
        write: bool = True,
    ) -> InstantiationResult:
        """Resolve ``reference``, expand it and write the output module.

        With ``write=False`` the generated text is only returned.
        """
        try:
            if isinstance(request, str):
                request = parse_instance(request)
            unit = self.resolver.resolve(reference)
        except TemplateError as err:
            self.sink.fatal(err)
            raise

        result = self.expand(unit, request, identity=self.identity(request))
        if not write:
            return result
        path = os.path.join(self.config.output_dir, self.module_name(request) + ".py")
        try:
            self._write(path, result.text)
        except TemplateError as err:
            self.sink.fatal(err)
            raise
        result.output_path = path
        logger.info("Written '%s'", path)
        return result

    @staticmethod
    def _write(path: str, text: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write(text)
        except OSError as exc:
            raise OutputError(f"Failed to write {path!r}: {exc}", path=path, cause=exc) from exc


def expand(
    unit: SourceUnit,
    request: Union[str, InstantiationRequest],
    config: Optional[InstantiationConfig] = None,
    sink: Optional[ErrorSink] = None,
) -> InstantiationResult:
    """Convenience wrapper around :meth:`Instantiator.expand`."""
    return Instantiator(config, sink=sink).expand(unit, request)


def instantiate(
    reference: str,
    request: Union[str, InstantiationRequest],
    config: Optional[InstantiationConfig] = None,
    resolver: Optional[ModuleResolver] = None,
    sink: Optional[ErrorSink] = None,
) -> InstantiationResult:
    """Convenience wrapper around :meth:`Instantiator.instantiate`."""
    return Instantiator(config, resolver=resolver, sink=sink).instantiate(reference, request)
