# pytemplate/resolver.py
"""
Template module lookup.

A template reference may be a dotted module name (``pytemplate.templates.set``),
a path to a ``.py`` file, or a directory / package holding exactly one
candidate template file.
"""

from __future__ import annotations

import importlib.util
import logging
import os
import tokenize
from dataclasses import dataclass
from typing import List, Optional

from pytemplate.errors import ResolutionError, SourceSpan, TemplateErrorCodes

__all__ = [
    "ModuleResolver",
    "SourceUnit",
    "find_package_name",
    "is_candidate",
]

logger = logging.getLogger(__name__)

GENERATED_PREFIX = "pytemplate_"


@dataclass(frozen=True)
class SourceUnit:
    """One template source file, read into memory."""

    text: str
    path: str = ""
    module: str = ""
    package: str = ""

    @property
    def filename(self) -> str:
        return self.path or "<template>"

    @property
    def origin(self) -> str:
        return self.module or os.path.basename(self.path) or "<template>"


def is_candidate(filename: str, prefix: str = GENERATED_PREFIX) -> bool:
    """True for a file that may hold a template.

    Package markers, test modules and previously generated instances are
    not candidates.
    """
    if not filename.endswith(".py"):
        return False
    stem = filename[:-3]
    return not (
        filename == "__init__.py"
        or filename == "__main__.py"
        or stem.startswith("test_")
        or stem.endswith("_test")
        or stem.startswith(prefix)
    )


def find_package_name(directory: str) -> str:
    """Dotted package name of ``directory``, following its ``__init__.py`` chain.

    Returns an empty string when ``directory`` is not a package.
    """
    parts: List[str] = []
    current = os.path.abspath(directory)
    while os.path.isfile(os.path.join(current, "__init__.py")):
        parts.append(os.path.basename(current))
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return ".".join(reversed(parts))


class ModuleResolver:
    """Turns a template reference into exactly one SourceUnit."""

    def __init__(self, base_dir: Optional[str] = None, prefix: str = GENERATED_PREFIX) -> None:
        self.base_dir = base_dir or os.getcwd()
        self.prefix = prefix

    def resolve(self, reference: str) -> SourceUnit:
        path = self._locate(reference)
        if os.path.isdir(path):
            path = self._single_candidate(path, reference)
        return self._read(path)

    # ── lookup ──────────────────────────────────────────────────────

    def _locate(self, reference: str) -> str:
        if not reference:
            raise ResolutionError(
                "Empty template reference",
                code=TemplateErrorCodes.MODULE_NOT_FOUND,
            )
        candidate = os.path.join(self.base_dir, reference)
        if reference.endswith(".py") or os.sep in reference or os.path.isdir(candidate):
            if os.path.exists(candidate):
                return candidate
            raise ResolutionError(
                f"No such template file or directory: {reference}",
                reference=reference,
                code=TemplateErrorCodes.MODULE_NOT_FOUND,
            )

        # dotted module name: local source tree first
        relative = os.path.join(self.base_dir, *reference.split("."))
        if os.path.isfile(relative + ".py"):
            return relative + ".py"
        if os.path.isdir(relative):
            return relative
        return self._find_spec(reference)

    def _find_spec(self, reference: str) -> str:
        try:
            spec = importlib.util.find_spec(reference)
        except (ImportError, ValueError) as exc:
            raise ResolutionError(
                f"Can't import template module {reference!r}: {exc}",
                reference=reference,
                code=TemplateErrorCodes.MODULE_NOT_FOUND,
                cause=exc,
            ) from exc
        if spec is None:
            raise ResolutionError(
                f"Can't find template module {reference!r}",
                reference=reference,
                code=TemplateErrorCodes.MODULE_NOT_FOUND,
            )
        if spec.submodule_search_locations:
            locations = list(spec.submodule_search_locations)
            if len(locations) != 1:
                raise ResolutionError(
                    f"Namespace package {reference!r} spans {len(locations)} directories",
                    reference=reference,
                    candidates=locations,
                    code=TemplateErrorCodes.MULTIPLE_SOURCE_UNITS,
                )
            return locations[0]
        if not spec.origin or not spec.origin.endswith(".py"):
            raise ResolutionError(
                f"Template module {reference!r} has no Python source",
                reference=reference,
                code=TemplateErrorCodes.NO_SOURCE_UNIT,
            )
        return spec.origin

    def _single_candidate(self, directory: str, reference: str) -> str:
        candidates = sorted(
            name for name in os.listdir(directory)
            if is_candidate(name, self.prefix) and os.path.isfile(os.path.join(directory, name))
        )
        logger.debug("Template candidates in %s: %s", directory, candidates)
        if not candidates:
            raise ResolutionError(
                f"No template source found in {directory}",
                reference=reference,
                code=TemplateErrorCodes.NO_SOURCE_UNIT,
            )
        if len(candidates) > 1:
            raise ResolutionError(
                f"Found more than one template source in {directory}",
                reference=reference,
                candidates=candidates,
                code=TemplateErrorCodes.MULTIPLE_SOURCE_UNITS,
            ).with_hint("name the template module explicitly")
        return os.path.join(directory, candidates[0])

    # ── reading ─────────────────────────────────────────────────────

    def _read(self, path: str) -> SourceUnit:
        try:
            with tokenize.open(path) as fh:
                text = fh.read()
        except (OSError, SyntaxError, UnicodeDecodeError) as exc:
            raise ResolutionError(
                f"Failed to read template {path}: {exc}",
                reference=path,
                code=TemplateErrorCodes.UNREADABLE_SOURCE,
                span=SourceSpan(path),
                cause=exc,
            ) from exc

        package = find_package_name(os.path.dirname(path))
        stem = os.path.splitext(os.path.basename(path))[0]
        module = f"{package}.{stem}" if package else stem
        logger.debug("Resolved template %s (module %s)", path, module)
        return SourceUnit(text=text, path=path, module=module, package=package)
