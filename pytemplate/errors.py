# pytemplate/errors.py
"""
Template Instantiation Error Types and Reporting Module

Every failure during an instantiation run is terminal: there is no local
recovery, retry or partial success.  This module provides the exception
hierarchy raised by the pipeline, structured error codes so failures can be
filtered and tested, and the pluggable error sinks the orchestrator reports
through before the run is aborted.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                    │
├─────────────────────────────────────────────────────────────────────────────┤
│  TemplateError (base)                                                       │
│  ├── ResolutionError        - module lookup yields != 1 source unit         │
│  ├── SourceParseError       - template text rejected by the parser          │
│  ├── DefinitionError        - directive missing / duplicated / malformed    │
│  ├── ArityError             - parameter / argument count mismatch           │
│  ├── ShapeError             - non-bare-name where a bare name is required   │
│  ├── OutputError            - create / write / close of the artifact        │
│  └── InternalInvariantError - substitution broke an invariant (a bug)       │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a unique code following the pattern TMPL-XXXX where XXXX is
a 4-digit number in ranges:
  - 0001-0999: Resolution errors
  - 1000-1999: Parse / directive errors
  - 2000-2999: Shape and arity errors
  - 4000-4999: Output errors
  - 9000-9999: Internal errors

Example Usage:
──────────────
    from pytemplate.errors import ArityError, CollectingSink

    sink = CollectingSink()
    try:
        sink.fatal(ArityError("Set", expected=1, actual=2))
    except ArityError:
        pass
    assert sink.errors[0].code == "TMPL-2001"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Dict, List, NoReturn, Optional

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels; every instantiation error is fatal for its run."""

    FATAL = "fatal"


@unique
class ErrorPhase(Enum):
    """
    Pipeline step where the error occurred.

    Mirrors the orchestrator's linear state machine.
    """

    RESOLVE = "resolve"        # Locating the template source unit
    PARSE = "parse"            # Text -> tree
    DEFINITION = "definition"  # Directive lookup and arity check
    PRUNE = "prune"            # Stub declaration removal
    MAP = "map"                # Building the substitution mapping
    SUBSTITUTE = "substitute"  # Applying the mapping to the tree
    OUTPUT = "output"          # Serialising and writing the artifact
    INTERNAL = "internal"      # Tool internals


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``TMPL-NNNN``.

    Codes compare equal to each other by number and to their string form,
    so tests can write ``assert err.code == "TMPL-2001"``.
    """

    __slots__ = ("prefix", "number", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.FATAL,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class TemplateErrorCodes:
    """Predefined error codes."""

    # RESOLUTION (0001-0999)
    NO_SOURCE_UNIT = ErrorCode("TMPL", 1, ErrorPhase.RESOLVE)
    MULTIPLE_SOURCE_UNITS = ErrorCode("TMPL", 2, ErrorPhase.RESOLVE)
    MODULE_NOT_FOUND = ErrorCode("TMPL", 3, ErrorPhase.RESOLVE)
    UNREADABLE_SOURCE = ErrorCode("TMPL", 4, ErrorPhase.RESOLVE)

    # PARSE / DIRECTIVE (1000-1999)
    INVALID_SOURCE = ErrorCode("TMPL", 1000, ErrorPhase.PARSE)
    MISSING_DIRECTIVE = ErrorCode("TMPL", 1001, ErrorPhase.DEFINITION)
    DUPLICATE_DIRECTIVE = ErrorCode("TMPL", 1002, ErrorPhase.DEFINITION)
    MALFORMED_DIRECTIVE = ErrorCode("TMPL", 1003, ErrorPhase.DEFINITION)
    DUPLICATE_PARAMETER = ErrorCode("TMPL", 1004, ErrorPhase.DEFINITION)
    UNDECLARED_NAME = ErrorCode("TMPL", 1005, ErrorPhase.MAP)

    # SHAPE / ARITY (2000-2999)
    NOT_A_BARE_NAME = ErrorCode("TMPL", 2000, ErrorPhase.DEFINITION)
    ARITY_MISMATCH = ErrorCode("TMPL", 2001, ErrorPhase.DEFINITION)
    INVALID_REQUEST = ErrorCode("TMPL", 2002, ErrorPhase.DEFINITION)
    UNSPLITTABLE_BINDING = ErrorCode("TMPL", 2003, ErrorPhase.PRUNE)

    # OUTPUT (4000-4999)
    OUTPUT_FAILURE = ErrorCode("TMPL", 4000, ErrorPhase.OUTPUT)

    # INTERNAL (9000-9999)
    INTERNAL_ERROR = ErrorCode("TMPL", 9000, ErrorPhase.INTERNAL)
    INVARIANT_BROKEN = ErrorCode("TMPL", 9001, ErrorPhase.SUBSTITUTE)


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """A location in a template source file, used for diagnostics."""

    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


@dataclass
class ErrorNote:
    """Additional note attached to an error (e.g. where a name was seen)."""

    message: str
    span: Optional[SourceSpan] = None
    label: str = "note"

    def __str__(self) -> str:
        prefix = f"{self.label}: " if self.label else ""
        if self.span:
            return f"{self.span}: {prefix}{self.message}"
        return f"{prefix}{self.message}"


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class TemplateError(Exception):
    """
    Base exception for all instantiation errors.

    Carries a structured code, a source span, optional notes and a hint so
    a failure can be diagnosed without rerunning with extra logging.
    """

    default_code: ErrorCode = TemplateErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        notes: Optional[List[ErrorNote]] = None,
        hint: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.span = span or SourceSpan()
        self.notes = list(notes or [])
        self.hint = hint
        self.cause = cause

    @property
    def phase(self) -> ErrorPhase:
        return self.code.phase

    @property
    def severity(self) -> ErrorSeverity:
        return self.code.default_severity

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "TemplateError":
        """Add a note to this error."""
        self.notes.append(ErrorNote(message=message, span=span, label=label))
        return self

    def with_hint(self, hint: str) -> "TemplateError":
        self.hint = hint
        return self

    def in_file(self, filename: str) -> "TemplateError":
        """Fill in the file of a span that was raised without one."""
        if filename and not self.span.file:
            self.span = SourceSpan(filename, self.span.line, self.span.column)
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        lines = [f"{self.span}: {self.severity.value}: {self.message} [{self.code}]"]
        lines.extend(str(note) for note in self.notes)
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to a JSON-serialisable dict."""
        return {
            "code": self.code.code,
            "phase": self.phase.value,
            "message": self.message,
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
            },
            "notes": [str(note) for note in self.notes],
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


class ResolutionError(TemplateError):
    """The module reference did not yield exactly one source unit."""

    default_code = TemplateErrorCodes.NO_SOURCE_UNIT

    def __init__(
        self,
        message: str,
        reference: str = "",
        candidates: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reference = reference
        self.candidates = list(candidates or [])


class SourceParseError(TemplateError):
    """The template (or normalised output) text is not valid source."""

    default_code = TemplateErrorCodes.INVALID_SOURCE


class DefinitionError(TemplateError):
    """Template directive missing, duplicated, malformed or undeclared."""

    default_code = TemplateErrorCodes.MISSING_DIRECTIVE

    def __init__(self, message: str, name: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.name = name


class ShapeError(TemplateError):
    """A non-bare-name appeared where a bare name is required."""

    default_code = TemplateErrorCodes.NOT_A_BARE_NAME

    def __init__(self, message: str, text: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.text = text


class ArityError(TemplateError):
    """Wrong number of actual arguments for the template's parameters."""

    default_code = TemplateErrorCodes.ARITY_MISMATCH

    def __init__(
        self,
        name: str,
        expected: int,
        actual: int,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"Wrong number of arguments - template '{name}' is expecting "
            f"{expected} but {actual} supplied",
            **kwargs,
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class OutputError(TemplateError):
    """Creating, writing or closing the output artifact failed."""

    default_code = TemplateErrorCodes.OUTPUT_FAILURE

    def __init__(self, message: str, path: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.path = path


class InternalInvariantError(TemplateError):
    """A mutation expected to succeed during substitution did not."""

    default_code = TemplateErrorCodes.INVARIANT_BROKEN


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SINKS
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorSink:
    """
    Fatal-error sink used by the orchestrator.

    ``fatal`` reports the error and terminates the run.  The default sink
    logs the error and re-raises it; subclasses may record it first or
    convert it into a process exit.
    """

    def fatal(self, error: TemplateError) -> NoReturn:
        logger.debug("Fatal %s in phase %s", error.code, error.phase.value)
        raise error


class CollectingSink(ErrorSink):
    """Sink that records every error it sees before re-raising it."""

    def __init__(self) -> None:
        self.errors: List[TemplateError] = []

    def fatal(self, error: TemplateError) -> NoReturn:
        self.errors.append(error)
        raise error


class ExitingSink(ErrorSink):
    """Sink for command-line use: log the diagnostic and exit the process."""

    def __init__(self, exit_code: int = 1) -> None:
        self.exit_code = exit_code

    def fatal(self, error: TemplateError) -> NoReturn:
        logger.error("%s", error.to_gcc_format())
        raise SystemExit(self.exit_code)


__all__ = [
    "ArityError",
    "CollectingSink",
    "DefinitionError",
    "ErrorCode",
    "ErrorNote",
    "ErrorPhase",
    "ErrorSeverity",
    "ErrorSink",
    "ExitingSink",
    "InternalInvariantError",
    "OutputError",
    "ResolutionError",
    "ShapeError",
    "SourceParseError",
    "SourceSpan",
    "TemplateError",
    "TemplateErrorCodes",
]
