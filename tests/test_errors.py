# tests/test_errors.py
"""
Tests for the error hierarchy, diagnostics formatting and error sinks.
"""

import json
import logging

import pytest

from pytemplate.errors import (
    ArityError,
    CollectingSink,
    DefinitionError,
    ErrorCode,
    ErrorPhase,
    ErrorSeverity,
    ErrorSink,
    ExitingSink,
    ResolutionError,
    SourceSpan,
    TemplateError,
    TemplateErrorCodes,
)


class TestErrorCode:

    def test_string_form(self):
        assert str(TemplateErrorCodes.ARITY_MISMATCH) == "TMPL-2001"
        assert TemplateErrorCodes.NO_SOURCE_UNIT == "TMPL-0001"

    def test_codes_are_hashable(self):
        seen = {TemplateErrorCodes.INVALID_SOURCE, TemplateErrorCodes.INVALID_SOURCE}
        assert len(seen) == 1

    def test_phase(self):
        assert TemplateErrorCodes.UNSPLITTABLE_BINDING.phase is ErrorPhase.PRUNE

    def test_every_code_is_fatal(self):
        codes = [v for v in vars(TemplateErrorCodes).values() if isinstance(v, ErrorCode)]
        assert codes
        assert all(code.default_severity is ErrorSeverity.FATAL for code in codes)
        assert [s.value for s in ErrorSeverity] == ["fatal"]


class TestTemplateError:

    def test_defaults(self):
        err = TemplateError("boom")
        assert err.code == "TMPL-9000"
        assert str(err.span) == "<unknown location>"

    def test_gcc_format(self):
        err = DefinitionError(
            "Found multiple template definitions",
            span=SourceSpan("set.py", 3),
            code=TemplateErrorCodes.DUPLICATE_DIRECTIVE,
        )
        err.add_note("first definition", SourceSpan("set.py", 1)).with_hint("keep one")
        assert err.to_gcc_format().splitlines() == [
            "set.py:3: fatal: Found multiple template definitions [TMPL-1002]",
            "set.py:1: note: first definition",
            "hint: keep one",
        ]

    def test_json(self):
        err = ArityError("Set", 1, 2, span=SourceSpan("set.py", 3, 1))
        data = json.loads(json.dumps(err.to_json()))
        assert data["code"] == "TMPL-2001"
        assert data["location"] == {"file": "set.py", "line": 3, "column": 1}
        assert "expecting 1 but 2 supplied" in data["message"]

    def test_in_file_fills_missing_file(self):
        err = TemplateError("boom", span=SourceSpan(line=4, column=2)).in_file("set.py")
        assert str(err.span) == "set.py:4:2"
        assert err.in_file("other.py").span.file == "set.py"

    def test_cause_is_kept(self):
        cause = OSError("denied")
        err = ResolutionError("Failed", reference="x", cause=cause)
        assert err.cause is cause
        assert err.reference == "x"


class TestSinks:

    def test_default_sink_reraises(self):
        err = TemplateError("boom")
        with pytest.raises(TemplateError) as info:
            ErrorSink().fatal(err)
        assert info.value is err

    def test_collecting_sink(self):
        sink = CollectingSink()
        err = TemplateError("boom")
        with pytest.raises(TemplateError):
            sink.fatal(err)
        assert sink.errors == [err]

    def test_exiting_sink(self, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(SystemExit) as info:
                ExitingSink(3).fatal(TemplateError("boom", span=SourceSpan("t.py", 2)))
        assert info.value.code == 3
        assert "t.py:2: fatal: boom [TMPL-9000]" in caplog.text
