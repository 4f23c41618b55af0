# tests/test_main.py
"""
Tests for the command-line interface.
"""

import logging

import pytest

from pytemplate import __version__
from pytemplate.main import EXIT_ERROR, EXIT_INFRA, EXIT_OK, _build_parser, main


@pytest.fixture(autouse=True)
def _drop_cli_handlers():
    yield
    root = logging.getLogger("pytemplate")
    for handler in [h for h in root.handlers if h.get_name() == "pytemplate-cli"]:
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)


class TestParser:

    def test_instantiate_defaults(self):
        args = _build_parser().parse_args(["instantiate", "tpl", "X(int)"])
        assert args.template == "tpl"
        assert args.instance == "X(int)"
        assert args.output_dir == "."
        assert args.prefix == "pytemplate_"
        assert args.package is None
        assert not args.stdout

    def test_alias(self):
        args = _build_parser().parse_args(["inst", "tpl", "X(int)", "-o", "out", "--no-header"])
        assert args.output_dir == "out"
        assert args.no_header


class TestMain:

    def test_instantiate_writes_module(self, template_package, output_package, capsys):
        code = main([
            "instantiate", str(template_package / "stack.py"), "IntStack(int)",
            "-o", str(output_package),
        ])
        assert code == EXIT_OK
        written = output_package / "pytemplate_IntStack.py"
        assert written.is_file()
        assert capsys.readouterr().out.strip() == str(written)
        assert "class IntStack:" in written.read_text(encoding="utf-8")

    def test_stdout(self, template_package, output_package, capsys):
        code = main([
            "instantiate", str(template_package / "stack.py"), "IntStack(int)",
            "-o", str(output_package), "--stdout", "--no-header",
        ])
        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert out.startswith('"""A typed stack."""')
        assert not (output_package / "pytemplate_IntStack.py").exists()

    def test_show(self, template_package, output_package, capsys):
        code = main([
            "show", str(template_package / "stack.py"), "IntStack(int)",
            "-o", str(output_package),
        ])
        assert code == EXIT_OK
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "template  Stack(T)  (tpl.stack)"
        assert lines[1] == "instance  IntStack(int)  -> out.pytemplate_IntStack"
        assert lines[2] == "declared  T, Stack, NewStack"
        assert "  T  = int" in lines
        assert "  Stack     -> IntStack" in lines
        assert "  NewStack  -> NewIntStack" in lines

    def test_template_error_exits_with_error(self, template_package, capsys):
        code = main(["instantiate", str(template_package / "stack.py"), "S(int, str)", "--stdout"])
        assert code == EXIT_ERROR
        err = capsys.readouterr().err
        assert "TMPL-2001" in err
        assert "expecting 1 but 2 supplied" in err

    def test_missing_template(self, tmp_path, capsys):
        code = main(["instantiate", str(tmp_path / "nope.py"), "S(int)"])
        assert code == EXIT_ERROR
        assert "TMPL-0003" in capsys.readouterr().err

    def test_version(self, capsys):
        assert main(["--version"]) == EXIT_OK
        assert __version__ in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == EXIT_INFRA
        assert "usage: pytemplate" in capsys.readouterr().err

    def test_bad_arguments(self, capsys):
        assert main(["instantiate"]) == EXIT_INFRA

    def test_verbose_logs_progress(self, template_package, output_package, capsys):
        main([
            "-v", "instantiate", str(template_package / "stack.py"), "S(int)",
            "-o", str(output_package),
        ])
        err = capsys.readouterr().err
        assert "[INFO ] pytemplate.instantiate: Substituting" in err
