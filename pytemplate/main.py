#!/usr/bin/env python3
"""pytemplate/main.py — CLI entry-point for pytemplate.

Usage examples
--------------
    # Write pytemplate_IntSet.py into the current package
    python -m pytemplate instantiate pytemplate.templates.set "IntSet(int)"

    # Instantiate a template file into another directory
    python -m pytemplate instantiate templates/sort.py \\
        "SortDesc(float, lambda a, b: a > b)" -o mypkg

    # Print the generated module instead of writing it
    python -m pytemplate instantiate pytemplate.templates.heap \\
        "MinHeap(int, lambda a, b: a < b)" --stdout

    # Show the directive, declared names and renames without writing
    python -m pytemplate show pytemplate.templates.set "mySet(str)"

    # Show version and exit
    python -m pytemplate --version

Exit codes
----------
    0   Success.
    1   The template could not be instantiated (see the diagnostic).
    2   Infrastructure failure (bad arguments, unexpected exception).

The module doubles as ``python -m pytemplate`` via the companion
``pytemplate/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import textwrap
from typing import Optional, Sequence

from pytemplate import __version__
from pytemplate.errors import ExitingSink
from pytemplate.instantiate import InstantiationConfig, Instantiator
from pytemplate.resolver import ModuleResolver

_log = logging.getLogger("pytemplate")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``pytemplate`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler.set_name("pytemplate-cli")
    root = logging.getLogger("pytemplate")
    for old in [h for h in root.handlers if h.get_name() == "pytemplate-cli"]:
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def _config_from_args(args: argparse.Namespace) -> InstantiationConfig:
    return InstantiationConfig(
        output_dir=args.output_dir,
        prefix=args.prefix,
        package=args.package,
        normalize=not args.no_normalize,
        header=not args.no_header,
    )


def _instantiator(args: argparse.Namespace) -> Instantiator:
    config = _config_from_args(args)
    return Instantiator(
        config,
        resolver=ModuleResolver(base_dir=os.getcwd(), prefix=config.prefix),
        sink=ExitingSink(EXIT_ERROR),
    )


# ===========================================================================
# Sub-commands
# ===========================================================================

def cmd_instantiate(args: argparse.Namespace) -> int:
    """Instantiate a template and write (or print) the generated module."""
    instantiator = _instantiator(args)
    result = instantiator.instantiate(args.template, args.instance, write=not args.stdout)
    if args.stdout:
        sys.stdout.write(result.text)
    else:
        print(result.output_path)
    return EXIT_OK


def cmd_show(args: argparse.Namespace) -> int:
    """Print what an instantiation would do, without writing anything."""
    result = _instantiator(args).instantiate(args.template, args.instance, write=False)

    print(f"template  {result.definition}  ({result.origin})")
    print(f"instance  {result.request}  -> {result.identity}")
    print(f"declared  {', '.join(result.declared) or '-'}")
    width = max((len(name) for name in result.definition.params), default=0)
    for param, arg in zip(result.definition.params, result.request.args):
        print(f"  {param:<{width}}  = {arg}")
    width = max((len(name) for name in result.renames), default=0)
    for old, new in result.renames.items():
        print(f"  {old:<{width}}  -> {new}")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    # --- Top-level parser --------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="pytemplate",
        description=(
            "pytemplate — generics for Python by source rewriting.\n\n"
            "Instantiates a template module into a concrete module by\n"
            "substituting types and functions for its parameters."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              pytemplate instantiate pytemplate.templates.set "IntSet(int)"
              pytemplate instantiate templates/sort.py "SortDesc(float, lambda a, b: a > b)"
              pytemplate show pytemplate.templates.set "mySet(str)"
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_template_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "template",
            help="Template module: dotted name, .py file or directory.",
        )
        p.add_argument(
            "instance",
            help='Instance request, e.g. "MySet(int)".',
        )

    def _add_output_args(p: argparse.ArgumentParser) -> None:
        g = p.add_argument_group("output")
        g.add_argument(
            "-o", "--output-dir",
            default=".",
            metavar="DIR",
            help="Directory to write the generated module to (default: .).",
        )
        g.add_argument(
            "--package",
            default=None,
            metavar="PKG",
            help="Dotted package of the output directory (default: discovered).",
        )
        g.add_argument(
            "--prefix",
            default="pytemplate_",
            help="File name prefix of generated modules (default: pytemplate_).",
        )
        g.add_argument(
            "--no-normalize",
            action="store_true",
            help="Skip the final parse/format pass.",
        )
        g.add_argument(
            "--no-header",
            action="store_true",
            help="Do not emit the generated-code header comment.",
        )

    # --- instantiate -------------------------------------------------------
    p_inst = subparsers.add_parser(
        "instantiate",
        aliases=["inst"],
        help="Instantiate a template into a new module.",
        description=(
            "Resolve the template module, substitute the arguments for its\n"
            "parameters and write <prefix><Instance>.py."
        ),
    )
    _add_template_args(p_inst)
    _add_output_args(p_inst)
    p_inst.add_argument(
        "--stdout",
        action="store_true",
        help="Print the generated module instead of writing it.",
    )
    p_inst.set_defaults(func=cmd_instantiate)

    # --- show --------------------------------------------------------------
    p_show = subparsers.add_parser(
        "show",
        help="Show the directive, declared names and renames.",
    )
    _add_template_args(p_show)
    _add_output_args(p_show)
    p_show.set_defaults(func=cmd_show)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the pytemplate CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


# ---------------------------------------------------------------------------
# Module execution support
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
