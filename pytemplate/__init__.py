"""pytemplate — generics for Python by source rewriting.

A template is an ordinary, importable Python module carrying a
``# template type Name(Params)`` comment and a stub declaration for each
parameter.  Instantiating it substitutes concrete types and functions for
the parameters, renames the template's top-level names so that several
instances can live side by side, and writes a new module.

Submodules
----------
nodes
    The closed syntax-tree model: ``Identifier``, ``Sequence``,
    ``Aggregate``, ``Slot``, ``Reference`` and ``Literal``.

walker
    Cycle-safe generic substitution (``apply``, ``substitute``, ``subst``).

mapper
    ``IdentifierMapper``: the name mangling rules.

definition
    Locates the template directive (Parsimonious grammar).

pruner
    ``DeclarationPruner``: removes parameter stubs, records declared names.

frontend
    Python text ↔ node tree, on top of :mod:`ast` and :mod:`tokenize`.

resolver
    Template module lookup.

instantiate
    The pipeline: ``Instantiator``, ``expand``, ``instantiate``.

errors
    Exception hierarchy, ``TMPL-XXXX`` error codes and error sinks.

main
    CLI entry-point with subcommands ``instantiate`` and ``show``.

templates
    Ready-made templates: ``set``, ``sort``, ``heap``.

Usage
-----
Command-line::

    python -m pytemplate instantiate pytemplate.templates.set "IntSet(int)"
    python -m pytemplate show pytemplate.templates.sort "SortDesc(int, lambda a, b: a > b)"
    python -m pytemplate --help

Programmatic::

    from pytemplate.instantiate import InstantiationConfig, instantiate

    result = instantiate("pytemplate.templates.set", "IntSet(int)",
                         InstantiationConfig(output_dir="mypkg"))

"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "errors",
    "instantiate",
    "main",
]
