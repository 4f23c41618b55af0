"""
pytemplate/__main__.py
======================

Entry point for ``python -m pytemplate``.

Pipeline
--------
    template module ──resolve──▶ source text ──parse──▶ node tree
        │
        ▼
    directive + arity ──▶ prune stubs ──▶ mapping ──▶ substitute
        │
        ▼
    identity rewrite ──▶ format ──▶ normalize ──▶ pytemplate_<Name>.py
"""

from pytemplate.main import main

if __name__ == "__main__":
    raise SystemExit(main())
