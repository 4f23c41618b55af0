# tests/conftest.py
"""
Shared template sources and helpers for the pytemplate test-suite.
"""

import ast

import pytest

from pytemplate.errors import CollectingSink
from pytemplate.instantiate import InstantiationConfig, Instantiator
from pytemplate.resolver import SourceUnit


# ═══════════════════════════════════════════════════════════════════
#  TEMPLATE SOURCES
# ═══════════════════════════════════════════════════════════════════

BASIC_TEMPLATE = '''\
import math

# template type Set(A)

A = int


class Set:
    def __init__(self, a: A):
        self.a = a


def NewSet(a: A) -> A:
    return A(0)


def NewSizedSet(a: A) -> A:
    return A(1)


def UtilityFunc1():
    pass


def utilityFunc():
    pass


def f0(self: A):
    pass


def F1(cls):
    pass


AVar1: int = 0
aVar2: int = 0
'''

FUNCTION_TEMPLATE = '''\
# template type TT(A, Less)

A = int


def Less(a: A, b: A) -> bool:
    return a < b


def TT(a: A, b: A) -> bool:
    return Less(a, b)


def TTone(a: A) -> bool:
    return not Less(a, a)
'''

FUNCTION_TEMPLATE_MIN = '''\
# template type TT(A, Less)


def Min(a: int, b: int) -> bool:
    return (lambda a, b: a < b)(a, b)


def Minone(a: int) -> bool:
    return not (lambda a, b: a < b)(a, a)
'''

STACK_TEMPLATE = '''\
"""A typed stack."""

from typing import List

# template type Stack(T)

T = object

__all__ = ["T", "Stack", "NewStack"]


class Stack:
    """Last in, first out."""

    def __init__(self) -> None:
        self.items: List[T] = []

    def push(self, item: T) -> None:
        self.items.append(item)

    def pop(self) -> T:
        return self.items.pop()

    def __len__(self) -> int:
        return len(self.items)


def NewStack(*items: T) -> Stack:
    stack = Stack()
    for item in items:
        stack.push(item)
    return stack
'''

NO_DIRECTIVE_TEMPLATE = '''\
A = int


def Set():
    pass
'''

TWO_DIRECTIVES_TEMPLATE = '''\
# template type Set(A)

# template type Map(K, V)

A = int
'''

UNDECLARED_NAME_TEMPLATE = '''\
# template type Set(A)

A = int


def NewSet():
    pass
'''


# ═══════════════════════════════════════════════════════════════════
#  HELPERS
# ═══════════════════════════════════════════════════════════════════

def make_unit(text, path="tt.py", module="", package=""):
    """An in-memory template SourceUnit."""
    return SourceUnit(text=text, path=path, module=module, package=package)


def expand_text(text, request, header=False, normalize=True, sink=None):
    """Instantiate ``text`` in memory and return the result."""
    config = InstantiationConfig(header=header, normalize=normalize)
    return Instantiator(config, sink=sink).expand(make_unit(text), request)


def top_level_names(text):
    """Names bound by the top-level def / class / assignments of ``text``."""
    names = []
    for stmt in ast.parse(text).body:
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.append(stmt.name)
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            names.append(stmt.target.id)
        elif isinstance(stmt, ast.Assign):
            names.extend(t.id for t in stmt.targets if isinstance(t, ast.Name))
    return names


def exec_module(text, filename="<generated>"):
    """Compile and execute generated source, returning its namespace."""
    ns = {"__name__": "generated"}
    exec(compile(text, filename, "exec"), ns)
    return ns


@pytest.fixture
def collecting_sink():
    return CollectingSink()


@pytest.fixture
def template_package(tmp_path):
    """A ``tpl`` package holding one template and a helper module."""
    pkg = tmp_path / "tpl"
    pkg.mkdir()
    (pkg / "__init__.py").write_text("", encoding="utf-8")
    (pkg / "helpers.py").write_text(
        "def twice(x):\n    return 2 * x\n", encoding="utf-8"
    )
    (pkg / "stack.py").write_text(STACK_TEMPLATE, encoding="utf-8")
    return pkg


@pytest.fixture
def output_package(tmp_path):
    """An ``out`` package to write instances into."""
    out = tmp_path / "out"
    out.mkdir()
    (out / "__init__.py").write_text("", encoding="utf-8")
    return out
