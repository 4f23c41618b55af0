"""Ready-made templates.

Each module is importable as is (its stubs make it a working module for the
stub types) and instantiates into type-specialised code::

    pytemplate instantiate pytemplate.templates.set  "StrSet(str)"
    pytemplate instantiate pytemplate.templates.sort "SortDesc(float, lambda a, b: a > b)"
    pytemplate instantiate pytemplate.templates.heap "MinHeap(int, lambda a, b: a < b)"
    pytemplate instantiate pytemplate.templates.treemap "IntStrMap(int, str, lambda a, b: a < b)"
"""
