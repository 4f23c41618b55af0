# tests/test_walker.py
"""
Tests for the generic substitution walker: apply / substitute / subst,
the mutation policy and cycle safety.
"""

import types
from collections import UserDict

import pytest

from pytemplate.errors import InternalInvariantError
from pytemplate.nodes import (
    NO_POSITION,
    Aggregate,
    Identifier,
    Literal,
    Position,
    Reference,
    Sequence,
    Slot,
    identifier_names,
)
from pytemplate.walker import apply, rewrite, subst, substitute


def _call(func, *args):
    return Aggregate("Call", {
        "func": Slot(Identifier(func, Position(1, 0))),
        "args": Sequence([Slot(Identifier(a, Position(1, 4))) for a in args]),
    })


class _ExplodingFields(UserDict):
    def __setitem__(self, key, value):
        if key in getattr(self, "data", {}):
            raise RuntimeError("frozen")
        super().__setitem__(key, value)


class TestApply:

    def test_replaces_children_and_returns_node(self):
        seq = Sequence([Identifier("a"), Identifier("b")])
        out = apply(lambda n: Identifier(n.name.upper()), seq)
        assert out is seq
        assert identifier_names(seq) == ["A", "B"]

    def test_none_replacement_is_skipped(self):
        seq = Sequence([Identifier("a")])
        apply(lambda n: None, seq)
        assert seq.items == [Identifier("a")]

    def test_reference_becomes_absent(self):
        target = Identifier("x")
        ref = Reference.to(target)
        assert not ref.absent
        out = apply(lambda n: n, ref)
        assert isinstance(out, Reference)
        assert out.absent

    def test_none_node(self):
        assert apply(lambda n: n, None) is None

    def test_unknown_variant(self):
        class Stray:
            pass

        with pytest.raises(InternalInvariantError):
            apply(lambda n: n, Stray())


class TestMutationPolicy:

    def test_tuple_sequence_is_read_only(self):
        seq = Sequence((Identifier("A"),))
        substitute(seq, {"A": Identifier("int")})
        assert seq.items == (Identifier("A"),)

    def test_read_only_mapping_is_skipped(self):
        agg = Aggregate("Attr", types.MappingProxyType({"name": Identifier("A")}))
        substitute(agg, {"A": Identifier("int")})
        assert agg.fields["name"].name == "A"

    def test_read_only_field_is_skipped(self):
        agg = Aggregate(
            "Pair",
            {"left": Identifier("A"), "right": Identifier("A")},
            readonly=frozenset({"left"}),
        )
        substitute(agg, {"A": Identifier("int")})
        assert agg.fields["left"].name == "A"
        assert agg.fields["right"].name == "int"

    def test_slot_accepts_any_variant(self):
        slot = Slot(Identifier("Less"))
        lam = Aggregate("Lambda", {"body": Slot(Identifier("x"))})
        substitute(slot, {"Less": lam})
        assert isinstance(slot.value, Aggregate)
        assert slot.value.kind == "Lambda"
        assert slot.value is not lam

    def test_variant_mismatch_in_typed_field(self):
        agg = Aggregate("FunctionDef", {"name": Identifier("Less")})
        lam = Aggregate("Lambda", {})
        with pytest.raises(InternalInvariantError, match="Failure while setting"):
            substitute(agg, {"Less": lam})

    def test_variant_mismatch_carries_identifier_position(self):
        agg = Aggregate("Attribute", {"attr": Identifier("A", Position(3, 4))})
        with pytest.raises(InternalInvariantError) as info:
            substitute(agg, {"A": Aggregate("Subscript", {})})
        assert info.value.span.line == 3
        assert info.value.span.column == 5
        assert info.value.span.file == ""

    def test_variant_mismatch_falls_back_to_parent_position(self):
        agg = Aggregate("Attribute", {
            "attr": Identifier("A"),
            "pos": Literal(Position(7, 0)),
        })
        with pytest.raises(InternalInvariantError) as info:
            substitute(agg, {"A": Aggregate("Subscript", {})})
        assert info.value.span.line == 7

    def test_variant_mismatch_in_sequence(self):
        seq = Sequence([Identifier("A")])
        with pytest.raises(InternalInvariantError):
            substitute(seq, {"A": Aggregate("Call", {})})

    def test_container_failure_is_internal_error(self):
        fields = _ExplodingFields({"name": Identifier("A")})
        agg = Aggregate("Name", fields)
        with pytest.raises(InternalInvariantError) as info:
            substitute(agg, {"A": Identifier("int")})
        assert isinstance(info.value.cause, RuntimeError)
        assert info.value.code == "TMPL-9001"


class TestCycleSafety:

    def test_self_reference_terminates(self):
        agg = Aggregate("ClassDef", {"name": Identifier("Set")})
        agg.fields["scope"] = Reference.to(agg)
        substitute(agg, {"Set": Identifier("MySet")})
        assert agg.fields["name"].name == "MySet"
        assert agg.fields["scope"].absent

    def test_mutual_references_terminate(self):
        outer = Aggregate("Module", {})
        inner = Aggregate("FunctionDef", {"name": Identifier("f")})
        inner.fields["scope"] = Reference.to(outer)
        outer.fields["body"] = Sequence([inner])
        outer.fields["scope"] = Reference.to(inner)
        substitute(outer, {"f": Identifier("g")})
        assert inner.fields["name"].name == "g"
        assert inner.fields["scope"].absent
        assert outer.fields["scope"].absent

    def test_reference_target_is_not_rewritten(self):
        elsewhere = Identifier("A")
        agg = Aggregate("X", {"link": Reference.to(elsewhere)})
        substitute(agg, {"A": Identifier("int")})
        assert elsewhere.name == "A"


class TestSubstitute:

    def test_empty_mapping_returns_tree(self):
        tree = _call("Less", "a", "b")
        assert substitute(tree, {}) is tree

    def test_replacement_takes_identifier_position(self):
        tree = _call("Less", "a", "b")
        pattern = Identifier("lt", Position(9, 9))
        substitute(tree, {"Less": pattern})
        func = tree.fields["func"].value
        assert func.name == "lt"
        assert func.pos == Position(1, 0)
        assert pattern.pos == Position(9, 9)

    def test_each_occurrence_gets_its_own_copy(self):
        tree = _call("f", "A", "A")
        substitute(tree, {"A": Identifier("int", Position(1, 0))})
        first, second = (slot.value for slot in tree.fields["args"].items)
        assert first == second
        assert first is not second

    def test_single_pass_is_order_independent(self):
        forward = {"a": Identifier("b"), "b": Identifier("c")}
        backward = dict(reversed(list(forward.items())))
        t1, t2 = _call("f", "a", "b"), _call("f", "a", "b")
        substitute(t1, forward)
        substitute(t2, backward)
        assert identifier_names(t1) == identifier_names(t2) == ["f", "b", "c"]

    def test_replacements_are_not_revisited(self):
        tree = Slot(Identifier("A"))
        wrapped = Aggregate("List", {"elts": Sequence([Slot(Identifier("A"))])})
        substitute(tree, {"A": wrapped})
        assert tree.value.kind == "List"
        assert identifier_names(tree) == ["A"]

    def test_rewrite_single_name(self):
        tree = _call("Less", "Less")
        rewrite(tree, "Less", Identifier("lt"))
        assert identifier_names(tree) == ["lt", "lt"]

    def test_literals_are_untouched(self):
        agg = Aggregate("Constant", {"value": Literal("A")})
        substitute(agg, {"A": Identifier("int")})
        assert agg.fields["value"].value == "A"


class TestSubst:

    def test_stamps_valid_positions(self):
        pattern = Aggregate("Subscript", {
            "value": Slot(Identifier("list", Position(1, 0))),
            "slice": Slot(Identifier("str", Position(1, 5))),
            "pos": Literal(Position(1, 0)),
        })
        copy = subst(pattern, Position(7, 3))
        assert copy.fields["value"].value.pos == Position(7, 3)
        assert copy.fields["slice"].value.pos == Position(7, 3)
        assert copy.fields["pos"].value == Position(7, 3)

    def test_position_less_leaves_stay_position_less(self):
        copy = subst(Identifier("MySet"), Position(4, 0))
        assert copy.pos == NO_POSITION

    def test_no_position_keeps_originals(self):
        copy = subst(Identifier("x", Position(2, 1)))
        assert copy.pos == Position(2, 1)

    def test_deep_copy(self):
        pattern = Sequence([Identifier("a", Position(1, 0))])
        copy = subst(pattern, Position(3, 0))
        assert copy is not pattern
        assert copy.items[0] is not pattern.items[0]
        assert pattern.items[0].pos == Position(1, 0)

    def test_read_only_containers_stay_read_only(self):
        seq = subst(Sequence((Identifier("a"),)))
        assert not seq.writable
        agg = subst(Aggregate("X", types.MappingProxyType({"a": Identifier("a")})))
        assert not agg.writable("a")

    def test_references_become_absent(self):
        target = Identifier("t")
        copy = subst(Aggregate("Lambda", {"scope": Reference.to(target)}))
        assert copy.fields["scope"].absent

    def test_none(self):
        assert subst(None) is None
