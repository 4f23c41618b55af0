"""Template Set type.

Tries to be similar to Python's own set type, for elements of type A.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List

# template type Set(A)

A = int

__all__ = ["A", "Set", "NewSet", "NewSizedSet"]


class SetNothing:
    """Zero-size value stored for every member."""
    __slots__ = ()


_NOTHING = SetNothing()


class Set:
    """An unordered collection of distinct A."""

    def __init__(self, elems: Iterable[A] = ()) -> None:
        self.m: Dict[A, SetNothing] = {}
        for elem in elems:
            self.m[elem] = _NOTHING

    def __len__(self) -> int:
        return len(self.m)

    def __contains__(self, elem: A) -> bool:
        return elem in self.m

    def __iter__(self) -> Iterator[A]:
        return iter(self.m)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Set):
            return NotImplemented
        return self.m.keys() == other.m.keys()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.m)!r})"

    def contains(self, elem: A) -> bool:
        """Returns whether elem is in the set or not."""
        return elem in self.m

    def add(self, elem: A) -> Set:
        """Adds elem to the set, returning the set.

        If the element already exists then it has no effect.
        """
        self.m[elem] = _NOTHING
        return self

    def add_list(self, elems: Iterable[A]) -> Set:
        """Adds a list of elems to the set."""
        for elem in elems:
            self.m[elem] = _NOTHING
        return self

    def discard(self, elem: A) -> Set:
        """Removes elem from the set if present, returning the set."""
        self.m.pop(elem, None)
        return self

    def remove(self, elem: A) -> bool:
        """Removes elem from the set; returns whether it was there."""
        return self.m.pop(elem, None) is not None

    def pop(self, elem: A) -> tuple:
        """Removes elem from the set, returning ``(elem, found)``."""
        return elem, self.m.pop(elem, None) is not None

    def as_list(self) -> List[A]:
        """Returns all the elements as a list."""
        return list(self.m)

    def clear(self) -> Set:
        self.m = {}
        return self

    def copy(self) -> Set:
        """Returns a shallow copy of the set."""
        new_set = NewSizedSet(len(self.m))
        new_set.m.update(self.m)
        return new_set

    def difference(self, other: Set) -> Set:
        """Returns a new set with the elements that are not in other."""
        new_set = NewSizedSet(len(self.m))
        for elem in self.m:
            if elem not in other.m:
                new_set.m[elem] = _NOTHING
        return new_set

    def difference_update(self, other: Set) -> Set:
        """Removes all the elements that are in other from this set."""
        for elem in other.m:
            self.m.pop(elem, None)
        return self

    def intersection(self, other: Set) -> Set:
        """Returns a new set with the elements that are in both sets."""
        new_set = NewSizedSet(len(self.m) + len(other.m))
        for elem in self.m:
            if elem in other.m:
                new_set.m[elem] = _NOTHING
        return new_set

    def intersection_update(self, other: Set) -> Set:
        """Keeps only the elements that are also in other."""
        for elem in [e for e in self.m if e not in other.m]:
            del self.m[elem]
        return self

    def union(self, other: Set) -> Set:
        """Returns a new set with the elements that are in either set."""
        new_set = NewSizedSet(len(self.m) + len(other.m))
        new_set.m.update(self.m)
        new_set.m.update(other.m)
        return new_set

    def update(self, other: Set) -> Set:
        """Adds all the elements from other to this set."""
        self.m.update(other.m)
        return self

    def is_superset(self, strict: bool, other: Set) -> bool:
        """Whether this set is a (strict) superset of other."""
        if strict and len(other.m) >= len(self.m):
            return False
        return all(elem in self.m for elem in other.m)

    def is_subset(self, strict: bool, other: Set) -> bool:
        """Whether this set is a (strict) subset of other."""
        if strict and len(self.m) >= len(other.m):
            return False
        return all(elem in other.m for elem in self.m)

    def is_disjoint(self, other: Set) -> bool:
        """Whether this set and other have no elements in common."""
        return not any(elem in other.m for elem in self.m)

    def symmetric_difference(self, other: Set) -> Set:
        """Returns a new set of the elements that are in exactly one of the sets."""
        work = self.union(other)
        for elem in self.intersection(other).m:
            del work.m[elem]
        return work

    def symmetric_difference_update(self, other: Set) -> Set:
        self.m = self.symmetric_difference(other).m
        return self


def NewSizedSet(capacity: int) -> Set:
    """Returns a new empty set.

    ``capacity`` is a hint only; dicts size themselves.
    """
    return Set()


def NewSet(*elems: A) -> Set:
    """Returns a new set holding elems."""
    return Set(elems)
