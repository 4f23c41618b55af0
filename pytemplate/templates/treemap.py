"""Sorted map from Key to Value, ordered by the function Less.

A red-black tree.  Iterators are positions in the tree: ``iterator()``
starts at the first element and becomes invalid one past the last one,
``reverse()`` starts at the last element and becomes invalid one before the
first one::

    tm = NewTreeMap()
    tm.set(1, "World")
    tm.set(0, "Hello")
    it = tm.iterator()
    while it.valid():
        print(it.key(), it.value())
        it.next()
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple

# template type TreeMap(Key, Value, Less)

Key = int
Value = str


def Less(a: Key, b: Key) -> bool:
    """Less is a function to compare two Key."""
    return a < b


__all__ = ["Key", "Value", "Less", "TreeMap", "TreeMapIterator", "TreeMapReverseIterator", "NewTreeMap"]


class TreeMapNode:
    """A tree node.  The end node sits above the root: ``end_node.left`` is the root."""
    __slots__ = ("right", "left", "parent", "is_black", "key", "value")

    def __init__(
        self,
        key: Optional[Key] = None,
        value: Optional[Value] = None,
        parent: Optional[TreeMapNode] = None,
        is_black: bool = False,
    ) -> None:
        self.right: Optional[TreeMapNode] = None
        self.left: Optional[TreeMapNode] = None
        self.parent = parent
        self.is_black = is_black
        self.key = key
        self.value = value


class TreeMap:
    """Red-black tree based map of Key to Value."""

    def __init__(self) -> None:
        self.end_node = TreeMapNode(is_black=True)
        self.begin_node = self.end_node
        self.count = 0

    def __len__(self) -> int:
        return self.count

    def __contains__(self, key: Key) -> bool:
        return self.find_node(key) is not None

    def __getitem__(self, key: Key) -> Value:
        node = self.find_node(key)
        if node is None:
            raise KeyError(key)
        return node.value

    def __setitem__(self, key: Key, value: Value) -> None:
        self.set(key, value)

    def __delitem__(self, key: Key) -> None:
        if not self.delete(key):
            raise KeyError(key)

    def __iter__(self) -> Iterator[Key]:
        for key, _ in self.items():
            yield key

    def __reversed__(self) -> Iterator[Key]:
        it = self.reverse()
        while it.valid():
            yield it.key()
            it.next()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.items())!r})"

    def set(self, key: Key, value: Value) -> None:
        """Sets the value and silently overrides the previous one if any; O(log N)."""
        parent = self.end_node
        current = parent.left
        less = True
        while current is not None:
            parent = current
            if Less(key, current.key):
                current = current.left
                less = True
            elif Less(current.key, key):
                current = current.right
                less = False
            else:
                current.value = value
                return
        x = TreeMapNode(key, value, parent)
        if less:
            parent.left = x
        else:
            parent.right = x
        if self.begin_node.left is not None:
            self.begin_node = self.begin_node.left
        self._insert_fixup(x)
        self.count += 1

    def delete(self, key: Key) -> bool:
        """Deletes the value and reports whether it was there; O(log N)."""
        z = self.find_node(key)
        if z is None:
            return False
        if self.begin_node is z:
            if z.right is not None:
                self.begin_node = z.right
            else:
                self.begin_node = z.parent
        self.count -= 1
        removeNode(self.end_node.left, z)
        return True

    def clear(self) -> None:
        """Removes all elements; O(1)."""
        self.count = 0
        self.begin_node = self.end_node
        self.end_node.left = None

    def get(self, key: Key) -> Tuple[Optional[Value], bool]:
        """Retrieves a value, reporting whether it was found; O(log N)."""
        node = self.find_node(key)
        if node is None:
            return None, False
        return node.value, True

    def contains(self, key: Key) -> bool:
        """Checks whether the map contains key; O(log N)."""
        return self.find_node(key) is not None

    def range(self, lo: Key, hi: Key) -> Tuple[TreeMapIterator, TreeMapIterator]:
        """Returns the half-open interval of elements with lo <= key <= hi.

        The second iterator is the first element past the interval.
        """
        return self.lower_bound(lo), self.upper_bound(hi)

    def lower_bound(self, key: Key) -> TreeMapIterator:
        """Returns an iterator to the first element not less than key; O(log N)."""
        result = self.end_node
        node = self.end_node.left
        while node is not None:
            if Less(node.key, key):
                node = node.right
            else:
                result = node
                node = node.left
        return TreeMapIterator(self, result)

    def upper_bound(self, key: Key) -> TreeMapIterator:
        """Returns an iterator to the first element greater than key; O(log N)."""
        result = self.end_node
        node = self.end_node.left
        while node is not None:
            if Less(key, node.key):
                result = node
                node = node.left
            else:
                node = node.right
        return TreeMapIterator(self, result)

    def iterator(self) -> TreeMapIterator:
        """Returns an iterator to the first element; O(1)."""
        return TreeMapIterator(self, self.begin_node)

    def reverse(self) -> TreeMapReverseIterator:
        """Returns a reverse iterator to the last element; O(log N)."""
        node = self.end_node.left
        if node is not None:
            node = mostRight(node)
        return TreeMapReverseIterator(self, node)

    def items(self) -> Iterator[Tuple[Key, Value]]:
        it = self.iterator()
        while it.valid():
            yield it.key(), it.value()
            it.next()

    def find_node(self, key: Key) -> Optional[TreeMapNode]:
        current = self.end_node.left
        while current is not None:
            if Less(key, current.key):
                current = current.left
            elif Less(current.key, key):
                current = current.right
            else:
                return current
        return None

    def _insert_fixup(self, x: TreeMapNode) -> None:
        root = self.end_node.left
        x.is_black = x is root
        while x is not root and not x.parent.is_black:
            if x.parent is x.parent.parent.left:
                y = x.parent.parent.right
                if y is not None and not y.is_black:
                    x = x.parent
                    x.is_black = True
                    x = x.parent
                    x.is_black = x is root
                    y.is_black = True
                else:
                    if x is not x.parent.left:
                        x = x.parent
                        rotateLeft(x)
                    x = x.parent
                    x.is_black = True
                    x = x.parent
                    x.is_black = False
                    rotateRight(x)
                    break
            else:
                y = x.parent.parent.left
                if y is not None and not y.is_black:
                    x = x.parent
                    x.is_black = True
                    x = x.parent
                    x.is_black = x is root
                    y.is_black = True
                else:
                    if x is x.parent.left:
                        x = x.parent
                        rotateRight(x)
                    x = x.parent
                    x.is_black = True
                    x = x.parent
                    x.is_black = False
                    rotateLeft(x)
                    break


def NewTreeMap(items: Iterable[Tuple[Key, Value]] = ()) -> TreeMap:
    """Creates a TreeMap holding items; later duplicates override earlier ones."""
    tm = TreeMap()
    for key, value in items:
        tm.set(key, value)
    return tm


class TreeMapIterator:
    """A forward position in a TreeMap.

    Valid from the first element up to the last one; one step further it
    stands at the end of the map, where it can only step back.
    """
    __slots__ = ("tree", "node")

    def __init__(self, tree: TreeMap, node: TreeMapNode) -> None:
        self.tree = tree
        self.node = node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeMapIterator):
            return NotImplemented
        return self.node is other.node

    def valid(self) -> bool:
        """Reports whether the iterator points at an element."""
        return self.node is not self.tree.end_node

    def next(self) -> None:
        """Moves to the next element; raises IndexError at the end."""
        if self.node is self.tree.end_node:
            raise IndexError("out of bound iteration")
        self.node = successor(self.node)

    def prev(self) -> None:
        """Moves to the previous element; raises IndexError at the first one."""
        node = predecessor(self.node)
        if node is None:
            raise IndexError("out of bound iteration")
        self.node = node

    def key(self) -> Key:
        return self.node.key

    def value(self) -> Value:
        return self.node.value


class TreeMapReverseIterator:
    """A backward position in a TreeMap, from the last element to the first."""
    __slots__ = ("tree", "node")

    def __init__(self, tree: TreeMap, node: Optional[TreeMapNode]) -> None:
        self.tree = tree
        self.node = node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeMapReverseIterator):
            return NotImplemented
        return self.node is other.node

    def valid(self) -> bool:
        return self.node is not None

    def next(self) -> None:
        """Moves to the previous key; raises IndexError before the first one."""
        if self.node is None:
            raise IndexError("out of bound iteration")
        self.node = predecessor(self.node)

    def prev(self) -> None:
        """Moves to the next key; raises IndexError at the last one."""
        if self.node is None:
            node = self.tree.begin_node
        else:
            node = successor(self.node)
        if node is self.tree.end_node:
            raise IndexError("out of bound iteration")
        self.node = node

    def key(self) -> Key:
        return self.node.key

    def value(self) -> Value:
        return self.node.value


def mostLeft(x: TreeMapNode) -> TreeMapNode:
    while x.left is not None:
        x = x.left
    return x


def mostRight(x: TreeMapNode) -> TreeMapNode:
    while x.right is not None:
        x = x.right
    return x


def successor(x: TreeMapNode) -> TreeMapNode:
    if x.right is not None:
        return mostLeft(x.right)
    while x is not x.parent.left:
        x = x.parent
    return x.parent


def predecessor(x: TreeMapNode) -> Optional[TreeMapNode]:
    if x.left is not None:
        return mostRight(x.left)
    while x.parent is not None and x is not x.parent.right:
        x = x.parent
    return x.parent


def rotateLeft(x: TreeMapNode) -> None:
    y = x.right
    x.right = y.left
    if x.right is not None:
        x.right.parent = x
    y.parent = x.parent
    if x is x.parent.left:
        x.parent.left = y
    else:
        x.parent.right = y
    y.left = x
    x.parent = y


def rotateRight(x: TreeMapNode) -> None:
    y = x.left
    x.left = y.right
    if x.left is not None:
        x.left.parent = x
    y.parent = x.parent
    if x is x.parent.left:
        x.parent.left = y
    else:
        x.parent.right = y
    y.right = x
    x.parent = y


def removeNode(root: Optional[TreeMapNode], z: TreeMapNode) -> None:
    """Unlinks z from the tree under root and restores the red-black invariants."""
    if z.left is None or z.right is None:
        y = z
    else:
        y = successor(z)
    # x is y's only child, w is x's future uncle
    x = y.left if y.left is not None else y.right
    w = None
    if x is not None:
        x.parent = y.parent
    if y is y.parent.left:
        y.parent.left = x
        if y is not root:
            w = y.parent.right
        else:
            root = x
    else:
        y.parent.right = x
        w = y.parent.left
    removed_black = y.is_black
    if y is not z:
        y.parent = z.parent
        if z is z.parent.left:
            y.parent.left = y
        else:
            y.parent.right = y
        y.left = z.left
        y.left.parent = y
        y.right = z.right
        if y.right is not None:
            y.right.parent = y
        y.is_black = z.is_black
        if root is z:
            root = y
    if not removed_black or root is None:
        return
    if x is not None:
        x.is_black = True
        return

    while True:
        if w is not w.parent.left:
            if not w.is_black:
                w.is_black = True
                w.parent.is_black = False
                rotateLeft(w.parent)
                if root is w.left:
                    root = w
                w = w.left.right
            if (w.left is None or w.left.is_black) and (w.right is None or w.right.is_black):
                w.is_black = False
                x = w.parent
                if x is root or not x.is_black:
                    x.is_black = True
                    break
                if x is x.parent.left:
                    w = x.parent.right
                else:
                    w = x.parent.left
            else:
                if w.right is None or w.right.is_black:
                    w.left.is_black = True
                    w.is_black = False
                    rotateRight(w)
                    w = w.parent
                w.is_black = w.parent.is_black
                w.parent.is_black = True
                w.right.is_black = True
                rotateLeft(w.parent)
                break
        else:
            if not w.is_black:
                w.is_black = True
                w.parent.is_black = False
                rotateRight(w.parent)
                if root is w.right:
                    root = w
                w = w.right.left
            if (w.left is None or w.left.is_black) and (w.right is None or w.right.is_black):
                w.is_black = False
                x = w.parent
                if x is root or not x.is_black:
                    x.is_black = True
                    break
                if x is x.parent.left:
                    w = x.parent.right
                else:
                    w = x.parent.left
            else:
                if w.left is None or w.left.is_black:
                    w.right.is_black = True
                    w.is_black = False
                    rotateLeft(w)
                    w = w.parent
                w.is_black = w.parent.is_black
                w.parent.is_black = True
                w.left.is_black = True
                rotateRight(w.parent)
                break
