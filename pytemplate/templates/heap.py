"""Binary min-heap of A, ordered by the function Less.

A heap is a tree with the property that each node is the minimum-valued
node in its subtree; the minimum element is the root, at index 0::

    not Less(h[j], h[i])  for 0 <= i < len(h), j = 2*i+1 or 2*i+2, j < len(h)

To build a priority queue, use the (negative) priority as the ordering, so
push adds items while pop removes the highest-priority item.
"""

from __future__ import annotations

from typing import Iterable, List

# template type Heap(A, Less)

A = int


def Less(a: A, b: A) -> bool:
    """Less is a function to compare two A."""
    return a < b


class Heap:
    """Heap stored in a list."""

    def __init__(self, items: Iterable[A] = ()) -> None:
        self.items: List[A] = list(items)
        self.init()

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.items!r})"

    def init(self) -> None:
        """Re-establishes the heap invariants; O(n).

        Called by the constructor; call it again after changing ``items``
        directly.
        """
        n = len(self.items)
        for i in range(n // 2 - 1, -1, -1):
            self._down(i, n)

    def peek(self) -> A:
        """Returns the minimum element without removing it."""
        return self.items[0]

    def push(self, x: A) -> None:
        """Pushes x onto the heap; O(log n)."""
        self.items.append(x)
        self._up(len(self.items) - 1)

    def pop(self) -> A:
        """Removes and returns the minimum element; O(log n)."""
        hs = self.items
        n = len(hs) - 1
        hs[0], hs[n] = hs[n], hs[0]
        self._down(0, n)
        return hs.pop()

    def remove(self, i: int) -> A:
        """Removes and returns the element at index i; O(log n)."""
        hs = self.items
        n = len(hs) - 1
        if n != i:
            hs[i], hs[n] = hs[n], hs[i]
            self._down(i, n)
            self._up(i)
        return hs.pop()

    def fix(self, i: int) -> None:
        """Re-establishes the ordering after the element at index i changed."""
        self._down(i, len(self.items))
        self._up(i)

    def _up(self, j: int) -> None:
        hs = self.items
        while j > 0:
            i = (j - 1) // 2  # parent
            if not Less(hs[j], hs[i]):
                break
            hs[i], hs[j] = hs[j], hs[i]
            j = i

    def _down(self, i: int, n: int) -> None:
        hs = self.items
        while True:
            j = 2 * i + 1
            if j >= n:
                break
            j2 = j + 1
            if j2 < n and not Less(hs[j], hs[j2]):
                j = j2  # right child
            if not Less(hs[j], hs[i]):
                break
            hs[i], hs[j] = hs[j], hs[i]
            i = j
