"""Sorting of lists of A, ordered by the function Less.

An introsort after Go's ``sort`` package: quicksort (Bentley and McIlroy,
"Engineering a Sort Function", SP&E November 1993) that falls back to
heapsort when it recurses too deep and to insertion sort for short ranges.
The sort is not stable.
"""

from __future__ import annotations

from typing import List, Tuple

# template type Sort(A, Less)

A = int


def Less(a: A, b: A) -> bool:
    """Less is a function to compare two A."""
    return a < b


def swap(data: List[A], i: int, j: int) -> None:
    data[i], data[j] = data[j], data[i]


def insertionSort(data: List[A], a: int, b: int) -> None:
    for i in range(a + 1, b):
        j = i
        while j > a and Less(data[j], data[j - 1]):
            swap(data, j, j - 1)
            j -= 1


def siftDown(data: List[A], lo: int, hi: int, first: int) -> None:
    """Implements the heap property on data[lo:hi].

    first is an offset into the list where the root of the heap lies.
    """
    root = lo
    while True:
        child = 2 * root + 1
        if child >= hi:
            return
        if child + 1 < hi and Less(data[first + child], data[first + child + 1]):
            child += 1
        if not Less(data[first + root], data[first + child]):
            return
        swap(data, first + root, first + child)
        root = child


def heapSort(data: List[A], a: int, b: int) -> None:
    first = a
    lo = 0
    hi = b - a
    for i in range((hi - 1) // 2, -1, -1):
        siftDown(data, i, hi, first)
    for i in range(hi - 1, -1, -1):
        swap(data, first, first + i)
        siftDown(data, lo, i, first)


def medianOfThree(data: List[A], m1: int, m0: int, m2: int) -> None:
    """Moves the median of data[m1], data[m0], data[m2] into data[m1]."""
    if Less(data[m1], data[m0]):
        swap(data, m1, m0)
    if Less(data[m2], data[m1]):
        swap(data, m2, m1)
    if Less(data[m1], data[m0]):
        swap(data, m1, m0)


def swapRange(data: List[A], a: int, b: int, n: int) -> None:
    for i in range(n):
        swap(data, a + i, b + i)


def doPivot(data: List[A], lo: int, hi: int) -> Tuple[int, int]:
    m = lo + (hi - lo) // 2
    if hi - lo > 40:
        # Tukey's "Ninther", median of three medians of three
        s = (hi - lo) // 8
        medianOfThree(data, lo, lo + s, lo + 2 * s)
        medianOfThree(data, m, m - s, m + s)
        medianOfThree(data, hi - 1, hi - 1 - s, hi - 1 - 2 * s)
    medianOfThree(data, lo, m, hi - 1)

    pivot = lo
    a, b, c, d = lo + 1, lo + 1, hi, hi
    while True:
        while b < c:
            if Less(data[b], data[pivot]):
                b += 1
            elif not Less(data[pivot], data[b]):
                swap(data, a, b)
                a += 1
                b += 1
            else:
                break
        while b < c:
            if Less(data[pivot], data[c - 1]):
                c -= 1
            elif not Less(data[c - 1], data[pivot]):
                swap(data, c - 1, d - 1)
                c -= 1
                d -= 1
            else:
                break
        if b >= c:
            break
        swap(data, b, c - 1)
        b += 1
        c -= 1

    n = min(b - a, a - lo)
    swapRange(data, lo, b - n, n)
    n = min(hi - d, d - c)
    swapRange(data, c, hi - n, n)
    return lo + b - a, hi - (d - c)


def quickSort(data: List[A], a: int, b: int, maxDepth: int) -> None:
    while b - a > 7:
        if maxDepth == 0:
            heapSort(data, a, b)
            return
        maxDepth -= 1
        mlo, mhi = doPivot(data, a, b)
        # recurse on the smaller side only
        if mlo - a < b - mhi:
            quickSort(data, a, mlo, maxDepth)
            a = mhi
        else:
            quickSort(data, mhi, b, maxDepth)
            b = mlo
    if b - a > 1:
        insertionSort(data, a, b)


def Sort(data: List[A]) -> None:
    """Sorts data in place, ordered by Less."""
    n = len(data)
    maxDepth = 0
    i = n
    while i > 0:
        maxDepth += 1
        i >>= 1
    quickSort(data, 0, n, maxDepth * 2)


def IsSorted(data: List[A]) -> bool:
    """Reports whether data is sorted."""
    for i in range(len(data) - 1, 0, -1):
        if Less(data[i], data[i - 1]):
            return False
    return True
