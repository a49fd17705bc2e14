"""
Scalar helpers shared by the array modules.
"""

from typing import Iterable


def prod(ls: Iterable[int]) -> int:
    "Product of a sequence of ints (1 for an empty sequence)."
    r = 1
    for x in ls:
        r *= x
    return r


def clamp_span(begin: int, end: int) -> int:
    "Length of the half-open span [begin, end), 0 when reversed."
    return end - begin if end > begin else 0
