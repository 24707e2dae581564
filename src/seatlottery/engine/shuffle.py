from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

__all__ = ["fisher_yates"]

T = TypeVar("T")


def fisher_yates(items: Sequence[T], rng: random.Random) -> list[T]:
    """Return a uniformly shuffled copy of ``items``; the input is untouched.

    Walks indices from last to first, swapping ``i`` with a uniform
    ``j`` in ``[0, i]``, so each of the ``n!`` orderings is equally likely.
    """

    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
