"""
Question Sampling

Picks a bounded, randomized subset of candidate questions.
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

# Pools this small are re-shuffled orders the user would notice if they
# came back unchanged.
SMALL_POOL_THRESHOLD = 4


def sample(
    candidates: Sequence[T],
    count: int,
    rng: Optional[random.Random] = None,
) -> List[T]:
    """
    Return min(count, len(candidates)) distinct candidates in random order.

    Args:
        candidates: Pool to draw from. Never mutated.
        count: Number of items requested. Must be >= 0.
        rng: Optional random generator (tests pass a seeded one).

    Raises:
        ValueError: If count is negative.
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    pool = list(candidates)
    if len(pool) <= 1:
        return pool[:count]

    rng = rng or random.Random()
    shuffled = pool[:]
    rng.shuffle(shuffled)

    if len(shuffled) <= SMALL_POOL_THRESHOLD and shuffled == pool:
        i, j = rng.sample(range(len(shuffled)), 2)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled[:count]
