"""Synthetic data for running the screen without network access."""
import random
from typing import List


def biased_smooth_values(n: int, lo: int, hi: int) -> List[int]:
    """Returns n random integers within [lo, hi], biased towards lo, with smooth transitions."""
    values: List[int] = []
    for i in range(n):
        # Prefer lower values.
        bias = random.random()
        target = lo + int(bias ** 4 * (hi - lo))

        value = target
        if i > 0:
            step = random.randint(-5, 4)
            value = values[i - 1] + step
            value = (value * 3 + target) // 4

        values.append(min(max(value, lo), hi))
    return values
