from typing import Sequence


def top_k(distribution: Sequence[float], k: int) -> list[int]:
    """Indices of the k most probable symbols, most probable first.

    Equal probabilities keep ascending index order so the same counters
    always produce the same ranking.
    """
    if k < 0:
        raise ValueError("k must be non-negative")
    order = sorted(range(len(distribution)), key=lambda i: (-distribution[i], i))
    return order[:k]
