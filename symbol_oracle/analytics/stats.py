from typing import Iterable, Sequence


def uniform(n: int) -> list[float]:
    return [1.0 / n] * n


def smoothed(counts: Sequence[int], alpha: float = 1.0) -> list[float]:
    # additive smoothing: (c_i + a) / (sum(c) + n*a); uniform when nothing counted
    n = len(counts)
    total = sum(counts)
    if total == 0:
        return uniform(n)
    denom = total + n * alpha
    return [(c + alpha) / denom for c in counts]


def tally(symbols: Iterable[int], n: int) -> list[int]:
    counts = [0] * n
    for s in symbols:
        counts[s] += 1
    return counts
