"""
Deterministic ranking and dispersion helpers for aggregated metrics.

Ranks are a strict ordering 1..N over every brand in the brand set: no
gaps and no shared ranks. Ties on the metric value are broken by:

    1. total mention count (descending)
    2. display name, case-insensitive (ascending)
    3. display name, exact (ascending)
    4. brand-set order

For "lower is better" metrics (average position), brands without a value
(never detected, reported as 0) are ranked after every brand with one.

Example:
    >>> entries = [
    ...     RankEntry("Zenith", 40.0, mentions=3),
    ...     RankEntry("Acme", 40.0, mentions=5),
    ...     RankEntry("Globex", 10.0, mentions=9),
    ... ]
    >>> assign_ranks(entries, higher_is_better=True)
    {'Acme': 1, 'Zenith': 2, 'Globex': 3}
"""

import math
import statistics
from dataclasses import dataclass


@dataclass(frozen=True)
class RankEntry:
    """
    One brand's value for one metric.

    Attributes:
        brand: Display name
        value: Metric value
        mentions: Total mention count (first tie-break)
        has_value: False when the metric is undefined for the brand (e.g. no
            average position because it was never detected); such entries
            always rank last
    """

    brand: str
    value: float
    mentions: int = 0
    has_value: bool = True


def assign_ranks(entries: list[RankEntry], higher_is_better: bool) -> dict[str, int]:
    """
    Assign ranks 1..N to entries.

    Args:
        entries: One entry per brand, in brand-set order
        higher_is_better: Sort direction of the metric value

    Returns:
        Mapping brand -> rank
    """

    def sort_key(item: tuple[int, RankEntry]) -> tuple:
        index, entry = item
        direction = -entry.value if higher_is_better else entry.value
        return (
            not entry.has_value,
            direction,
            -entry.mentions,
            entry.brand.lower(),
            entry.brand,
            index,
        )

    ordered = sorted(enumerate(entries), key=sort_key)
    return {entry.brand: rank for rank, (_, entry) in enumerate(ordered, start=1)}


def rank_change(previous_rank: int | None, current_rank: int) -> int:
    """
    Positive when the brand moved up (e.g. 3 -> 1 is +2), 0 without history.

    Example:
        >>> rank_change(3, 1)
        2
        >>> rank_change(None, 4)
        0
    """
    if previous_rank is None:
        return 0
    return previous_rank - current_rank


def coefficient_of_variation(values: list[float]) -> float:
    """
    Population standard deviation divided by the mean.

    Returns 0.0 for fewer than two values or a zero mean, never NaN.

    Example:
        >>> coefficient_of_variation([10.0, 10.0, 10.0])
        0.0
        >>> round(coefficient_of_variation([0.0, 100.0]), 2)
        1.0
    """
    if len(values) < 2:
        return 0.0
    mean = statistics.fmean(values)
    if mean == 0 or not math.isfinite(mean):
        return 0.0
    return statistics.pstdev(values) / abs(mean)
