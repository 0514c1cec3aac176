"""Fold helpers for grouping report rows."""

from collections import Counter
from functools import reduce
from typing import Callable, Dict, Hashable, Iterable, Tuple, TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def _accumulate(totals: Counter, pair: Tuple) -> Counter:
    # One accumulator per fold, updated in place.
    key, value = pair
    totals[key] += value
    return totals


def sum_by(items: Iterable[T], key: Callable[[T], K], value: Callable[[T], float]) -> Dict[K, float]:
    """Fold items into ``{group key: total}``; keys keep first-occurrence order."""
    return dict(reduce(_accumulate, ((key(item), value(item)) for item in items), Counter()))


def count_by(items: Iterable[T], key: Callable[[T], K]) -> Dict[K, int]:
    return dict(reduce(_accumulate, ((key(item), 1) for item in items), Counter()))
