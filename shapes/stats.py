from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

# Flags that require sorting the values.
FULL_STATS_FLAGS = ("median", "p25", "p75")


def get_percentile(sorted_values: Sequence[float] | np.ndarray, ratio: float) -> float:
    """
    Percentile of already sorted values.

    Linear interpolation at index (n-1)*ratio (second NIST variant,
    https://www.itl.nist.gov/div898/handbook/prc/section2/prc262.htm).
    """
    arr = np.asarray(sorted_values, dtype=np.float64)
    if arr.size == 0:
        raise ValueError("Empty array provided for percentile calculation")
    if not math.isfinite(float(ratio)) or ratio < 0 or ratio > 1:
        raise ValueError(f"Invalid ratio provided for percentile calculation: {ratio}")
    if ratio == 0:
        return float(arr[0])
    if ratio == 1:
        return float(arr[-1])
    i = (arr.size - 1) * ratio
    i0 = int(math.floor(i))
    v0 = float(arr[i0])
    if i0 + 1 >= arr.size:
        return v0
    v1 = float(arr[i0 + 1])
    return v0 + (v1 - v0) * (i - i0)


def needs_full_stats(flags: Iterable[str] | None) -> bool:
    if not flags:
        return False
    return any(f in FULL_STATS_FLAGS for f in flags)


def get_stats(values: Sequence[float] | np.ndarray, flags: Iterable[str] | None = None) -> dict[str, float]:
    """
    min/max/mean/stdDev (population), plus median/p25/p75 when a flag asks for them.
    """
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise ValueError("Cannot compute statistics of an empty value list")
    mean = float(arr.mean())
    res = {
        "min": float(arr.min()),
        "max": float(arr.max()),
        "mean": mean,
        "stdDev": float(np.sqrt(max(float(np.mean(arr * arr)) - mean * mean, 0.0))),
    }
    if needs_full_stats(flags):
        s = np.sort(arr)
        res["median"] = get_percentile(s, 0.5)
        res["p25"] = get_percentile(s, 0.25)
        res["p75"] = get_percentile(s, 0.75)
    return res
