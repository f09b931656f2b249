"""
Statistical summary helpers.

Pure functions over sequences of cell values. Non-numeric cells (None, text,
booleans, NaN) are ignored wherever a numeric sequence is expected.
"""
import logging
import math
import numpy as np
import pandas as pd
from typing import List, Dict, Any, Optional, Sequence
from chartsense.core.schemas import HistogramBin, NumericStats, OutlierReport, ValueCount

logger = logging.getLogger(__name__)

MIN_CORRELATION_SAMPLES = 5


def is_number(value: Any) -> bool:
    """True for finite ints and floats. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def finite_numbers(values: Sequence[Any]) -> List[float]:
    return [float(v) for v in values if is_number(v)]


def numeric_stats(values: Sequence[Any]) -> Optional[Dict[str, float]]:
    """
    Basic numeric summary.

    Returns:
        Dict with min, max, mean, median and std_dev (population), or None
        when there is no finite numeric value
    """
    numbers = finite_numbers(values)
    if not numbers:
        return None

    arr = np.asarray(numbers, dtype=float)
    return {
        'min': float(arr.min()),
        'max': float(arr.max()),
        'mean': float(arr.mean()),
        'median': float(np.median(arr)),
        'std_dev': float(arr.std()),
    }


def histogram(values: Sequence[Any], bin_count: int = 10) -> List[HistogramBin]:
    """
    Equal-width histogram over [min, max].

    A value equal to max lands in the last bin, so a constant sequence puts
    everything there.
    """
    numbers = finite_numbers(values)
    if not numbers or bin_count < 1:
        return []

    low = min(numbers)
    high = max(numbers)
    width = (high - low) / bin_count

    counts = [0] * bin_count
    for value in numbers:
        if value == high:
            index = bin_count - 1
        else:
            index = min(int(math.floor((value - low) / width)), bin_count - 1)
        counts[index] += 1

    total = len(numbers)
    return [
        HistogramBin(
            bin=i,
            range_start=low + i * width,
            range_end=low + (i + 1) * width,
            count=counts[i],
            percentage=counts[i] / total * 100,
        )
        for i in range(bin_count)
    ]


def outliers(values: Sequence[Any]) -> Optional[OutlierReport]:
    """
    Detect outliers using the IQR method.

    Quartiles use linear interpolation between closest ranks. Values strictly
    outside [Q1 - 1.5*IQR, Q3 + 1.5*IQR] are reported in input order.
    """
    numbers = finite_numbers(values)
    if not numbers:
        return None

    q1, q3 = np.quantile(np.asarray(numbers, dtype=float), [0.25, 0.75])
    iqr = q3 - q1
    lower_bound = float(q1 - 1.5 * iqr)
    upper_bound = float(q3 + 1.5 * iqr)

    return OutlierReport(
        values=[v for v in numbers if v < lower_bound or v > upper_bound],
        lower_bound=lower_bound,
        upper_bound=upper_bound,
    )


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation coefficient.

    Returns 0 for sequences of different length, fewer than five pairs, or
    zero variance on either side.
    """
    if len(x) != len(y) or len(x) < MIN_CORRELATION_SAMPLES:
        return 0.0

    xs = pd.Series(x, dtype=float)
    ys = pd.Series(y, dtype=float)
    if xs.std(ddof=0) == 0 or ys.std(ddof=0) == 0:
        return 0.0

    correlation = xs.corr(ys)
    if pd.isna(correlation):
        return 0.0

    return max(-1.0, min(1.0, float(correlation)))


def value_frequencies(values: Sequence[Any], limit: int = 5) -> List[ValueCount]:
    """Most common non-null values with counts; ties keep first-seen order."""
    counts: Dict[Any, int] = {}
    originals: Dict[Any, Any] = {}
    for value in values:
        if value is None:
            continue
        key = distinct_key(value)
        if key not in counts:
            counts[key] = 0
            originals[key] = value
        counts[key] += 1

    total = sum(counts.values())
    if not total:
        return []

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        ValueCount(value=originals[key], count=count, percentage=count / total * 100)
        for key, count in ranked[:limit]
    ]


def distinct_key(value: Any) -> tuple:
    """Hashable key that keeps True, 1 and '1' apart but treats 1 and 1.0 as equal."""
    if isinstance(value, bool):
        return ('bool', value)
    if isinstance(value, (int, float)):
        return ('number', float(value))
    return (type(value).__name__, value)


def describe_numeric(values: Sequence[Any], bin_count: int = 10) -> Optional[NumericStats]:
    summary = numeric_stats(values)
    if summary is None:
        return None

    report = outliers(values)
    return NumericStats(
        histogram=histogram(values, bin_count),
        outliers=report,
        **summary,
    )
