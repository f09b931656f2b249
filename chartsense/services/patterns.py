"""
Pattern analysis over classified columns.

Detects time-series behaviour, measures pairwise correlation between
numerical columns, and builds the candidate column pairs and trios the
recommender scores.
"""
import logging
import numpy as np
from typing import Any, Dict, List, Mapping, Optional, Tuple
from chartsense.core.schemas import (
    ColumnPair,
    ColumnProfile,
    ColumnTrio,
    CorrelatedPair,
    DatasetProfile,
    Table,
    TimeSeriesFlag,
)
from chartsense.services.dates import parse_date
from chartsense.services.statistics import is_number, pearson_correlation

logger = logging.getLogger(__name__)

REGULARITY_THRESHOLD = 0.25
MIN_REGULARITY_POINTS = 3
TRIO_CATEGORY_LIMIT = 10

# Caller-supplied correlations, either {column: {other: r}} or
# {column: {"correlations": {other: r}, ...}} per-column statistics
PrecomputedCorrelations = Mapping[str, Any]


def is_time_column(profile: ColumnProfile) -> bool:
    """Datetime columns and month-name columns take part in time logic."""
    return profile.detected_type == 'datetime' or profile.is_month_column


def chartable(profile: DatasetProfile) -> List[ColumnProfile]:
    return [c for c in profile.columns if c.detected_type not in ('identifier', 'unknown')]


def detect_time_series(column: ColumnProfile, values: List) -> Optional[TimeSeriesFlag]:
    """
    Test one datetime or month column for time-series behaviour.

    Monotonicity is checked on the sorted dates, so it only fails when
    dates repeat. Intervals are regular when the coefficient of variation
    of the gaps is below 0.25. Month-name columns always qualify.

    Returns:
        TimeSeriesFlag if the column qualifies, otherwise None
    """
    if column.is_month_column:
        return TimeSeriesFlag(
            column=column.name,
            is_monotonic=True,
            has_regular_intervals=True,
            is_month_column=True,
        )

    if column.detected_type != 'datetime':
        return None

    dates = sorted(d for d in (parse_date(v) for v in values) if d is not None)
    if len(dates) < 2:
        return None

    is_monotonic = all(later > earlier for earlier, later in zip(dates, dates[1:]))

    has_regular_intervals = False
    if len(dates) >= MIN_REGULARITY_POINTS:
        gaps = np.array([(later - earlier).total_seconds() for earlier, later in zip(dates, dates[1:])])
        mean_gap = gaps.mean()
        if mean_gap > 0:
            has_regular_intervals = bool(gaps.std() / mean_gap < REGULARITY_THRESHOLD)

    if not (is_monotonic or has_regular_intervals):
        logger.debug(f"Column {column.name!r} is not a time series")
        return None

    return TimeSeriesFlag(
        column=column.name,
        is_monotonic=is_monotonic,
        has_regular_intervals=has_regular_intervals,
    )


def detect_time_series_columns(profile: DatasetProfile, table: Table) -> List[TimeSeriesFlag]:
    flags = []
    for column in chartable(profile):
        if not is_time_column(column):
            continue
        flag = detect_time_series(column, table.column_values(column.name))
        if flag is not None:
            flags.append(flag)
    return flags


def _correlations_of(precomputed: PrecomputedCorrelations, column: str) -> Dict[str, Any]:
    """
    Correlations recorded for one column.

    Accepts either a flat ``{other: r}`` mapping or per-column statistics
    carrying a ``correlations`` mapping. Anything else reads as empty.
    """
    entry = precomputed.get(column)
    if not isinstance(entry, Mapping):
        return {}
    nested = entry.get('correlations')
    if isinstance(nested, Mapping):
        return nested
    return entry


def _lookup(precomputed: Optional[PrecomputedCorrelations], a: str, b: str) -> Optional[float]:
    if not isinstance(precomputed, Mapping):
        return None
    for first, second in ((a, b), (b, a)):
        value = _correlations_of(precomputed, first).get(second)
        if is_number(value):
            return float(value)
    return None


def paired_numbers(table: Table, a: str, b: str) -> Tuple[List[float], List[float]]:
    """Rows where both cells are numbers, as two aligned lists."""
    xs, ys = [], []
    for row in table.rows:
        x, y = row.get(a), row.get(b)
        if is_number(x) and is_number(y):
            xs.append(float(x))
            ys.append(float(y))
    return xs, ys


def find_correlations(
    profile: DatasetProfile,
    table: Table,
    precomputed: Optional[PrecomputedCorrelations] = None,
) -> List[CorrelatedPair]:
    """
    Pearson correlation for every unordered pair of numerical columns,
    sorted by absolute strength (strongest first, ties in column order).
    """
    numerical = [c.name for c in chartable(profile) if c.detected_type == 'numerical']

    pairs = []
    for i, a in enumerate(numerical):
        for b in numerical[i + 1:]:
            correlation = _lookup(precomputed, a, b)
            if correlation is None:
                correlation = pearson_correlation(*paired_numbers(table, a, b))
            pairs.append(CorrelatedPair(
                column_a=a,
                column_b=b,
                correlation=max(-1.0, min(1.0, correlation)),
            ))

    pairs.sort(key=lambda p: p.strength, reverse=True)
    return pairs


def build_pairs(
    profile: DatasetProfile,
    time_series: List[TimeSeriesFlag],
    correlations: List[CorrelatedPair],
) -> List[ColumnPair]:
    """
    Candidate column pairs, in this order:
    categorical x numerical, time x numerical, numerical x numerical.
    """
    columns = chartable(profile)
    categorical = [c for c in columns if c.detected_type == 'categorical']
    numerical = [c for c in columns if c.detected_type == 'numerical']
    temporal = [c for c in columns if is_time_column(c)]
    flagged = {flag.column for flag in time_series}
    allowed = {c.name for c in numerical}

    pairs = []
    for cat in categorical:
        for num in numerical:
            pairs.append(ColumnPair(
                columns=[cat.name, num.name],
                types=['categorical', 'numerical'],
            ))

    for time_col in temporal:
        for num in numerical:
            pairs.append(ColumnPair(
                columns=[time_col.name, num.name],
                types=['datetime', 'numerical'],
                is_time_series=time_col.name in flagged,
            ))

    for pair in correlations:
        if pair.column_a in allowed and pair.column_b in allowed:
            pairs.append(ColumnPair(
                columns=[pair.column_a, pair.column_b],
                types=['numerical', 'numerical'],
                correlation=pair.correlation,
            ))

    return pairs


def build_trios(profile: DatasetProfile, time_series: List[TimeSeriesFlag]) -> List[ColumnTrio]:
    """Time x low-cardinality categorical x numerical trios for grouped lines."""
    columns = chartable(profile)
    temporal = [c for c in columns if is_time_column(c)]
    groups = [
        c for c in columns
        if c.detected_type == 'categorical' and c.unique_count <= TRIO_CATEGORY_LIMIT
    ]
    numerical = [c for c in columns if c.detected_type == 'numerical']
    flagged = {flag.column for flag in time_series}

    trios = []
    for time_col in temporal:
        for group in groups:
            if group.name == time_col.name:
                continue
            for num in numerical:
                trios.append(ColumnTrio(
                    columns=[time_col.name, group.name, num.name],
                    types=['datetime', 'categorical', 'numerical'],
                    is_time_series=time_col.name in flagged,
                ))
    return trios
