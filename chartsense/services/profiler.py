import logging
from typing import Optional, List, Tuple, Sequence
from chartsense.core.config import Settings, get_settings
from chartsense.core.schemas import ColumnProfile, DatasetProfile, Table, ScalarValue
from chartsense.core.performance import track_performance
from chartsense.services.dates import is_date_literal, is_month_name
from chartsense.services.statistics import (
    is_number,
    distinct_key,
    describe_numeric,
    value_frequencies,
)

logger = logging.getLogger(__name__)

# Classification thresholds, checked in priority order
NUMERIC_RATIO_THRESHOLD = 0.90
DATE_RATIO_THRESHOLD = 0.80
IDENTIFIER_RATIO_THRESHOLD = 0.90
MONTH_RATIO_THRESHOLD = 0.50

# Categorical confidence
LOW_CARDINALITY_LIMIT = 15
LOW_CARDINALITY_CONFIDENCE = 0.9
CARDINALITY_PENALTY_SCALE = 50
MIN_CATEGORICAL_CONFIDENCE = 0.6

MOST_COMMON_LIMIT = 5


def non_null(values: Sequence[ScalarValue]) -> List[ScalarValue]:
    return [v for v in values if v is not None]


def distinct_count(values: Sequence[ScalarValue]) -> int:
    return len({distinct_key(v) for v in values})


def categorical_confidence(distinct: int) -> float:
    """
    Confidence for a categorical column.

    Flat 0.9 up to 15 distinct values, then a linear penalty floored at 0.6.
    """
    if distinct <= LOW_CARDINALITY_LIMIT:
        return LOW_CARDINALITY_CONFIDENCE
    return max(MIN_CATEGORICAL_CONFIDENCE, 1 - distinct / CARDINALITY_PENALTY_SCALE)


def detect_month_column(sample: Sequence[ScalarValue]) -> bool:
    """True when at least half of the sampled values are month names."""
    if not sample:
        return False
    months = sum(1 for v in sample if is_month_name(v))
    return months / len(sample) >= MONTH_RATIO_THRESHOLD


def classify_column(
    values: Sequence[ScalarValue],
    row_count: int,
    sample_size: int = 100,
) -> Tuple[str, float, bool]:
    """
    Assign a semantic type to one column.

    Checks run in strict priority order on the first ``sample_size`` non-null
    values: numeric ratio, date ratio, unique ratio, then categorical.

    Returns (detected_type, confidence, is_month_column).
    """
    sample = non_null(values)[:sample_size]
    if not sample:
        return 'unknown', 0.0, False

    total = len(sample)

    numeric_ratio = sum(1 for v in sample if is_number(v)) / total
    if numeric_ratio > NUMERIC_RATIO_THRESHOLD:
        return 'numerical', numeric_ratio, False

    date_ratio = sum(1 for v in sample if is_date_literal(v)) / total
    if date_ratio > DATE_RATIO_THRESHOLD:
        return 'datetime', date_ratio, False

    distinct = distinct_count(sample)
    unique_ratio = distinct / row_count if row_count else 0.0
    if unique_ratio > IDENTIFIER_RATIO_THRESHOLD:
        return 'identifier', min(unique_ratio, 1.0), False

    return 'categorical', categorical_confidence(distinct), detect_month_column(sample)


def sample_distinct(values: Sequence[ScalarValue], limit: int) -> List[ScalarValue]:
    """Up to ``limit`` distinct non-null values in first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value is None:
            continue
        key = distinct_key(value)
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
        if len(result) >= limit:
            break
    return result


def profile_column(
    name: str,
    values: Sequence[ScalarValue],
    row_count: int,
    settings: Optional[Settings] = None,
) -> ColumnProfile:
    settings = settings or get_settings()

    detected_type, confidence, is_month = classify_column(
        values, row_count, settings.classification_sample_size
    )

    present = non_null(values)
    unique_count = distinct_count(present)

    numeric_stats = None
    most_common = []
    if detected_type == 'numerical':
        numeric_stats = describe_numeric(present, settings.histogram_bins)
    elif detected_type == 'categorical':
        most_common = value_frequencies(present, MOST_COMMON_LIMIT)

    logger.debug(
        f"Column {name!r} classified as {detected_type} "
        f"(confidence {confidence:.2f}, {unique_count} distinct{', month names' if is_month else ''})"
    )

    return ColumnProfile(
        name=name,
        detected_type=detected_type,
        confidence=confidence,
        null_count=len(values) - len(present),
        unique_count=unique_count,
        unique_ratio=unique_count / row_count if row_count else 0.0,
        sample_values=sample_distinct(present, settings.sample_values_limit),
        is_month_column=is_month,
        numeric_stats=numeric_stats,
        most_common=most_common,
    )


@track_performance("profile_dataset")
def profile_dataset(table: Table, settings: Optional[Settings] = None) -> DatasetProfile:
    """
    Profile every column of a table.

    Columns with no values at all come back as 'unknown' with confidence 0;
    they are kept in the profile but ignored by everything downstream.
    """
    settings = settings or get_settings()

    columns = [
        profile_column(name, table.column_values(name), table.row_count, settings)
        for name in table.columns
    ]

    unknown = [c.name for c in columns if c.detected_type == 'unknown']
    if unknown:
        logger.info(f"Columns with no values, excluded from analysis: {unknown}")

    return DatasetProfile(
        row_count=table.row_count,
        col_count=len(table.columns),
        columns=columns,
    )
