"""
Chart recommendation service.

This module turns candidate column pairs and trios into scored chart
recommendations using deterministic rules, then ranks them.
"""
import logging
from typing import List, Optional, Dict
from chartsense.core.config import Settings, get_settings
from chartsense.core.schemas import ColumnPair, ColumnTrio, DatasetProfile, Recommendation

logger = logging.getLogger(__name__)

BACKFILL_CHART_TYPES = ('bar', 'line', 'scatter', 'pie')

# (max distinct values, confidence) buckets
BAR_BUCKETS = ((15, 0.9), (20, 0.8), (30, 0.7))
PIE_BUCKETS = ((7, 0.85), (10, 0.65))

TIME_SERIES_LINE_CONFIDENCE = 0.98
PLAIN_LINE_CONFIDENCE = 0.85
GROUPED_LINE_CONFIDENCE = 0.85
SCATTER_BASE_CONFIDENCE = 0.5
SCATTER_CORRELATION_WEIGHT = 0.4
FALLBACK_CONFIDENCE = 0.7


def bucket_confidence(distinct: int, buckets) -> Optional[float]:
    for limit, confidence in buckets:
        if distinct <= limit:
            return confidence
    return None


def score_pair(pair: ColumnPair, profile: DatasetProfile) -> Optional[Recommendation]:
    """
    Score one candidate pair.

    Returns:
        A Recommendation, or None if the pair is not chartable
        (e.g. a bar chart with more than 30 categories)
    """
    first, second = pair.columns
    kind = tuple(pair.types)

    # CATEGORY + VALUE = BAR CHART
    if kind == ('categorical', 'numerical'):
        category = profile.get(first)
        confidence = bucket_confidence(category.unique_count, BAR_BUCKETS)
        if confidence is None:
            logger.debug(f"Skipping bar for {first!r}: {category.unique_count} categories")
            return None
        return Recommendation(
            chart_type='bar',
            columns=[first, second],
            confidence=confidence,
            reason=f"Compare {second} across the {category.unique_count} {first} categories",
        )

    # TIME + VALUE = LINE CHART
    if kind == ('datetime', 'numerical'):
        if pair.is_time_series:
            return Recommendation(
                chart_type='line',
                columns=[first, second],
                confidence=TIME_SERIES_LINE_CONFIDENCE,
                reason=f"Show the trend of {second} over {first}",
            )
        return Recommendation(
            chart_type='line',
            columns=[first, second],
            confidence=PLAIN_LINE_CONFIDENCE,
            reason=f"Show how {second} changes with {first}",
        )

    # NUMERIC + NUMERIC = SCATTER
    if kind == ('numerical', 'numerical'):
        correlation = pair.correlation or 0.0
        return Recommendation(
            chart_type='scatter',
            columns=[first, second],
            confidence=SCATTER_BASE_CONFIDENCE + SCATTER_CORRELATION_WEIGHT * abs(correlation),
            reason=f"Explore the relationship between {first} and {second} (correlation {correlation:.2f})",
        )

    return None


def score_trio(trio: ColumnTrio) -> Recommendation:
    time_col, group, value = trio.columns
    return Recommendation(
        chart_type='line',
        columns=[time_col, group, value],
        confidence=GROUPED_LINE_CONFIDENCE,
        reason=f"Track {value} over {time_col}, one line per {group}",
    )


def pie_candidates(profile: DatasetProfile) -> List[Recommendation]:
    """Single categorical columns with few enough values to read as slices."""
    candidates = []
    for column in profile.columns:
        if column.detected_type != 'categorical':
            continue
        confidence = bucket_confidence(column.unique_count, PIE_BUCKETS)
        if confidence is None:
            continue
        candidates.append(Recommendation(
            chart_type='pie',
            columns=[column.name],
            confidence=confidence,
            reason=f"Show the share of each of the {column.unique_count} {column.name} values",
        ))
    return candidates


def generate_candidates(
    profile: DatasetProfile,
    pairs: List[ColumnPair],
    trios: List[ColumnTrio],
) -> List[Recommendation]:
    """All scored candidates in generation order: pairs, trios, then pies."""
    candidates = []
    for pair in pairs:
        recommendation = score_pair(pair, profile)
        if recommendation is not None:
            candidates.append(recommendation)
    candidates.extend(score_trio(trio) for trio in trios)
    candidates.extend(pie_candidates(profile))
    return candidates


def rank_recommendations(
    candidates: List[Recommendation],
    max_total: int = 10,
    max_per_type: int = 3,
) -> List[Recommendation]:
    """
    Rank candidates.

    1. Stable sort by confidence, highest first (ties keep generation order).
    2. Keep at most ``max_per_type`` per chart type, in sorted order.
    3. Backfill any of bar/line/scatter/pie left with nothing using its best
       candidate, ignoring the cap.
    4. Truncate to ``max_total``.
    """
    ranked = sorted(candidates, key=lambda c: c.confidence, reverse=True)

    selected = []
    per_type: Dict[str, int] = {}
    for candidate in ranked:
        count = per_type.get(candidate.chart_type, 0)
        if count < max_per_type:
            selected.append(candidate)
            per_type[candidate.chart_type] = count + 1

    for chart_type in BACKFILL_CHART_TYPES:
        if per_type.get(chart_type):
            continue
        best = next((c for c in ranked if c.chart_type == chart_type), None)
        if best is not None:
            logger.debug(f"Backfilling {chart_type} with {best.columns}")
            selected.append(best)
            per_type[chart_type] = 1

    return selected[:max_total]


def fallback_recommendation(profile: DatasetProfile) -> Recommendation:
    """Bar chart over the first two available columns."""
    available = [c.name for c in profile.columns if c.detected_type != 'unknown']
    if not available:
        available = [c.name for c in profile.columns]
    return Recommendation(
        chart_type='bar',
        columns=available[:2],
        confidence=FALLBACK_CONFIDENCE,
        reason="Bar chart recommended as a general visualization for your data.",
    )


def recommend_charts(
    profile: DatasetProfile,
    pairs: List[ColumnPair],
    trios: List[ColumnTrio],
    settings: Optional[Settings] = None,
) -> List[Recommendation]:
    """
    Ranked chart recommendations for a profiled dataset.

    Never empty: with no chartable candidates a single fallback bar chart is
    returned.
    """
    settings = settings or get_settings()

    candidates = generate_candidates(profile, pairs, trios)
    if not candidates:
        logger.info("No chart candidates found, using fallback bar chart")
        return [fallback_recommendation(profile)]

    result = rank_recommendations(
        candidates,
        max_total=settings.max_recommendations,
        max_per_type=settings.max_per_chart_type,
    )
    logger.info(f"Selected {len(result)} recommendations from {len(candidates)} candidates")
    return result
