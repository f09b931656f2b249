"""
Profiling and recommendation pipeline.

rows -> profile -> patterns -> ranked recommendations -> chart config
"""
import logging
import pandas as pd
from typing import Any, Dict, List, Optional, Union
from chartsense.core.config import Settings, get_settings
from chartsense.core.errors import ErrorCodes, TableParseError
from chartsense.core.performance import track_performance
from chartsense.core.schemas import AnalysisResult, Table
from chartsense.services.configurator import configure_chart
from chartsense.services.patterns import (
    PrecomputedCorrelations,
    build_pairs,
    build_trios,
    detect_time_series_columns,
    find_correlations,
)
from chartsense.services.profiler import profile_dataset
from chartsense.services.recommender import recommend_charts

logger = logging.getLogger(__name__)

TableLike = Union[Table, pd.DataFrame, List[Dict[str, Any]]]


def as_table(data: TableLike) -> Table:
    if isinstance(data, Table):
        return data
    if isinstance(data, pd.DataFrame):
        return Table.from_dataframe(data)
    if isinstance(data, list):
        return Table.from_records(data)
    raise TableParseError(
        ErrorCodes.INVALID_TABLE,
        f"Expected a Table, DataFrame or list of records, got {type(data).__name__}."
    )


@track_performance("analyze_table")
def analyze_table(
    data: TableLike,
    precomputed: Optional[PrecomputedCorrelations] = None,
    settings: Optional[Settings] = None,
    run_id: Optional[str] = None,
) -> AnalysisResult:
    """
    Run the full pipeline over one table.

    Args:
        data: The parsed table (or a DataFrame / list of records)
        precomputed: Optional correlations to skip recomputation, either
            {column: {other: r}} or per-column stats {column: {"correlations": {...}}}
        settings: Optional settings override
        run_id: Optional identifier attached to log records

    Returns:
        AnalysisResult with profile, patterns, ranked recommendations, the
        primary recommendation and its chart configuration
    """
    settings = settings or get_settings()
    log_extra = {'run_id': run_id or 'system'}
    table = as_table(data)

    profile = profile_dataset(table, settings)
    time_series = detect_time_series_columns(profile, table)
    correlations = find_correlations(profile, table, precomputed)
    pairs = build_pairs(profile, time_series, correlations)
    trios = build_trios(profile, time_series)

    logger.info(
        f"Analyzed {profile.row_count} rows x {profile.col_count} columns: "
        f"{len(time_series)} time series, {len(correlations)} correlations, "
        f"{len(pairs)} pairs, {len(trios)} trios",
        extra=log_extra,
    )

    recommendations = recommend_charts(profile, pairs, trios, settings)
    primary = recommendations[0]
    chart_config = configure_chart(primary, profile, settings)

    logger.info(
        f"Primary recommendation: {primary.chart_type} over {primary.columns} "
        f"({primary.confidence_percent}%)",
        extra=log_extra,
    )

    return AnalysisResult(
        profile=profile,
        time_series=time_series,
        correlations=correlations,
        recommendations=recommendations,
        primary_recommendation=primary,
        chart_config=chart_config,
    )
