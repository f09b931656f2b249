"""
Unit tests for chart scoring and ranking.
"""
import pytest
from chartsense.core.config import Settings
from chartsense.core.schemas import (
    ColumnPair,
    ColumnProfile,
    ColumnTrio,
    DatasetProfile,
    Recommendation,
)
from chartsense.services.recommender import (
    bucket_confidence,
    BAR_BUCKETS,
    PIE_BUCKETS,
    fallback_recommendation,
    generate_candidates,
    pie_candidates,
    rank_recommendations,
    recommend_charts,
    score_pair,
    score_trio,
)


def column(name, detected_type, unique_count=5, is_month=False):
    return ColumnProfile(
        name=name,
        detected_type=detected_type,
        confidence=0.9,
        null_count=0,
        unique_count=unique_count,
        unique_ratio=unique_count / 100,
        sample_values=[],
        is_month_column=is_month,
    )


def dataset(*columns):
    return DatasetProfile(row_count=100, col_count=len(columns), columns=list(columns))


def rec(chart_type, confidence, name='x'):
    return Recommendation(chart_type=chart_type, columns=[name], confidence=confidence, reason='test')


@pytest.mark.unit
@pytest.mark.parametrize("distinct, expected", [
    (1, 0.9), (15, 0.9), (16, 0.8), (20, 0.8), (21, 0.7), (30, 0.7), (31, None),
])
def test_bar_buckets(distinct, expected):
    """Test bar confidence by category count."""
    assert bucket_confidence(distinct, BAR_BUCKETS) == expected


@pytest.mark.unit
@pytest.mark.parametrize("distinct, expected", [
    (2, 0.85), (7, 0.85), (8, 0.65), (10, 0.65), (11, None),
])
def test_pie_buckets(distinct, expected):
    """Test pie confidence by category count."""
    assert bucket_confidence(distinct, PIE_BUCKETS) == expected


@pytest.mark.unit
def test_score_bar_pair():
    """Test scoring a category and value pair."""
    profile = dataset(column('region', 'categorical', 4), column('sales', 'numerical', 80))
    pair = ColumnPair(columns=['region', 'sales'], types=['categorical', 'numerical'])

    result = score_pair(pair, profile)

    assert result.chart_type == 'bar'
    assert result.columns == ['region', 'sales']
    assert result.confidence == 0.9
    assert result.confidence_percent == 90


@pytest.mark.unit
def test_score_bar_pair_too_many_categories():
    """Test that more than 30 categories give no bar."""
    profile = dataset(column('city', 'categorical', 31), column('sales', 'numerical', 80))
    pair = ColumnPair(columns=['city', 'sales'], types=['categorical', 'numerical'])

    assert score_pair(pair, profile) is None


@pytest.mark.unit
def test_score_line_pairs():
    """Test line scores with and without a time series."""
    profile = dataset(column('date', 'datetime', 100), column('sales', 'numerical', 80))
    series = ColumnPair(columns=['date', 'sales'], types=['datetime', 'numerical'], is_time_series=True)
    plain = ColumnPair(columns=['date', 'sales'], types=['datetime', 'numerical'])

    assert score_pair(series, profile).confidence == 0.98
    assert score_pair(plain, profile).confidence == 0.85
    assert score_pair(series, profile).chart_type == 'line'


@pytest.mark.unit
@pytest.mark.parametrize("correlation, expected", [
    (0.0, 0.5), (0.95, 0.88), (-0.5, 0.7), (1.0, 0.9), (None, 0.5),
])
def test_score_scatter_pair(correlation, expected):
    """Test scatter scores from the correlation."""
    profile = dataset(column('x', 'numerical', 50), column('y', 'numerical', 50))
    pair = ColumnPair(columns=['x', 'y'], types=['numerical', 'numerical'], correlation=correlation)

    result = score_pair(pair, profile)

    assert result.chart_type == 'scatter'
    assert result.confidence == pytest.approx(expected)


@pytest.mark.unit
def test_score_trio():
    """Test scoring a grouped line trio."""
    trio = ColumnTrio(
        columns=['date', 'region', 'sales'],
        types=['datetime', 'categorical', 'numerical'],
        is_time_series=True,
    )

    result = score_trio(trio)

    assert result.chart_type == 'line'
    assert result.columns == ['date', 'region', 'sales']
    assert result.confidence == 0.85


@pytest.mark.unit
def test_pie_candidates_only_low_cardinality_categoricals():
    """Test pie candidates for categoricals with ten or fewer values."""
    profile = dataset(
        column('size', 'categorical', 3),
        column('store', 'categorical', 9),
        column('city', 'categorical', 12),
        column('sales', 'numerical', 3),
    )

    pies = pie_candidates(profile)

    assert [(p.columns, p.confidence) for p in pies] == [
        (['size'], 0.85),
        (['store'], 0.65),
    ]


@pytest.mark.unit
def test_generate_candidates_order():
    """Test candidates come in pair, trio, pie order."""
    profile = dataset(
        column('date', 'datetime', 100),
        column('region', 'categorical', 3),
        column('sales', 'numerical', 80),
    )
    pairs = [
        ColumnPair(columns=['region', 'sales'], types=['categorical', 'numerical']),
        ColumnPair(columns=['date', 'sales'], types=['datetime', 'numerical'], is_time_series=True),
    ]
    trios = [ColumnTrio(
        columns=['date', 'region', 'sales'],
        types=['datetime', 'categorical', 'numerical'],
        is_time_series=True,
    )]

    candidates = generate_candidates(profile, pairs, trios)

    assert [(c.chart_type, len(c.columns)) for c in candidates] == [
        ('bar', 2), ('line', 2), ('line', 3), ('pie', 1),
    ]


@pytest.mark.unit
def test_rank_sorts_by_confidence_stably():
    """Test that ties keep their generation order."""
    candidates = [rec('bar', 0.7, 'a'), rec('line', 0.98, 'b'), rec('pie', 0.7, 'c'), rec('scatter', 0.9, 'd')]

    ranked = rank_recommendations(candidates)

    assert [r.columns[0] for r in ranked] == ['b', 'd', 'a', 'c']


@pytest.mark.unit
def test_rank_caps_each_chart_type():
    """Test the per-type cap."""
    candidates = [rec('bar', 0.9 - i * 0.01, f"bar{i}") for i in range(5)]
    candidates += [rec('line', 0.5, 'line0')]

    ranked = rank_recommendations(candidates, max_per_type=3)

    assert [r.columns[0] for r in ranked] == ['bar0', 'bar1', 'bar2', 'line0']


@pytest.mark.unit
def test_rank_truncates_to_max_total():
    """Test truncation to the maximum count."""
    candidates = []
    for chart_type in ('bar', 'line', 'scatter', 'pie'):
        candidates += [rec(chart_type, 0.5 + i * 0.1, f"{chart_type}{i}") for i in range(3)]

    ranked = rank_recommendations(candidates, max_total=10)

    assert len(ranked) == 10
    confidences = [r.confidence for r in ranked]
    assert confidences == sorted(confidences, reverse=True)


@pytest.mark.unit
def test_rank_backfills_missing_types_after_capped_pass():
    """Test backfill of chart types left out by the cap."""
    candidates = [rec('bar', 0.9, 'bar0'), rec('pie', 0.6, 'pie0'), rec('pie', 0.4, 'pie1')]

    ranked = rank_recommendations(candidates, max_per_type=0)

    # Nothing survives the cap, so each type comes back through its best candidate
    assert [r.columns[0] for r in ranked] == ['bar0', 'pie0']


@pytest.mark.unit
def test_rank_never_duplicates_or_exceeds_cap_without_backfill():
    """Test no duplicates and no extra entries beyond the cap."""
    candidates = [rec(t, 0.1 * (i + 1), f"{t}{i}") for i in range(6) for t in ('bar', 'line')]

    ranked = rank_recommendations(candidates, max_total=10, max_per_type=3)

    assert len({r.columns[0] for r in ranked}) == len(ranked)
    assert sum(1 for r in ranked if r.chart_type == 'bar') == 3
    assert sum(1 for r in ranked if r.chart_type == 'line') == 3


@pytest.mark.unit
def test_rank_empty():
    """Test ranking no candidates."""
    assert rank_recommendations([]) == []


@pytest.mark.unit
def test_fallback_uses_first_two_available_columns():
    """Test the fallback bar skips unknown columns."""
    profile = dataset(
        column('notes', 'unknown', 0),
        column('order_id', 'identifier', 100),
        column('code', 'identifier', 100),
        column('extra', 'identifier', 100),
    )

    result = fallback_recommendation(profile)

    assert result.chart_type == 'bar'
    assert result.columns == ['order_id', 'code']
    assert result.confidence == 0.7


@pytest.mark.unit
def test_recommend_charts_falls_back_when_nothing_scores():
    """Test recommend_charts returns the fallback when nothing scores."""
    profile = dataset(column('order_id', 'identifier', 100), column('sku', 'identifier', 100))

    result = recommend_charts(profile, [], [], Settings())

    assert len(result) == 1
    assert result[0].chart_type == 'bar'
    assert result[0].columns == ['order_id', 'sku']


@pytest.mark.unit
def test_recommend_charts_respects_settings():
    """Test ranking limits taken from settings."""
    profile = dataset(
        column('size', 'categorical', 3),
        column('store', 'categorical', 4),
        column('sales', 'numerical', 80),
    )
    pairs = [
        ColumnPair(columns=['size', 'sales'], types=['categorical', 'numerical']),
        ColumnPair(columns=['store', 'sales'], types=['categorical', 'numerical']),
    ]
    settings = Settings(max_recommendations=2, max_per_chart_type=1)

    result = recommend_charts(profile, pairs, [], settings)

    assert [(r.chart_type, r.columns) for r in result] == [
        ('bar', ['size', 'sales']),
        ('pie', ['size']),
    ]
