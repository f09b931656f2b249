"""
Unit tests for value tagging and the table model.
"""
import pytest
import numpy as np
import pandas as pd
from datetime import date, datetime
from pydantic import ValidationError
from chartsense.core.errors import ErrorCodes, TableParseError
from chartsense.core.schemas import CorrelatedPair, Recommendation, Table, to_scalar


@pytest.mark.unit
@pytest.mark.parametrize("raw, expected", [
    (None, None),
    (float('nan'), None),
    ('', None),
    ('   ', None),
    ('42', 42),
    ('-7', -7),
    ('3.5', 3.5),
    ('1e3', 1000.0),
    (' 12 ', 12),
    ('North', 'North'),
    ('2024-01-01', '2024-01-01'),
    ('nan', 'nan'),
    (True, True),
    (np.int64(5), 5),
    (np.float64(2.5), 2.5),
    (np.bool_(False), False),
    (date(2024, 3, 1), '2024-03-01'),
    (datetime(2024, 3, 1, 12, 30), '2024-03-01T12:30:00'),
])
def test_to_scalar(raw, expected):
    """Test tagging raw cell values."""
    result = to_scalar(raw)

    assert result == expected
    assert type(result) is type(expected)


@pytest.mark.unit
def test_to_scalar_nat_and_timestamp():
    """Test pandas timestamps and NaT."""
    assert to_scalar(pd.NaT) is None
    assert to_scalar(pd.Timestamp('2024-05-06')) == '2024-05-06T00:00:00'


@pytest.mark.unit
def test_to_scalar_infinite_text_stays_text():
    """Test that infinity spellings stay text."""
    assert to_scalar('inf') == 'inf'
    assert to_scalar('-Infinity') == '-Infinity'


@pytest.mark.unit
def test_table_from_records_fills_missing_keys():
    """Test building a table from records with missing keys."""
    table = Table.from_records([{'a': 1, 'b': 'x'}, {'a': '2'}])

    assert table.columns == ['a', 'b']
    assert table.row_count == 2
    assert table.column_values('a') == [1, 2]
    assert table.column_values('b') == ['x', None]


@pytest.mark.unit
def test_table_from_records_rejects_non_mapping_rows():
    """Test that non-mapping rows raise INVALID_TABLE."""
    with pytest.raises(TableParseError) as exc_info:
        Table.from_records([{'a': 1}, ['not', 'a', 'row']])

    assert exc_info.value.code == ErrorCodes.INVALID_TABLE


@pytest.mark.unit
def test_table_from_dataframe():
    """Test building a table from a DataFrame."""
    df = pd.DataFrame({'n': [1, None, 3], 'label': ['a', None, 'c'], 1: [True, False, True]})

    table = Table.from_dataframe(df)

    assert table.columns == ['n', 'label', '1']
    assert table.column_values('n') == [1.0, None, 3.0]
    assert table.column_values('label') == ['a', None, 'c']
    assert table.column_values('1') == [True, False, True]


@pytest.mark.unit
def test_table_is_immutable():
    """Test that tables are frozen."""
    table = Table.from_records([{'a': 1}])

    with pytest.raises(ValidationError):
        table.columns = ['b']


@pytest.mark.unit
def test_computed_fields():
    """Test confidence_percent and correlation strength."""
    recommendation = Recommendation(chart_type='bar', columns=['a', 'b'], confidence=0.856, reason='r')
    pair = CorrelatedPair(column_a='a', column_b='b', correlation=-0.4)

    assert recommendation.confidence_percent == 86
    assert recommendation.model_dump()['confidence_percent'] == 86
    assert pair.strength == 0.4


@pytest.mark.unit
def test_recommendation_rejects_unknown_chart_type():
    """Test that unknown chart types are rejected."""
    with pytest.raises(ValidationError):
        Recommendation(chart_type='radar', columns=['a'], confidence=0.5, reason='r')
