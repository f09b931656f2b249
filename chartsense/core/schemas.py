import math
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, computed_field
from typing import List, Optional, Any, Dict, Union, Literal

import numpy as np
import pandas as pd

from chartsense.core.errors import ErrorCodes, TableParseError

ScalarValue = Optional[Union[bool, int, float, str]]

ColumnType = Literal['numerical', 'categorical', 'datetime', 'identifier', 'unknown']
ChartType = Literal['bar', 'line', 'pie', 'scatter']


def to_scalar(value: Any) -> ScalarValue:
    """
    Tag a raw cell value as bool, int, float, str or None.

    Numeric-looking text becomes a number here so downstream code never
    re-parses strings. Date strings stay text.
    """
    if value is None:
        return None
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating, Decimal)):
        value = float(value)
        return None if math.isnan(value) else value
    if isinstance(value, (pd.Timestamp, datetime, date)):
        if pd.isna(value):
            return None
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return text
        if not math.isfinite(number):
            return text
        if number.is_integer() and text.lstrip('+-').isdigit():
            return int(text)
        return number
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return str(value)


class Table(BaseModel):
    model_config = ConfigDict(frozen=True)

    columns: List[str]
    rows: List[Dict[str, ScalarValue]]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_values(self, name: str) -> List[ScalarValue]:
        """Values of one column in row order; missing keys read as None."""
        return [row.get(name) for row in self.rows]

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]], columns: Optional[List[str]] = None) -> "Table":
        """
        Build a table from a list of mappings, tagging every cell.

        Column order is taken from ``columns`` when given, otherwise from the
        first non-empty record.
        """
        if columns is None:
            columns = []
            for record in records:
                if isinstance(record, dict) and record:
                    columns = [str(key) for key in record.keys()]
                    break
        rows = []
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise TableParseError(
                    ErrorCodes.INVALID_TABLE,
                    f"Row {index} is a {type(record).__name__}, expected a mapping of column to value."
                )
            rows.append({col: to_scalar(record.get(col)) for col in columns})
        return cls(columns=list(columns), rows=rows)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "Table":
        columns = [str(col) for col in df.columns]
        df = df.copy()
        df.columns = columns
        return cls.from_records(df.to_dict(orient='records'), columns)


class HistogramBin(BaseModel):
    model_config = ConfigDict(frozen=True)

    bin: int
    range_start: float
    range_end: float
    count: int
    percentage: float


class OutlierReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    values: List[float]
    lower_bound: float
    upper_bound: float


class NumericStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    mean: float
    median: float
    std_dev: float
    histogram: List[HistogramBin]
    outliers: OutlierReport


class ValueCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: ScalarValue
    count: int
    percentage: float


class ColumnProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    detected_type: ColumnType
    confidence: float
    null_count: int
    unique_count: int
    unique_ratio: float
    sample_values: List[ScalarValue]
    is_month_column: bool = False
    numeric_stats: Optional[NumericStats] = None
    most_common: List[ValueCount] = []


class DatasetProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_count: int
    col_count: int
    columns: List[ColumnProfile]

    def get(self, name: str) -> Optional[ColumnProfile]:
        for column in self.columns:
            if column.name == name:
                return column
        return None


class TimeSeriesFlag(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    is_monotonic: bool
    has_regular_intervals: bool
    is_month_column: bool = False


class CorrelatedPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    column_a: str
    column_b: str
    correlation: float

    @computed_field
    @property
    def strength(self) -> float:
        return abs(self.correlation)


class ColumnPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    columns: List[str]
    types: List[ColumnType]
    is_time_series: bool = False
    correlation: Optional[float] = None


class ColumnTrio(BaseModel):
    model_config = ConfigDict(frozen=True)

    columns: List[str]
    types: List[ColumnType]
    is_time_series: bool = False


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    chart_type: ChartType
    columns: List[str]
    confidence: float
    reason: str

    @computed_field
    @property
    def confidence_percent(self) -> int:
        return int(round(self.confidence * 100))


class FieldRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    label: str
    aggregate: Optional[str] = None  # 'count' for row-count aggregation


class ChartConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    chart_type: ChartType
    title: str
    subtitle: str = ""
    dimensions: Dict[str, int]
    colors: List[str]
    x_axis: Optional[FieldRef] = None
    y_axis: Optional[FieldRef] = None
    group_by: Optional[FieldRef] = None
    color_by: Optional[FieldRef] = None
    segments: Optional[FieldRef] = None
    values: Optional[FieldRef] = None
    orientation: Optional[Literal['vertical', 'horizontal']] = None


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: DatasetProfile
    time_series: List[TimeSeriesFlag]
    correlations: List[CorrelatedPair]
    recommendations: List[Recommendation]
    primary_recommendation: Recommendation
    chart_config: ChartConfig
