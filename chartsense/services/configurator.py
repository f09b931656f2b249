"""
Chart configuration resolver.

This module turns a recommendation into a renderer-ready ChartConfig:
axis and series roles, labels, orientation and a colour palette.
"""
import re
import logging
from typing import List, Optional
from chartsense.core.config import Settings, get_settings
from chartsense.core.schemas import ChartConfig, ColumnProfile, DatasetProfile, FieldRef, Recommendation

logger = logging.getLogger(__name__)

# Qualitative palette, cycled when more colours are needed
QUALITATIVE_PALETTE = [
    '#4e79a7',  # Blue
    '#f28e2c',  # Orange
    '#e15759',  # Red
    '#76b7b2',  # Teal
    '#59a14f',  # Green
    '#edc949',  # Yellow
    '#af7aa1',  # Purple
    '#ff9da7',  # Pink
    '#9c755f',  # Brown
    '#bab0ab',  # Gray
]

DEFAULT_PALETTE_SIZE = 5
HORIZONTAL_BAR_THRESHOLD = 10


def generate_color_palette(count: int) -> List[str]:
    """First ``count`` colours of the qualitative palette, wrapping around."""
    return [QUALITATIVE_PALETTE[i % len(QUALITATIVE_PALETTE)] for i in range(max(count, 0))]


def format_label(column_name: str) -> str:
    """
    Turn a column name into an axis label.

    "total_revenue" -> "Total revenue", "unitPrice" -> "Unit Price"
    """
    if not column_name:
        return column_name
    label = column_name.replace('_', ' ')
    label = re.sub(r'(?<=[a-z0-9])([A-Z])', r' \1', label)
    label = ' '.join(label.split())
    return label[:1].upper() + label[1:]


def _field(name: Optional[str]) -> Optional[FieldRef]:
    if name is None:
        return None
    return FieldRef(field=name, label=format_label(name))


def _first(columns: List[ColumnProfile], kinds, exclude=()) -> Optional[ColumnProfile]:
    for column in columns:
        if column.name in exclude:
            continue
        if column.detected_type in kinds:
            return column
    return None


def _first_time(columns: List[ColumnProfile]) -> Optional[ColumnProfile]:
    for column in columns:
        if column.detected_type == 'datetime' or column.is_month_column:
            return column
    return None


def _palette_for(column: Optional[ColumnProfile]) -> List[str]:
    if column is None or column.unique_count < 1:
        return generate_color_palette(DEFAULT_PALETTE_SIZE)
    return generate_color_palette(column.unique_count)


def _fallback_names(names: List[str]):
    x = names[0] if names else None
    y = names[1] if len(names) > 1 else x
    return x, y


def configure_chart(
    recommendation: Recommendation,
    profile: DatasetProfile,
    settings: Optional[Settings] = None,
) -> ChartConfig:
    """
    Resolve role assignments and cosmetic defaults for one recommendation.

    Args:
        recommendation: The chosen chart and its columns
        profile: Dataset profile providing each column's detected type

    Returns:
        A fresh ChartConfig
    """
    settings = settings or get_settings()

    names = list(recommendation.columns)
    columns = [profile.get(name) for name in names]
    columns = [c for c in columns if c is not None]
    fallback_x, fallback_y = _fallback_names(names)

    chart_type = recommendation.chart_type
    x_axis = y_axis = group_by = color_by = segments = values = None
    orientation = None
    palette_column = None

    if chart_type == 'bar':
        category = _first(columns, ('categorical',))
        value = _first(columns, ('numerical',))
        x_name = category.name if category else fallback_x
        y_name = value.name if value else fallback_y
        x_axis, y_axis = _field(x_name), _field(y_name)
        x_profile = profile.get(x_name) if x_name else None
        if x_profile is not None and x_profile.unique_count > HORIZONTAL_BAR_THRESHOLD:
            orientation = 'horizontal'
        else:
            orientation = 'vertical'
        title = f"{format_label(y_name)} by {format_label(x_name)}" if x_name else "Data Visualization"

    elif chart_type == 'line':
        x_col = _first_time(columns) or _first(columns, ('categorical',))
        x_name = x_col.name if x_col else fallback_x
        value = _first(columns, ('numerical',), exclude=(x_name,))
        y_name = value.name if value else fallback_y
        x_axis, y_axis = _field(x_name), _field(y_name)
        if len(names) == 3:
            group = _first(columns, ('categorical',), exclude=(x_name, y_name))
            if group is not None:
                group_by = _field(group.name)
                palette_column = group
        title = f"{format_label(y_name)} over {format_label(x_name)}"
        if group_by is not None:
            title = f"{title} by {group_by.label}"

    elif chart_type == 'scatter':
        numerical = [c for c in columns if c.detected_type == 'numerical']
        x_name = numerical[0].name if numerical else fallback_x
        y_name = numerical[1].name if len(numerical) > 1 else fallback_y
        x_axis, y_axis = _field(x_name), _field(y_name)
        colour = _first(columns, ('categorical',), exclude=(x_name, y_name))
        if colour is not None:
            color_by = _field(colour.name)
            palette_column = colour
        title = f"{format_label(x_name)} vs {format_label(y_name)}"

    else:  # pie
        category = _first(columns, ('categorical',))
        segment_name = category.name if category else fallback_x
        segments = _field(segment_name)
        value = _first(columns, ('numerical',), exclude=(segment_name,))
        if value is not None:
            values = _field(value.name)
        else:
            values = FieldRef(field='count', label='Count', aggregate='count')
        palette_column = profile.get(segment_name) if segment_name else None
        title = f"Distribution of {format_label(segment_name)}" if segment_name else "Data Visualization"

    logger.debug(f"Configured {chart_type} chart for columns {names}")

    return ChartConfig(
        chart_type=chart_type,
        title=title,
        subtitle=recommendation.reason,
        dimensions=settings.dimensions,
        colors=_palette_for(palette_column),
        x_axis=x_axis,
        y_axis=y_axis,
        group_by=group_by,
        color_by=color_by,
        segments=segments,
        values=values,
        orientation=orientation,
    )
