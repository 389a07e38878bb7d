"""
Chart Data Adapter

Shapes dataset records into the arrays each chart type needs.

Every adapter returns exactly one value per record, in record order.
Cells that fail numeric coercion become ``None`` instead of NaN, so the
renderer sees an explicit gap and labels stay aligned with values. With
``strict=True`` the first such cell raises CoercionError instead.
"""

import logging
import math
from dataclasses import replace
from numbers import Number
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from charting.columns import validate_columns
from charting.errors import CoercionError
from charting.models import ChartType, Dataset, Series, SeriesData

logger = logging.getLogger(__name__)

# Fallback grouped bar series when no columns are configured
DEFAULT_SERIES_COLUMNS = ("Inpatient Physician", "Outpatient Physician")


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def _typed_number(value: Any) -> Optional[float]:
    # JSON sources hand over numbers directly; bool is not a measurement
    if isinstance(value, bool):
        return None
    return _finite(float(value))


def coerce_numeric(value: Any) -> Optional[float]:
    """
    Number for bar, line and pie values.

    Strips surrounding whitespace and one trailing ``%`` before parsing,
    so ``"45%"`` gives ``45.0``. Returns ``None`` for anything that is
    not a finite number.
    """
    if value is None:
        return None
    if isinstance(value, Number):
        return _typed_number(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("%"):
        text = text[:-1].rstrip()
    try:
        return _finite(float(text))
    except ValueError:
        return None


def coerce_strict_numeric(value: Any) -> Optional[float]:
    """Number for scatter axes: plain float parsing, no ``%`` handling."""
    if value is None:
        return None
    if isinstance(value, Number):
        return _typed_number(value)
    try:
        return _finite(float(value))
    except (TypeError, ValueError):
        return None


def _coerce_column(dataset: Dataset, column: str,
                   coerce: Callable[[Any], Optional[float]],
                   strict: bool = False) -> Tuple[Optional[float], ...]:
    values = []
    for index, record in enumerate(dataset.records):
        raw = record.get(column)
        number = coerce(raw)
        if number is None and strict:
            raise CoercionError(index, column, raw)
        values.append(number)
    return tuple(values)


# ─── ADAPTERS ─────────────────────────────────────────────────────────────────

def category_series(dataset: Dataset, chart_type: ChartType, x_column: str,
                    y_column: str, strict: bool = False, **_) -> SeriesData:
    """Bar, line and pie: x values as labels, coerced y values as the series."""
    validate_columns(dataset, [x_column, y_column])
    return SeriesData(
        chart_type=chart_type,
        x_column=x_column,
        y_column=y_column,
        labels=tuple(dataset.column(x_column)),
        series=(Series(y_column, _coerce_column(dataset, y_column, coerce_numeric, strict)),),
    )


def scatter_points(dataset: Dataset, chart_type: ChartType, x_column: str,
                   y_column: str, strict: bool = False, **_) -> SeriesData:
    """Scatter: (x, y) pairs, both axes numeric, no label array."""
    validate_columns(dataset, [x_column, y_column])
    xs = _coerce_column(dataset, x_column, coerce_strict_numeric, strict)
    ys = _coerce_column(dataset, y_column, coerce_strict_numeric, strict)
    return SeriesData(
        chart_type=chart_type,
        x_column=x_column,
        y_column=y_column,
        points=tuple(zip(xs, ys)),
    )


def grouped_series(dataset: Dataset, chart_type: ChartType, x_column: str,
                   y_column: Optional[str] = None,
                   series_columns: Optional[Sequence[str]] = None,
                   strict: bool = False, **_) -> SeriesData:
    """Grouped bar: x values as labels, one series per configured column.

    The selected y column plays no part here.
    """
    columns = list(series_columns or DEFAULT_SERIES_COLUMNS)
    validate_columns(dataset, [x_column] + columns)
    return SeriesData(
        chart_type=chart_type,
        x_column=x_column,
        y_column=y_column,
        labels=tuple(dataset.column(x_column)),
        series=tuple(
            Series(col, _coerce_column(dataset, col, coerce_numeric, strict))
            for col in columns
        ),
    )


ADAPTERS: Dict[ChartType, Callable[..., SeriesData]] = {
    ChartType.BAR: category_series,
    ChartType.LINE: category_series,
    ChartType.PIE: category_series,
    ChartType.SCATTER: scatter_points,
    ChartType.GROUPED_BAR: grouped_series,
}


def adapt(dataset: Dataset, chart_type: ChartType, x_column: str, y_column: str,
          series_columns: Optional[List[str]] = None, title: Optional[str] = None,
          strict: bool = False) -> SeriesData:
    """Build the SeriesData for ``chart_type`` from ``dataset``."""
    chart_type = ChartType(chart_type)
    adapter = ADAPTERS[chart_type]
    data = adapter(
        dataset,
        chart_type=chart_type,
        x_column=x_column,
        y_column=y_column,
        series_columns=series_columns,
        strict=strict,
    )
    if title:
        data = replace(data, title=title)

    gaps = {name: count for name, count in data.missing.items() if count}
    if gaps:
        logger.warning(f"Non-numeric values replaced with gaps: {gaps}")
    return data
