"""
ChartSession: the single user's working state.

Holds the current dataset, the column selection and the one active
chart. A failed load leaves all three untouched; a successful load
replaces the dataset wholesale. Before a new chart is drawn the
previous one is released, so at most one chart is alive at a time.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from charting import chart_data, dataset_loader
from charting.columns import resolve_columns
from charting.errors import ChartServiceError, MissingSelection
from charting.models import ChartSpec, ChartType, ColumnSelection, Dataset, SeriesData
from charting.renderer import ChartRenderer, PlotlyRenderer

logger = logging.getLogger(__name__)


@dataclass
class ActiveChart:
    spec: ChartSpec
    data: SeriesData
    figure: Any


class ChartSession:

    def __init__(self, renderer: Optional[ChartRenderer] = None,
                 series_columns: Optional[Sequence[str]] = None,
                 default_chart_type: ChartType = ChartType.BAR):
        self.renderer = renderer or PlotlyRenderer()
        self.series_columns: List[str] = list(series_columns or chart_data.DEFAULT_SERIES_COLUMNS)
        self.default_chart_type = ChartType(default_chart_type)
        self.dataset = Dataset()
        self.columns = ColumnSelection()
        self.selected_x: Optional[str] = None
        self.selected_y: Optional[str] = None
        self.active: Optional[ActiveChart] = None

    # ─── DATASET ──────────────────────────────────────────────────────────────

    def load(self, content: str, mimetype: str) -> ColumnSelection:
        """Parse ``content`` and make it the current dataset.

        Parsing happens before any state changes, so an UnsupportedFormat or
        ParseError leaves the previous dataset and chart in place. On success
        the chart drawn from the previous dataset is released.
        """
        try:
            dataset = dataset_loader.load(content, mimetype)
        except ChartServiceError as e:
            logger.error(f"Failed to load dataset ({mimetype}): {e}")
            raise

        self.clear()
        self.dataset = dataset
        self.columns = resolve_columns(dataset)
        self.selected_x = self.columns.default_x
        self.selected_y = self.columns.default_y
        return self.columns

    def ingest(self, content: str, mimetype: str,
               chart_type: Optional[ChartType] = None) -> Optional[ActiveChart]:
        """Load a dataset and draw it with the default columns."""
        self.load(content, mimetype)
        return self.render(ChartSpec(chart_type=chart_type or self.default_chart_type))

    # ─── RENDERING ────────────────────────────────────────────────────────────

    def _selected_columns(self, spec: ChartSpec):
        x_column = spec.x_column or self.selected_x
        y_column = spec.y_column or self.selected_y
        if not x_column or not y_column:
            raise MissingSelection()
        return x_column, y_column

    def clear(self) -> None:
        """Release the active chart, if any."""
        if self.active is not None:
            self.renderer.release(self.active.figure)
            logger.info(f"Released {self.active.spec.chart_type.value} chart")
            self.active = None

    def render(self, spec: ChartSpec) -> Optional[ActiveChart]:
        """
        Draw ``spec`` against the current dataset.

        Columns left out of ``spec`` fall back to the current selection.
        Returns None without drawing when there is no data or no column
        selected; the display is cleared in the latter case.
        """
        if not self.dataset:
            logger.warning("No data to render.")
            return None

        self.clear()

        try:
            x_column, y_column = self._selected_columns(spec)
        except MissingSelection as e:
            logger.warning(str(e))
            return None

        data = chart_data.adapt(
            self.dataset,
            spec.chart_type,
            x_column,
            y_column,
            series_columns=spec.series_columns or self.series_columns,
            title=spec.title,
        )
        self.selected_x, self.selected_y = x_column, y_column

        figure = self.renderer.draw(data)
        self.active = ActiveChart(
            spec=spec.model_copy(update={"x_column": x_column, "y_column": y_column}),
            data=data,
            figure=figure,
        )
        logger.info(
            f"Rendered {spec.chart_type.value} chart with {self.renderer.name}: "
            f"x={x_column}, y={y_column}, {len(data)} points"
        )
        return self.active

    def export(self) -> Optional[bytes]:
        if self.active is None:
            return None
        return self.renderer.export(self.active.figure)

