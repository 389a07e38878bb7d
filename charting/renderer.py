"""
Chart Renderer glue.

Hands SeriesData to a drawing library: plotly for interactive HTML pages,
matplotlib for static PNG images. Each renderer owns the lifecycle of
the figures it creates; ``release`` must be called before a figure is
dropped.
"""

import io
import logging
from typing import Any, List, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import plotly.graph_objects as go
import seaborn as sns

from charting.models import ChartType, SeriesData

logger = logging.getLogger(__name__)

# Set style preferences
plt.style.use("seaborn-v0_8")
sns.set_palette("husl")

# (red, green, blue) per chart role
BAR_RGB = (75, 192, 192)
LINE_RGB = (54, 162, 235)
GROUPED_RGB = [(75, 192, 192), (255, 159, 64)]
SCATTER_COLOR = "steelblue"


def rgba(rgb, alpha: float) -> str:
    r, g, b = rgb
    return f"rgba({r}, {g}, {b}, {alpha})"


def palette(n: int) -> List[tuple]:
    """``n`` visually distinct RGB colors (0-255) from seaborn's husl palette."""
    return [
        tuple(int(round(c * 255)) for c in color)
        for color in sns.color_palette("husl", n)
    ]


def grouped_colors(n: int) -> List[tuple]:
    if n <= len(GROUPED_RGB):
        return GROUPED_RGB[:n]
    return GROUPED_RGB + palette(n)[len(GROUPED_RGB):]


def chart_title(data: SeriesData) -> str:
    if data.title:
        return data.title
    x, y = data.x_column, data.y_column
    if data.chart_type is ChartType.BAR:
        return f"{y} by {x}"
    if data.chart_type is ChartType.LINE:
        return f"{y} over {x}"
    if data.chart_type is ChartType.PIE:
        return f"{y} Distribution by {x}"
    if data.chart_type is ChartType.SCATTER:
        return f"{x} vs {y}"
    return " vs. ".join(s.name for s in data.series) + f" by {x}"


def _nan(values) -> List[float]:
    return [np.nan if v is None else v for v in values]


class ChartRenderer:
    """Base class for drawing backends."""

    name = "base"
    media_type = "application/octet-stream"

    def __init__(self, width: int = 800, height: int = 500):
        self.width = width
        self.height = height

    def draw(self, data: SeriesData) -> Any:
        raise NotImplementedError

    def export(self, figure: Any) -> bytes:
        raise NotImplementedError

    def release(self, figure: Any) -> None:
        pass


class PlotlyRenderer(ChartRenderer):
    """Interactive charts as plotly figures, exported as standalone HTML."""

    name = "plotly"
    media_type = "text/html"

    def draw(self, data: SeriesData) -> go.Figure:
        fig = go.Figure()
        chart_type = data.chart_type

        if chart_type is ChartType.SCATTER:
            fig.add_trace(go.Scatter(
                x=[x for x, _ in data.points],
                y=[y for _, y in data.points],
                mode="markers",
                marker=dict(size=10, color=SCATTER_COLOR, opacity=0.7),
                name=f"{data.x_column} vs {data.y_column}",
            ))
            fig.update_layout(xaxis_title=data.x_column, yaxis_title=data.y_column)

        elif chart_type is ChartType.PIE:
            series = data.series[0]
            colors = palette(len(data.labels))
            fig.add_trace(go.Pie(
                labels=list(data.labels),
                values=list(series.values),
                name=series.name,
                sort=False,
                marker=dict(
                    colors=[rgba(c, 0.7) for c in colors],
                    line=dict(color=[rgba(c, 1) for c in colors], width=1),
                ),
            ))
            fig.update_layout(legend=dict(orientation="h", y=1.1))

        elif chart_type is ChartType.LINE:
            series = data.series[0]
            fig.add_trace(go.Scatter(
                x=list(data.labels),
                y=list(series.values),
                mode="lines+markers",
                name=series.name,
                fill="tozeroy",
                fillcolor=rgba(LINE_RGB, 0.2),
                line=dict(color=rgba(LINE_RGB, 1), width=2),
            ))
            self._category_axes(fig, data.x_column, data.y_column)

        else:
            colors = [BAR_RGB] if chart_type is ChartType.BAR else grouped_colors(len(data.series))
            for series, color in zip(data.series, colors):
                fig.add_trace(go.Bar(
                    x=list(data.labels),
                    y=list(series.values),
                    name=series.name,
                    marker=dict(color=rgba(color, 0.6), line=dict(color=rgba(color, 1), width=1)),
                ))
            y_title = data.y_column if chart_type is ChartType.BAR else "Values"
            self._category_axes(fig, data.x_column, y_title)
            fig.update_layout(barmode="group")

        fig.update_layout(
            title=chart_title(data),
            width=self.width,
            height=self.height,
            showlegend=chart_type in (ChartType.PIE, ChartType.GROUPED_BAR),
        )
        return fig

    def _category_axes(self, fig: go.Figure, x_title: str, y_title: Optional[str]):
        fig.update_xaxes(type="category", title_text=x_title)
        fig.update_yaxes(rangemode="tozero", title_text=y_title)

    def export(self, figure: go.Figure) -> bytes:
        return figure.to_html(full_html=True, include_plotlyjs="cdn").encode("utf-8")

    def release(self, figure: go.Figure) -> None:
        figure.data = []


class MatplotlibRenderer(ChartRenderer):
    """Static charts drawn with matplotlib, exported as PNG."""

    name = "matplotlib"
    media_type = "image/png"
    dpi = 100

    def draw(self, data: SeriesData):
        fig, ax = plt.subplots(figsize=(self.width / self.dpi, self.height / self.dpi))
        chart_type = data.chart_type
        labels = [str(label) for label in data.labels]

        if chart_type is ChartType.SCATTER:
            xs = _nan(x for x, _ in data.points)
            ys = _nan(y for _, y in data.points)
            ax.scatter(xs, ys, s=25, color=SCATTER_COLOR, alpha=0.7)
            ax.set_xlabel(data.x_column)
            ax.set_ylabel(data.y_column)

        elif chart_type is ChartType.PIE:
            self._draw_pie(ax, labels, data.series[0].values)

        elif chart_type is ChartType.LINE:
            positions = np.arange(len(labels))
            values = _nan(data.series[0].values)
            color = np.array(LINE_RGB) / 255
            ax.plot(positions, values, color=color, marker="o", linewidth=2)
            ax.fill_between(positions, values, color=color, alpha=0.2)
            self._category_axes(ax, positions, labels, data.x_column, data.y_column)

        else:
            positions = np.arange(len(labels))
            n_series = len(data.series)
            colors = [BAR_RGB] if chart_type is ChartType.BAR else grouped_colors(n_series)
            width = 0.8 / max(n_series, 1)
            for i, (series, color) in enumerate(zip(data.series, colors)):
                offset = (i - (n_series - 1) / 2) * width
                rgb = np.array(color) / 255
                ax.bar(positions + offset, _nan(series.values), width,
                       label=series.name, color=(*rgb, 0.6), edgecolor=rgb, linewidth=1)
            y_title = data.y_column if chart_type is ChartType.BAR else "Values"
            self._category_axes(ax, positions, labels, data.x_column, y_title)
            if chart_type is ChartType.GROUPED_BAR:
                ax.legend()

        ax.set_title(chart_title(data))
        fig.tight_layout()
        return fig

    def _draw_pie(self, ax, labels, values):
        # matplotlib rejects negative wedges; gaps and negatives are left out
        slices = [(label, v) for label, v in zip(labels, values) if v is not None and v > 0]
        if not slices:
            ax.text(0.5, 0.5, "No positive values to plot", ha="center", va="center")
            ax.set_axis_off()
            return
        if len(slices) < len(labels):
            logger.warning(f"Pie chart skipped {len(labels) - len(slices)} empty or negative slices")
        slice_labels, slice_values = zip(*slices)
        colors = [np.array(c) / 255 for c in palette(len(slices))]
        ax.pie(slice_values, labels=slice_labels, colors=colors,
               wedgeprops=dict(edgecolor="white", linewidth=1))
        ax.axis("equal")

    def _category_axes(self, ax, positions, labels, x_title, y_title):
        ax.set_xticks(positions)
        ax.set_xticklabels(labels, rotation=45 if len(labels) > 8 else 0, ha="right" if len(labels) > 8 else "center")
        ax.set_xlabel(x_title)
        ax.set_ylabel(y_title)
        ax.set_ylim(bottom=min(0, ax.get_ylim()[0]))

    def export(self, figure) -> bytes:
        buffer = io.BytesIO()
        figure.savefig(buffer, format="png", dpi=self.dpi, bbox_inches="tight")
        return buffer.getvalue()

    def release(self, figure) -> None:
        plt.close(figure)


RENDERERS = {
    PlotlyRenderer.name: PlotlyRenderer,
    MatplotlibRenderer.name: MatplotlibRenderer,
}


def get_renderer(name: str, width: int = 800, height: int = 500) -> ChartRenderer:
    try:
        return RENDERERS[name](width=width, height=height)
    except KeyError:
        raise ValueError(f"Unknown renderer: {name}. Choose from {sorted(RENDERERS)}")
