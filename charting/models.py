"""
Data model shared by the loader, resolver, adapter and renderers.

Records and datasets are immutable once parsed; SeriesData is built
fresh for every render and handed to exactly one renderer.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel

Record = Mapping[str, Any]
Number = Optional[float]


class ChartType(str, Enum):
    BAR = "bar"
    SCATTER = "scatter"
    LINE = "line"
    PIE = "pie"
    GROUPED_BAR = "groupedBar"


@dataclass(frozen=True)
class Dataset:
    """Ordered records plus the column names of the first record."""

    records: Tuple[Record, ...] = ()

    @classmethod
    def from_rows(cls, rows: Sequence[Dict[str, Any]]) -> "Dataset":
        return cls(tuple(MappingProxyType(dict(row)) for row in rows))

    @property
    def columns(self) -> Tuple[str, ...]:
        if not self.records:
            return ()
        return tuple(self.records[0].keys())

    def column(self, name: str) -> List[Any]:
        return [record.get(name) for record in self.records]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([dict(r) for r in self.records], columns=list(self.columns))

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)


@dataclass(frozen=True)
class StoredFile:
    filename: str
    originalname: str
    mimetype: str
    size: int = 0

    def to_dict(self) -> Dict[str, str]:
        return {
            "filename": self.filename,
            "originalname": self.originalname,
            "mimetype": self.mimetype,
        }


@dataclass(frozen=True)
class ColumnSelection:
    available: Tuple[str, ...] = ()
    default_x: Optional[str] = None
    default_y: Optional[str] = None


@dataclass(frozen=True)
class Series:
    name: str
    values: Tuple[Number, ...]

    @property
    def missing(self) -> int:
        return sum(1 for v in self.values if v is None)


@dataclass(frozen=True)
class SeriesData:
    """
    Renderer-ready arrays for one chart.

    Category charts (bar, line, pie, groupedBar) fill ``labels`` and
    ``series``; scatter fills ``points``. Every array has one entry per
    record, in record order. ``None`` marks a value that failed coercion.
    """

    chart_type: ChartType
    x_column: str
    y_column: Optional[str] = None
    labels: Tuple[Any, ...] = ()
    series: Tuple[Series, ...] = ()
    points: Tuple[Tuple[Number, Number], ...] = ()
    title: Optional[str] = None

    def __len__(self) -> int:
        if self.chart_type is ChartType.SCATTER:
            return len(self.points)
        return len(self.labels)

    @property
    def missing(self) -> Dict[str, int]:
        if self.chart_type is ChartType.SCATTER:
            return {
                self.x_column: sum(1 for x, _ in self.points if x is None),
                self.y_column: sum(1 for _, y in self.points if y is None),
            }
        return {s.name: s.missing for s in self.series}

    def pairs(self, index: int = 0) -> List[Tuple[Any, Number]]:
        """(label, value) pairs of one series."""
        return list(zip(self.labels, self.series[index].values))

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "chart_type": self.chart_type.value,
            "x_column": self.x_column,
            "y_column": self.y_column,
            "length": len(self),
            "missing": self.missing,
        }
        if self.chart_type is ChartType.SCATTER:
            payload["points"] = [{"x": x, "y": y} for x, y in self.points]
        else:
            payload["labels"] = list(self.labels)
            payload["series"] = [
                {"name": s.name, "values": list(s.values)} for s in self.series
            ]
        return payload


class ChartSpec(BaseModel):
    """The user's current chart selection."""

    chart_type: ChartType = ChartType.BAR
    x_column: Optional[str] = None
    y_column: Optional[str] = None
    series_columns: Optional[List[str]] = None
    title: Optional[str] = None


class LoadRequest(BaseModel):
    filename: str
    mimetype: str
    chart_type: Optional[ChartType] = None
