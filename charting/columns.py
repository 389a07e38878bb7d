"""Column Resolver: discovers the columns of a dataset and picks default axes."""

from typing import Iterable, Optional

from charting.errors import UnknownColumn
from charting.models import ColumnSelection, Dataset


def resolve_columns(dataset: Dataset) -> ColumnSelection:
    """
    Columns of the first record, in order, with default x/y picks.

    Two or more columns: x is the first, y the second. A single column
    is used for both axes. No columns, no defaults.
    """
    available = dataset.columns
    if len(available) >= 2:
        return ColumnSelection(available, available[0], available[1])
    if len(available) == 1:
        return ColumnSelection(available, available[0], available[0])
    return ColumnSelection()


def validate_columns(dataset: Dataset, columns: Iterable[Optional[str]]) -> None:
    """Raise UnknownColumn unless every name is a column of ``dataset``."""
    available = set(dataset.columns)
    missing = [col for col in columns if col not in available]
    if missing:
        raise UnknownColumn(missing)
