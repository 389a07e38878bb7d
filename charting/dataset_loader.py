"""
Dataset Loader: turns raw CSV or JSON text into a Dataset.

CSV cells stay raw strings; JSON cells keep the type JSON gave them.
Missing CSV cells (short rows) become ``None``.
"""

import csv
import io
import json
import logging
import warnings
from numbers import Number
from typing import Any, Dict, List

import pandas as pd

from charting.dataset_store import normalize_mimetype
from charting.errors import ParseError, UnsupportedFormat
from charting.models import Dataset

logger = logging.getLogger(__name__)

CSV_MIMETYPE = "text/csv"
JSON_MIMETYPE = "application/json"


def _csv_rows(content: str) -> List[List[str]]:
    """Raw rows, skipping the blank lines pandas skips."""
    try:
        rows = list(csv.reader(io.StringIO(content)))
    except csv.Error as e:
        raise ParseError(f"CSV parsing error: {e}")
    return [row for row in rows if row and not (len(row) == 1 and not row[0].strip())]


def parse_csv(content: str) -> Dataset:
    """Header row names the columns; every later row is one record.

    Cells missing from the end of a short row become ``None``. A row with
    more cells than the header, or a header naming a column twice, is
    malformed input.
    """
    rows = _csv_rows(content)
    if not rows:
        raise ParseError("CSV file contains no data")

    header, widths = rows[0], [len(row) for row in rows[1:]]
    duplicates = sorted({col for col in header if header.count(col) > 1})
    if duplicates:
        raise ParseError(f"Duplicate column names in CSV header: {duplicates}")
    for index, width in enumerate(widths):
        if width > len(header):
            raise ParseError(
                f"CSV parsing error: record {index} has {width} fields, header has {len(header)}"
            )

    with warnings.catch_warnings():
        warnings.simplefilter("error", pd.errors.ParserWarning)
        try:
            df = pd.read_csv(
                io.StringIO(content),
                dtype=str,
                na_filter=False,
                index_col=False,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError:
            raise ParseError("CSV file contains no data")
        except (pd.errors.ParserError, pd.errors.ParserWarning) as e:
            raise ParseError(f"CSV parsing error: {e}")

    columns = list(df.columns)
    records = df.to_dict(orient="records")
    if len(records) != len(widths):
        raise ParseError(f"CSV parsing error: read {len(records)} records from {len(widths)} rows")
    for record, width in zip(records, widths):
        for col in columns[width:]:
            record[col] = None
    return Dataset.from_rows(records)


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, bool, Number))


def parse_json(content: str) -> Dataset:
    """Expects an array of flat objects that all share one key set."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"JSON parsing error: {e}")

    if not isinstance(data, list):
        raise ParseError("JSON content must be an array of objects")

    rows: List[Dict[str, Any]] = []
    keys = None
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(f"Record {index} is not an object")
        if not all(_is_scalar(v) for v in item.values()):
            raise ParseError(f"Record {index} is not a flat object")
        if keys is None:
            keys = set(item)
        elif set(item) != keys:
            raise ParseError(
                f"Record {index} has columns {sorted(item)}, expected {sorted(keys)}"
            )
        rows.append(item)

    return Dataset.from_rows(rows)


PARSERS = {
    CSV_MIMETYPE: parse_csv,
    JSON_MIMETYPE: parse_json,
}


def load(content: str, declared_type: str) -> Dataset:
    """Parse ``content`` according to its declared mimetype."""
    mimetype = normalize_mimetype(declared_type)
    parser = PARSERS.get(mimetype)
    if parser is None:
        raise UnsupportedFormat(declared_type)

    dataset = parser(content)
    logger.info(
        f"Loaded {mimetype} dataset - {len(dataset)} records, "
        f"{len(dataset.columns)} columns"
    )
    return dataset
