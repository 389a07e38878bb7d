"""Error taxonomy for the upload → parse → render pipeline."""

from typing import Optional


class ChartServiceError(Exception):
    """Base class for every failure the service reports to its caller."""

    status_code: int = 500


class TransportError(ChartServiceError):
    """Upload or fetch failed at the network/HTTP layer."""

    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UnsupportedFormat(ChartServiceError):
    status_code = 415

    def __init__(self, mimetype: str):
        super().__init__(f"Unsupported file type: {mimetype or 'unknown'}")
        self.mimetype = mimetype


class ParseError(ChartServiceError):
    """Content could not be parsed per its declared format."""

    status_code = 422


class MissingSelection(ChartServiceError):
    status_code = 400

    def __init__(self, message: str = "X or Y column not selected."):
        super().__init__(message)


class UnknownColumn(ChartServiceError):
    status_code = 400

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Columns not found in dataset: {self.missing}")


class CoercionError(ChartServiceError):
    """A cell could not be converted to a number (strict mode only)."""

    status_code = 422

    def __init__(self, index: int, column: str, value):
        super().__init__(
            f"Record {index}: value {value!r} in column '{column}' is not numeric"
        )
        self.index = index
        self.column = column
        self.value = value


class DatasetNotFound(ChartServiceError):
    status_code = 404

    def __init__(self, filename: str):
        super().__init__(f"File not found: {filename}")
        self.filename = filename
