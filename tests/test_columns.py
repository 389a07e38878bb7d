"""Column resolver tests"""

import pytest

from charting.columns import resolve_columns, validate_columns
from charting.errors import UnknownColumn
from charting.models import Dataset


class TestResolveColumns:

    def test_first_two_columns_are_defaults(self):
        dataset = Dataset.from_rows([{"c": 1, "a": 2, "b": 3}])
        columns = resolve_columns(dataset)
        assert columns.available == ("c", "a", "b")
        assert columns.default_x == "c"
        assert columns.default_y == "a"
        assert columns.default_x != columns.default_y

    def test_single_column_used_for_both_axes(self):
        columns = resolve_columns(Dataset.from_rows([{"only": "1"}]))
        assert columns.available == ("only",)
        assert columns.default_x == columns.default_y == "only"

    def test_empty_dataset(self):
        columns = resolve_columns(Dataset())
        assert columns.available == ()
        assert columns.default_x is None
        assert columns.default_y is None


class TestValidateColumns:

    def test_known_columns_pass(self, rates_dataset):
        validate_columns(rates_dataset, ["State", "Rate"])

    def test_unknown_columns_listed(self, rates_dataset):
        with pytest.raises(UnknownColumn) as exc_info:
            validate_columns(rates_dataset, ["State", "Nope", "Missing"])
        assert exc_info.value.missing == ["Nope", "Missing"]
