"""Tests for schema validation and row filtering."""

import numpy as np
import pandas as pd
import pytest

from ev_range.data import DataValidator
from ev_range.data.validator import is_missing, is_number
from ev_range.exceptions import EmptyDatasetError, SchemaError

NUMERIC = ["battery", "seats"]
CATEGORICAL = ["drivetrain"]
TARGET = "range_km"


def frame(rows):
    return pd.DataFrame(rows, columns=NUMERIC + CATEGORICAL + [TARGET], dtype=object)


@pytest.fixture
def validator() -> DataValidator:
    return DataValidator()


def filter_rows(validator, df):
    return validator.validate_and_filter(
        df, numeric_features=NUMERIC, categorical_features=CATEGORICAL, target=TARGET
    )


class TestPredicates:
    """Tests for the value predicates."""

    def test_is_missing(self) -> None:
        assert is_missing(None)
        assert is_missing(float("nan"))
        assert is_missing(np.nan)
        assert not is_missing(0.0)
        assert not is_missing("")

    def test_is_number(self) -> None:
        assert is_number(3)
        assert is_number(2.5)
        assert not is_number(True)
        assert not is_number("5")
        assert not is_number(float("inf"))
        assert not is_number(None)


class TestValidateAndFilter:
    """Tests for DataValidator.validate_and_filter."""

    def test_all_valid_rows_kept(self, validator) -> None:
        df = frame([[60.0, 5.0, "AWD", 400.0], [75.0, 5.0, "RWD", 480.0]])
        result = filter_rows(validator, df)

        assert len(result) == 2
        assert validator.last_report.dropped_count == 0
        assert validator.last_report.all_passed

    def test_missing_target_dropped(self, validator) -> None:
        df = frame([[60.0, 5.0, "AWD", None], [75.0, 5.0, "RWD", 480.0]])
        result = filter_rows(validator, df)

        assert len(result) == 1
        assert result.loc[0, TARGET] == 480.0

    def test_non_numeric_feature_dropped(self, validator) -> None:
        df = frame([[60.0, "five", "AWD", 400.0], [75.0, 5.0, "RWD", 480.0]])
        result = filter_rows(validator, df)

        assert len(result) == 1
        assert validator.last_report.dropped_count == 1

    def test_non_numeric_target_dropped(self, validator) -> None:
        df = frame([[60.0, 5.0, "AWD", "n/a"], [75.0, 5.0, "RWD", 480.0]])
        assert len(filter_rows(validator, df)) == 1

    def test_missing_categorical_dropped(self, validator) -> None:
        df = frame([[60.0, 5.0, None, 400.0], [75.0, 5.0, "RWD", 480.0]])
        assert len(filter_rows(validator, df)) == 1

    def test_numeric_categorical_is_kept(self, validator) -> None:
        df = frame([[60.0, 5.0, 2.0, 400.0]])
        assert len(filter_rows(validator, df)) == 1

    def test_index_is_reset(self, validator) -> None:
        df = frame([[60.0, 5.0, None, 400.0], [75.0, 5.0, "RWD", 480.0]])
        result = filter_rows(validator, df)
        assert list(result.index) == [0]

    def test_missing_columns_raise_schema_error(self, validator) -> None:
        df = pd.DataFrame({"battery": [60.0], TARGET: [400.0]}, dtype=object)

        with pytest.raises(SchemaError) as excinfo:
            filter_rows(validator, df)

        assert excinfo.value.missing_columns == ["seats", "drivetrain"]
        assert "seats" in str(excinfo.value)
        assert "drivetrain" in str(excinfo.value)

    def test_nothing_valid_raises(self, validator) -> None:
        df = frame([[None, 5.0, "AWD", 400.0], [75.0, 5.0, "RWD", None]])

        with pytest.raises(EmptyDatasetError, match="No valid samples"):
            filter_rows(validator, df)

    def test_empty_frame_raises(self, validator) -> None:
        with pytest.raises(EmptyDatasetError):
            filter_rows(validator, frame([]))

    def test_schema_from_config(self, config, vehicle_frame) -> None:
        result = DataValidator(config).validate_and_filter(vehicle_frame)
        assert len(result) == len(vehicle_frame)

    def test_report_summary(self, validator) -> None:
        df = frame([[60.0, 5.0, "AWD", None], [75.0, 5.0, "RWD", 480.0]])
        filter_rows(validator, df)

        summary = validator.last_report.summary()
        assert "1 dropped" in summary
        assert "target" in summary
