"""
Single-vehicle range prediction.

Handles:
- Coercing raw form values into typed records
- Validating a record before any tensor is created
- Transforming with the training-time fitted features
- Rounding the network output to whole kilometers
"""

import logging
import math
from typing import Any, Dict, Mapping

from ..data.validator import is_missing, is_number
from ..exceptions import TrainingError, ValidationError
from ..features.pipeline import FittedFeatures, category_key
from ..models.base import BaseModel

logger = logging.getLogger(__name__)

# Form fields parsed as whole numbers
INTEGER_FIELDS = frozenset({'seats', 'length_mm', 'width_mm', 'height_mm'})


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return int(math.floor(value + 0.5))


def _parse_number(text: Any, integer: bool = False) -> float:
    if is_number(text):
        return float(int(text)) if integer else float(text)
    try:
        number = float(str(text).strip())
    except (TypeError, ValueError):
        return float('nan')
    if integer and math.isfinite(number):
        return float(int(number))
    return number


def coerce_form_input(
    raw: Mapping[str, Any],
    fitted: FittedFeatures,
    integer_fields=INTEGER_FIELDS
) -> Dict[str, Any]:
    """
    Convert raw (usually string) form values into a typed record.

    Unparseable numbers become NaN and are rejected later by
    ``validate_input``; absent fields stay absent.

    Args:
        raw: Field name to raw value
        fitted: Fitted features (supplies the schema)
        integer_fields: Numeric fields truncated to whole numbers

    Returns:
        Typed record
    """
    record: Dict[str, Any] = {}

    for feature in fitted.numeric_features:
        if feature in raw:
            record[feature] = _parse_number(raw[feature], integer=feature in integer_fields)

    for feature in fitted.categorical_features:
        if feature in raw:
            value = raw[feature]
            record[feature] = None if is_missing(value) else str(value).strip()

    return record


def validate_input(record: Mapping[str, Any], fitted: FittedFeatures) -> None:
    """
    Check a user record has every feature with a usable value.

    Raises:
        ValidationError: naming the first offending field
    """
    for feature in fitted.numeric_features:
        if feature not in record or is_missing(record[feature]):
            raise ValidationError(feature, "missing")
        if not is_number(record[feature]):
            raise ValidationError(feature, "not a number")

    for feature in fitted.categorical_features:
        value = record.get(feature)
        if is_missing(value) or str(value).strip() == '':
            raise ValidationError(feature, "missing")


class RangePredictor:
    """
    Point predictions from a trained model and its fitted features.
    """

    def __init__(self, model: BaseModel, fitted: FittedFeatures):
        """
        Initialize predictor.

        Args:
            model: Trained model
            fitted: Feature state fitted during training
        """
        self.model = model
        self.fitted = fitted

    def predict_value(self, record: Mapping[str, Any]) -> float:
        """Unrounded network output for one record."""
        validate_input(record, self.fitted)
        vector = self.fitted.transform(record)
        return float(self.model.predict(vector.reshape(1, -1))[0])

    def predict(self, record: Mapping[str, Any]) -> int:
        """
        Predict the range of one vehicle.

        Args:
            record: Feature name to value

        Returns:
            Range in whole kilometers
        """
        value = self.predict_value(record)
        if not math.isfinite(value):
            raise TrainingError(f"Model produced a non-finite prediction: {value}")
        return round_half_up(value)

    def predict_form(self, raw: Mapping[str, Any]) -> int:
        """Predict from raw form values (strings allowed)."""
        return self.predict(coerce_form_input(raw, self.fitted))

    def unseen_categories(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Categorical values of `record` that were never seen in training."""
        return {
            feature: record[feature]
            for feature in self.fitted.categorical_features
            if not is_missing(record.get(feature))
            and category_key(record[feature]) not in self.fitted.vocabulary[feature]
        }
