"""
Exception hierarchy for the EV range predictor.

Dataset-level errors subclass ValueError so callers that only care about
"bad input" can catch them generically.
"""

from typing import Optional


class RangePredictorError(Exception):
    """Base class for all errors raised by this package."""


class FormatError(RangePredictorError, ValueError):
    """Malformed tabular input (e.g. missing header or data rows)."""


class SchemaError(RangePredictorError, ValueError):
    """Required columns are absent from the input."""

    def __init__(self, missing_columns):
        self.missing_columns = list(missing_columns)
        super().__init__(f"Missing required columns: {', '.join(self.missing_columns)}")


class EmptyDatasetError(RangePredictorError, ValueError):
    """No rows survived validation and filtering."""


class EmptyVocabularyError(RangePredictorError, ValueError):
    """A categorical feature has no observed values."""


class InsufficientDataError(RangePredictorError, ValueError):
    """Too few valid rows to build both a train and a test split."""


class ShapeError(RangePredictorError, ValueError):
    """Feature vectors (or feature/target arrays) have inconsistent shapes."""


class ValidationError(RangePredictorError, ValueError):
    """Invalid inference input."""

    def __init__(self, field: str, reason: Optional[str] = None):
        self.field = field
        self.reason = reason
        message = f"Invalid input for {field}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TrainingError(RangePredictorError):
    """Failure while building, fitting or evaluating the model."""


class TrainingCancelledError(TrainingError):
    """Training was stopped by an explicit cancel request."""


class StateTransitionError(RangePredictorError):
    """An illegal pipeline state transition was attempted."""
