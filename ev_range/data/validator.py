"""
Data validation module for schema checks and row filtering.

Provides:
- Schema validation (required columns)
- Row-level filtering of incomplete or non-numeric records
- A validation report summarizing what was dropped and why
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from ..exceptions import EmptyDatasetError, SchemaError

logger = logging.getLogger(__name__)


def is_missing(value: Any) -> bool:
    """True for None and float NaN."""
    if value is None:
        return True
    if isinstance(value, (float, np.floating)) and math.isnan(value):
        return True
    return False


def is_number(value: Any) -> bool:
    """True for finite real numbers (booleans excluded)."""
    if isinstance(value, (bool, np.bool_)):
        return False
    if not isinstance(value, (int, float, np.integer, np.floating)):
        return False
    return math.isfinite(value)


@dataclass
class ValidationResult:
    """Result of a single validation check."""
    name: str
    passed: bool
    message: str
    details: Any = None


@dataclass
class ValidationReport:
    """Complete validation report."""
    timestamp: datetime
    row_count: int
    column_count: int
    valid_count: int = 0
    results: List[ValidationResult] = field(default_factory=list)

    @property
    def all_passed(self) -> bool:
        """Check if all validations passed."""
        return all(r.passed for r in self.results)

    @property
    def dropped_count(self) -> int:
        return self.row_count - self.valid_count

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            f"Validation Report - {self.timestamp}",
            f"Shape: {self.row_count} rows × {self.column_count} columns",
            f"Valid rows: {self.valid_count} ({self.dropped_count} dropped)",
            "",
            "Results:"
        ]

        for result in self.results:
            status = "✓" if result.passed else "✗"
            lines.append(f"  {status} {result.name}: {result.message}")

        return "\n".join(lines)


class DataValidator:
    """
    Schema validation and row filtering for vehicle records.

    Dataset-level problems (missing columns, nothing left after
    filtering) raise; row-level problems only drop the row.
    """

    def __init__(self, config=None):
        """
        Initialize validator.

        Args:
            config: Optional configuration object
        """
        self.config = config
        self.last_report: Optional[ValidationReport] = None

    def validate_schema(
        self,
        df: pd.DataFrame,
        required_columns: Sequence[str]
    ) -> ValidationResult:
        """
        Validate that DataFrame has required columns.

        Args:
            df: DataFrame to validate
            required_columns: List of required column names

        Returns:
            ValidationResult
        """
        missing = [col for col in required_columns if col not in df.columns]

        if missing:
            return ValidationResult(
                name="schema",
                passed=False,
                message=f"Missing columns: {missing}",
                details={'missing_columns': missing}
            )

        return ValidationResult(
            name="schema",
            passed=True,
            message="All required columns present"
        )

    def validate_and_filter(
        self,
        df: pd.DataFrame,
        numeric_features: Optional[Sequence[str]] = None,
        categorical_features: Optional[Sequence[str]] = None,
        target: Optional[str] = None
    ) -> pd.DataFrame:
        """
        Check the schema and drop rows that cannot be used for training.

        A row is dropped when the target is missing or non-numeric, when
        any numeric feature is missing or non-numeric, or when any
        categorical feature is missing.

        Args:
            df: Raw records
            numeric_features: Numeric feature columns (default from config)
            categorical_features: Categorical feature columns (default from config)
            target: Target column (default from config)

        Returns:
            DataFrame of valid rows with a fresh index
        """
        if numeric_features is None or categorical_features is None or target is None:
            if self.config is None:
                raise ValueError("Feature columns must be given when no configuration is available")
            feature_config = self.config.feature_config
            numeric_features = numeric_features or feature_config.numeric_features
            categorical_features = categorical_features or feature_config.categorical_features
            target = target or feature_config.target

        required = list(numeric_features) + list(categorical_features) + [target]

        report = ValidationReport(
            timestamp=datetime.now(),
            row_count=len(df),
            column_count=len(df.columns)
        )
        self.last_report = report

        schema_result = self.validate_schema(df, required)
        report.results.append(schema_result)
        if not schema_result.passed:
            logger.error(f"  schema: {schema_result.message}")
            raise SchemaError(schema_result.details['missing_columns'])

        if df.empty:
            raise EmptyDatasetError("No data rows to validate")

        target_ok = df[target].map(is_number)
        numeric_ok = df[list(numeric_features)].apply(lambda col: col.map(is_number)).all(axis=1)
        categorical_ok = ~df[list(categorical_features)].apply(lambda col: col.map(is_missing)).any(axis=1)

        checks = [
            ('target', target_ok, "rows with missing or non-numeric target"),
            ('numeric_features', numeric_ok, "rows with missing or non-numeric numeric features"),
            ('categorical_features', categorical_ok, "rows with missing categorical features"),
        ]

        for name, mask, label in checks:
            bad = int((~mask).sum())
            report.results.append(ValidationResult(
                name=name,
                passed=bad == 0,
                message=f"{bad} {label}",
                details={'dropped': bad}
            ))
            log_level = logging.DEBUG if bad == 0 else logging.WARNING
            logger.log(log_level, f"  {name}: {bad} {label}")

        valid = df[target_ok & numeric_ok & categorical_ok].reset_index(drop=True)
        report.valid_count = len(valid)

        if valid.empty:
            raise EmptyDatasetError("No valid samples found after filtering missing values")

        logger.info(f"Valid samples after filtering: {len(valid)}")

        return valid
