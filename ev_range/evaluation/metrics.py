"""
Metrics module for model evaluation and training history.

Provides:
- Regression metrics (MAE, RMSE, R²)
- Per-epoch training history
"""

import logging
from typing import Dict, List, Union

import pandas as pd
import numpy as np
from sklearn.metrics import (
    mean_absolute_error,
    mean_squared_error,
    r2_score
)

from ..models.base import EpochMetrics

logger = logging.getLogger(__name__)


def calculate_metrics(
    y_true: Union[pd.Series, np.ndarray],
    y_pred: Union[pd.Series, np.ndarray]
) -> Dict[str, float]:
    """
    Calculate regression metrics.

    Args:
        y_true: True target values
        y_pred: Predicted values

    Returns:
        Dictionary of metrics
    """
    y_true = np.array(y_true, dtype=np.float64)
    y_pred = np.array(y_pred, dtype=np.float64)

    # Remove any NaN values
    mask = ~(np.isnan(y_true) | np.isnan(y_pred))
    y_true = y_true[mask]
    y_pred = y_pred[mask]

    if len(y_true) == 0:
        return {'mae': np.nan, 'mse': np.nan, 'rmse': np.nan, 'r2': np.nan}

    mae = mean_absolute_error(y_true, y_pred)
    mse = mean_squared_error(y_true, y_pred)

    # R² is undefined for a single sample
    r2 = r2_score(y_true, y_pred) if len(y_true) > 1 else np.nan

    return {
        'mae': float(mae),
        'mse': float(mse),
        'rmse': float(np.sqrt(mse)),
        'r2': float(r2)
    }


class TrainingHistory:
    """
    Ordered per-epoch metrics of one training run.

    Epochs must be appended in order; ``reset`` starts a new run.
    """

    def __init__(self):
        self._records: List[EpochMetrics] = []

    def reset(self) -> None:
        self._records = []

    def append(self, metrics: EpochMetrics) -> None:
        expected = len(self._records) + 1
        if metrics.epoch != expected:
            raise ValueError(f"Expected epoch {expected}, got {metrics.epoch}")
        self._records.append(metrics)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __getitem__(self, index: int) -> EpochMetrics:
        return self._records[index]

    @property
    def loss(self) -> List[float]:
        return [r.loss for r in self._records]

    @property
    def val_loss(self) -> List[float]:
        return [r.val_loss for r in self._records]

    @property
    def mae(self) -> List[float]:
        return [r.mae for r in self._records]

    @property
    def val_mae(self) -> List[float]:
        return [r.val_mae for r in self._records]

    def to_frame(self) -> pd.DataFrame:
        """History as a DataFrame indexed by epoch."""
        columns = ['epoch', 'loss', 'val_loss', 'mae', 'val_mae']
        if not self._records:
            return pd.DataFrame(columns=columns).set_index('epoch')
        return pd.DataFrame([r.to_dict() for r in self._records], columns=columns).set_index('epoch')

    def smoothed_loss(self, window: int = 5) -> pd.Series:
        """Moving average of the training loss."""
        return self.to_frame()['loss'].rolling(window, min_periods=1).mean()
