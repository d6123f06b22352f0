"""
Base model interface for range prediction models.

A range model trains epoch by epoch (``fit_iter`` yields one
``EpochMetrics`` per epoch) and round-trips through a plain payload
so it can be stored next to the fitted features.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

import numpy as np


PAYLOAD_FORMAT = 1


@dataclass(frozen=True)
class EpochMetrics:
    """Metrics reported at the end of one training epoch."""
    epoch: int
    loss: float
    val_loss: float
    mae: float
    val_mae: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class BaseModel(ABC):
    """
    Abstract base class for range prediction models.

    Subclasses provide the epoch generator, batch prediction and the
    (de)serialization hooks; fitting to completion, payload export and
    the bookkeeping around them live here.
    """

    def __init__(self, name: str, params: Optional[Dict[str, Any]] = None):
        """
        Initialize base model.

        Args:
            name: Model name identifier
            params: Model hyperparameters
        """
        self.name = name
        self.params = params or {}
        self.model = None
        self.is_fitted = False
        self.feature_names: List[str] = []
        self.metadata: Dict[str, Any] = {
            'created_at': datetime.now().isoformat(),
            'name': name
        }

    @abstractmethod
    def fit_iter(
        self,
        X_train: np.ndarray,
        y_train: np.ndarray,
        X_val: Optional[np.ndarray] = None,
        y_val: Optional[np.ndarray] = None
    ) -> Iterator[EpochMetrics]:
        """Train, yielding metrics after every epoch."""

    @abstractmethod
    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Predict range for a batch of feature vectors.

        Args:
            X: Input features, shape (n, input_dim)

        Returns:
            Array of predictions, shape (n,)
        """

    @abstractmethod
    def _get_state(self) -> Any:
        """Picklable snapshot of the trained weights."""

    @abstractmethod
    def _set_state(self, state: Any) -> None:
        """Rebuild the network from a ``_get_state`` snapshot."""

    def fit(
        self,
        X_train: np.ndarray,
        y_train: np.ndarray,
        X_val: Optional[np.ndarray] = None,
        y_val: Optional[np.ndarray] = None,
        callbacks=None
    ) -> 'BaseModel':
        """
        Train to completion.

        Args:
            X_train: Training features
            y_train: Training targets
            X_val: Validation features (optional)
            y_val: Validation targets (optional)
            callbacks: Called with EpochMetrics after every epoch

        Returns:
            Self for method chaining
        """
        for metrics in self.fit_iter(X_train, y_train, X_val, y_val):
            for callback in callbacks or []:
                callback(metrics)

        return self

    def to_payload(self) -> Dict[str, Any]:
        """Everything needed to rebuild this model."""
        if not self.is_fitted:
            raise ValueError("Model must be fitted before it can be exported")

        return {
            'format': PAYLOAD_FORMAT,
            'state': self._get_state(),
            'params': dict(self.params),
            'feature_names': list(self.feature_names),
            'metadata': dict(self.metadata)
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'BaseModel':
        """Rebuild a fitted model from ``to_payload`` output."""
        version = payload.get('format')
        if version != PAYLOAD_FORMAT:
            raise ValueError(f"Unsupported model payload format: {version}")

        instance = cls(
            name=payload['metadata'].get('name', 'loaded_model'),
            params=payload['params']
        )
        instance._set_state(payload['state'])
        instance.feature_names = list(payload['feature_names'])
        instance.metadata = dict(payload['metadata'])
        instance.is_fitted = True

        return instance

    def __repr__(self) -> str:
        status = "fitted" if self.is_fitted else "not fitted"
        return f"{self.__class__.__name__}(name='{self.name}', {status})"
