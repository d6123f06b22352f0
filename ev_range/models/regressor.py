"""
Neural network regressor for EV range prediction.

Provides a PyTorch regressor with:
- Dense / dropout architecture (see ``network.build_network``)
- Adam optimizer on mean squared error, MAE tracked as a metric
- Epoch-by-epoch training through a generator so callers can
  observe metrics (and yield) between epochs
- Scoped tensor ownership for fit, evaluate and predict
"""

import logging
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np
import torch
import torch.nn as nn

from ..exceptions import ShapeError, TrainingError
from .base import BaseModel, EpochMetrics
from .network import build_network, count_params
from .resources import TensorScope, tensor_scope

logger = logging.getLogger(__name__)


class NeuralRangeRegressor(BaseModel):
    """
    Feed-forward regression network.

    The network is built lazily from the input dimension of the first
    training call (or explicitly through ``build``).
    """

    DEFAULT_PARAMS = {
        'hidden_units': [32, 16],
        'dropout_rates': [0.2, 0.15],
        'learning_rate': 0.001,
        'epochs': 100,
        'batch_size': 16,
        'shuffle': True,
        'seed': None,
        'device': 'cpu',
        'input_dim': None
    }

    def __init__(
        self,
        name: str = 'neural_net',
        params: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize regressor.

        Args:
            name: Model name
            params: Model hyperparameters (merged with defaults)
        """
        merged_params = self.DEFAULT_PARAMS.copy()
        if params:
            merged_params.update(params)

        super().__init__(name, merged_params)

        self.device = torch.device(merged_params['device'])
        self.optimizer: Optional[torch.optim.Optimizer] = None
        self.loss_fn = nn.MSELoss()
        self._generator = torch.Generator()

    @property
    def input_dim(self) -> Optional[int]:
        return self.params.get('input_dim')

    @property
    def param_count(self) -> int:
        return count_params(self.model) if self.model is not None else 0

    def build(self, input_dim: int) -> nn.Sequential:
        """
        Construct the network and its optimizer.

        Args:
            input_dim: Length of the feature vector

        Returns:
            The network
        """
        seed = self.params.get('seed')
        if seed is not None:
            torch.manual_seed(seed)
            self._generator.manual_seed(seed)

        self.model = build_network(
            int(input_dim),
            hidden_units=self.params['hidden_units'],
            dropout_rates=self.params['dropout_rates']
        ).to(self.device)

        self.optimizer = torch.optim.Adam(
            self.model.parameters(), lr=self.params['learning_rate']
        )
        self.params['input_dim'] = int(input_dim)
        self.is_fitted = False

        logger.info(f"Model built: input_dim={input_dim}, {self.param_count} parameters")

        return self.model

    def _check_arrays(self, X: np.ndarray, y: np.ndarray, label: str) -> None:
        if X is None or y is None or len(X) == 0 or len(y) == 0:
            raise TrainingError(f"Invalid {label} data: empty features or targets")
        if len(X) != len(y):
            raise ShapeError(
                f"{label.capitalize()} shape mismatch: features={len(X)}, targets={len(y)}"
            )
        if self.input_dim is not None and np.shape(X)[1] != self.input_dim:
            raise ShapeError(
                f"{label.capitalize()} features have {np.shape(X)[1]} columns, "
                f"model expects {self.input_dim}"
            )

    def fit_iter(
        self,
        X_train: np.ndarray,
        y_train: np.ndarray,
        X_val: Optional[np.ndarray] = None,
        y_val: Optional[np.ndarray] = None,
        epochs: Optional[int] = None,
        batch_size: Optional[int] = None,
        shuffle: Optional[bool] = None
    ) -> Iterator[EpochMetrics]:
        """
        Train the network, yielding metrics after every epoch.

        Training tensors live in a single scope that is released when
        the generator finishes, raises or is closed early.

        Args:
            X_train: Training features
            y_train: Training targets
            X_val: Validation features (optional)
            y_val: Validation targets (optional)
            epochs: Number of epochs (default from params)
            batch_size: Mini-batch size (default from params)
            shuffle: Reshuffle training rows every epoch (default from params)

        Yields:
            EpochMetrics for each completed epoch
        """
        epochs = epochs or self.params['epochs']
        batch_size = batch_size or self.params['batch_size']
        shuffle = self.params['shuffle'] if shuffle is None else shuffle

        self._check_arrays(X_train, y_train, 'training')
        has_validation = X_val is not None and y_val is not None
        if has_validation:
            self._check_arrays(X_val, y_val, 'test')

        if self.model is None:
            self.build(np.shape(X_train)[1])

        with tensor_scope(self.device) as scope:
            train_x = scope.tensor(X_train)
            train_y = scope.tensor(y_train, shape=(-1, 1))
            val_x = scope.tensor(X_val) if has_validation else None
            val_y = scope.tensor(y_val, shape=(-1, 1)) if has_validation else None

            for epoch in range(1, epochs + 1):
                loss, mae = self._train_epoch(scope, train_x, train_y, batch_size, shuffle)

                if has_validation:
                    val_loss, val_mae = self._evaluate_tensors(val_x, val_y)
                else:
                    val_loss, val_mae = float('nan'), float('nan')

                yield EpochMetrics(
                    epoch=epoch, loss=loss, val_loss=val_loss, mae=mae, val_mae=val_mae
                )

        self.is_fitted = True
        self.metadata['n_samples'] = int(len(y_train))
        self.metadata['epochs'] = epochs

    def _train_epoch(
        self,
        scope: TensorScope,
        x: torch.Tensor,
        y: torch.Tensor,
        batch_size: int,
        shuffle: bool
    ) -> Tuple[float, float]:
        self.model.train()
        n = x.shape[0]

        if shuffle:
            order = torch.randperm(n, generator=self._generator).to(self.device)
        else:
            order = torch.arange(n, device=self.device)

        total_loss, total_abs = 0.0, 0.0
        for start in range(0, n, batch_size):
            idx = order[start:start + batch_size]
            xb, yb = x[idx], y[idx]

            self.optimizer.zero_grad(set_to_none=True)
            pred = self.model(xb)
            loss = self.loss_fn(pred, yb)
            loss.backward()
            self.optimizer.step()

            total_loss += loss.item() * len(idx)
            total_abs += (pred.detach() - yb).abs().sum().item()

        return total_loss / n, total_abs / n

    def _evaluate_tensors(self, x: torch.Tensor, y: torch.Tensor) -> Tuple[float, float]:
        self.model.eval()
        with torch.no_grad():
            pred = self.model(x)
            loss = self.loss_fn(pred, y).item()
            mae = (pred - y).abs().mean().item()
        return loss, mae

    def evaluate(self, X: np.ndarray, y: np.ndarray) -> Dict[str, float]:
        """
        Compute loss (MSE) and MAE on a held-out set.

        Args:
            X: Features
            y: Targets

        Returns:
            Dictionary with 'loss' and 'mae'
        """
        if self.model is None:
            raise ValueError("Model must be built before evaluating")
        self._check_arrays(X, y, 'test')

        with tensor_scope(self.device) as scope:
            loss, mae = self._evaluate_tensors(
                scope.tensor(X), scope.tensor(y, shape=(-1, 1))
            )

        return {'loss': loss, 'mae': mae}

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Generate predictions.

        Args:
            X: Input features, shape (n, input_dim)

        Returns:
            Array of predictions, shape (n,)
        """
        if self.model is None:
            raise ValueError("Model must be built before predicting")

        X = np.atleast_2d(np.asarray(X, dtype=np.float32))
        if X.shape[1] != self.input_dim:
            raise ShapeError(f"Expected {self.input_dim} features, got {X.shape[1]}")

        self.model.eval()
        with tensor_scope(self.device) as scope, torch.no_grad():
            output = scope.track(self.model(scope.tensor(X)))
            predictions = output.squeeze(-1).cpu().numpy().astype(np.float64)

        return predictions

    def _get_state(self) -> Any:
        if self.model is None:
            return None
        return {k: v.detach().cpu().numpy() for k, v in self.model.state_dict().items()}

    def _set_state(self, state: Any) -> None:
        self.build(self.params['input_dim'])
        self.model.load_state_dict({k: torch.as_tensor(v) for k, v in state.items()})
        self.model.eval()
