"""
Model training orchestration module.

Handles:
- Model construction from configuration
- Epoch-by-epoch training with library errors rewrapped
- Test-set evaluation
- Model persistence
"""

import logging
from typing import Any, Dict, Iterator

from ..exceptions import RangePredictorError, TrainingError
from ..features.split import DatasetSplit
from .base import EpochMetrics
from .regressor import NeuralRangeRegressor

logger = logging.getLogger(__name__)


class ModelTrainer:
    """
    Model training orchestrator.

    Manages training workflow including:
    - Building the network for a known input dimension
    - Fitting against the train split with per-epoch validation
    - Final evaluation on the test split
    - Model persistence
    """

    def __init__(self, config):
        """
        Initialize model trainer.

        Args:
            config: Configuration object
        """
        self.config = config
        self.model_config = config.model_config
        self.training_config = config.training_config

    def model_params(self) -> Dict[str, Any]:
        """Hyperparameters for a new model, taken from configuration."""
        return {
            'hidden_units': self.model_config.hidden_units,
            'dropout_rates': self.model_config.dropout_rates,
            'learning_rate': self.model_config.learning_rate,
            'device': self.model_config.device,
            'epochs': self.training_config.epochs,
            'batch_size': self.training_config.batch_size,
            'shuffle': self.training_config.shuffle,
            'seed': self.training_config.seed,
        }

    def create_model(self, input_dim: int) -> NeuralRangeRegressor:
        """
        Create and build a model instance.

        Args:
            input_dim: Length of the feature vector

        Returns:
            Built (untrained) model
        """
        try:
            model = NeuralRangeRegressor('neural_net', self.model_params())
            model.build(input_dim)
        except Exception as e:
            raise TrainingError(f"Model building failed: {e}") from e

        return model

    def train_iter(
        self,
        model: NeuralRangeRegressor,
        split: DatasetSplit
    ) -> Iterator[EpochMetrics]:
        """
        Fit the model on the train split, validating on the test split.

        Failures from the numerical library are rewrapped as
        TrainingError; closing the iterator early releases the
        training tensors.

        Args:
            model: Built model
            split: Train/test partition

        Yields:
            EpochMetrics per epoch
        """
        epochs = self.training_config.epochs
        logger.info(
            f"Training for {epochs} epochs "
            f"(batch_size={self.training_config.batch_size}, "
            f"train={len(split.train)}, test={len(split.test)})"
        )

        iterator = model.fit_iter(
            split.train.features,
            split.train.targets,
            split.test.features,
            split.test.targets,
            epochs=epochs,
            batch_size=self.training_config.batch_size,
            shuffle=self.training_config.shuffle
        )

        try:
            for metrics in iterator:
                yield metrics
        except RangePredictorError:
            raise
        except Exception as e:
            raise TrainingError(f"Training failed: {e}") from e
        finally:
            iterator.close()

    def evaluate(self, model: NeuralRangeRegressor, split: DatasetSplit) -> Dict[str, float]:
        """
        Evaluate a trained model on the test split.

        Args:
            model: Trained model
            split: Train/test partition

        Returns:
            Dictionary with 'loss', 'mae', 'rmse' and 'r2'
        """
        from ..evaluation.metrics import calculate_metrics

        try:
            results = model.evaluate(split.test.features, split.test.targets)
            y_pred = model.predict(split.test.features)
            extra = calculate_metrics(split.test.targets, y_pred)
        except RangePredictorError:
            raise
        except Exception as e:
            raise TrainingError(f"Evaluation failed: {e}") from e

        results['rmse'] = extra['rmse']
        results['r2'] = extra['r2']

        logger.info(f"Test Loss: {results['loss']:.2f}, Test MAE: {results['mae']:.2f}")

        return results
