"""
Models module for EV range prediction.

This module provides:
- Base model interface
- Feed-forward neural network regressor (PyTorch)
- Scoped tensor ownership
- Training orchestration
"""

from .base import BaseModel, EpochMetrics
from .regressor import NeuralRangeRegressor
from .resources import TensorScope, open_scope_count, tensor_scope
from .trainer import ModelTrainer

__all__ = [
    "BaseModel",
    "EpochMetrics",
    "NeuralRangeRegressor",
    "TensorScope",
    "open_scope_count",
    "tensor_scope",
    "ModelTrainer"
]
