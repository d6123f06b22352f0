"""
Evaluation module for model performance assessment.

This module provides:
- Regression metrics calculation
- Per-epoch training history
- Visualization tools
"""

from .metrics import calculate_metrics, TrainingHistory
from .visualizer import TrainingVisualizer

__all__ = [
    "calculate_metrics",
    "TrainingHistory",
    "TrainingVisualizer"
]
