"""
Visualization module for training curves and model analysis.
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

from .metrics import TrainingHistory

logger = logging.getLogger(__name__)

sns.set_style('darkgrid')
plt.rcParams['figure.figsize'] = [12, 6]
plt.rcParams['figure.dpi'] = 100


class TrainingVisualizer:
    """Visualization tools for training history and predictions."""

    def __init__(self, save_path: Optional[Path] = None):
        self.save_path = Path(save_path) if save_path else None
        if self.save_path:
            self.save_path.mkdir(parents=True, exist_ok=True)

    def _save(self, fig: plt.Figure, save_name: Optional[str]) -> Optional[Path]:
        if not (save_name and self.save_path):
            return None
        path = self.save_path / f"{save_name}.png"
        fig.savefig(path, bbox_inches='tight')
        logger.debug(f"Saved figure to {path}")
        return path

    def plot_training_history(
        self,
        history: TrainingHistory,
        title: str = "Training Progress",
        save_name: Optional[str] = None
    ) -> plt.Figure:
        """Plot training/validation loss and MAE per epoch."""
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
        epochs = np.arange(1, len(history) + 1)

        ax1.plot(epochs, history.loss, label='Training Loss', color='#667eea', linewidth=2)
        ax1.plot(epochs, history.val_loss, label='Validation Loss', color='#764ba2', linewidth=2)
        ax1.set_xlabel('Epoch')
        ax1.set_ylabel('Loss (MSE)')
        ax1.set_title(title)
        ax1.legend()

        ax2.plot(epochs, history.mae, label='Training MAE', color='#667eea', linewidth=2)
        ax2.plot(epochs, history.val_mae, label='Validation MAE', color='#764ba2', linewidth=2)
        ax2.set_xlabel('Epoch')
        ax2.set_ylabel('MAE (km)')
        ax2.set_title('Mean Absolute Error')
        ax2.legend()

        plt.tight_layout()
        self._save(fig, save_name)
        return fig

    def plot_actual_vs_predicted(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        title: str = "Actual vs Predicted Range",
        save_name: Optional[str] = None
    ) -> plt.Figure:
        """Scatter plot of predicted against actual range."""
        fig, ax = plt.subplots(figsize=(7, 7))

        ax.scatter(y_true, y_pred, alpha=0.6)
        min_val = min(np.min(y_true), np.min(y_pred))
        max_val = max(np.max(y_true), np.max(y_pred))
        ax.plot([min_val, max_val], [min_val, max_val], 'r--', linewidth=2)
        ax.set_xlabel('Actual range (km)')
        ax.set_ylabel('Predicted range (km)')
        ax.set_title(title)

        plt.tight_layout()
        self._save(fig, save_name)
        return fig
