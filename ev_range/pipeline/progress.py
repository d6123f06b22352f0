"""
Progress reporting for the training pipeline.

The orchestrator pushes stage updates, per-epoch metrics and terminal
status to any number of observers. Observers never drive the pipeline;
they only watch it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import matplotlib.pyplot as plt

from ..evaluation.metrics import TrainingHistory
from ..evaluation.visualizer import TrainingVisualizer
from ..models.base import EpochMetrics
from .state import PipelineState

logger = logging.getLogger(__name__)

STAGE_PENDING = 'pending'
STAGE_ACTIVE = 'active'
STAGE_COMPLETE = 'complete'
STAGE_FAILED = 'failed'


def should_redraw(epoch: int, total_epochs: int, every: int = 5) -> bool:
    """Chart cadence: every ``every`` epochs and on the final epoch."""
    return epoch % every == 0 or epoch == total_epochs


@dataclass(frozen=True)
class EpochProgress:
    """Snapshot pushed to observers after each epoch."""
    metrics: EpochMetrics
    total_epochs: int
    redraw_chart: bool = False

    @property
    def epoch(self) -> int:
        return self.metrics.epoch

    @property
    def loss(self) -> float:
        return self.metrics.loss

    @property
    def val_loss(self) -> float:
        return self.metrics.val_loss

    @property
    def mae(self) -> float:
        return self.metrics.mae

    @property
    def percent(self) -> float:
        return 100.0 * self.epoch / self.total_epochs


class ProgressObserver:
    """Base observer; override the hooks you need."""

    def on_stage(self, stage: PipelineState, status: str, details: str = '') -> None:
        pass

    def on_epoch_end(self, progress: EpochProgress) -> None:
        pass

    def on_status(self, state: PipelineState, message: str) -> None:
        pass


class ConsoleProgressReporter(ProgressObserver):
    """
    Logs pipeline progress and optionally keeps a loss chart up to date.

    Args:
        visualizer: When given, the loss chart is redrawn at the chart
            cadence and saved as ``chart_name``.png
        chart_name: File stem of the saved chart
    """

    ICONS = {
        STAGE_PENDING: '○',
        STAGE_ACTIVE: '⟳',
        STAGE_COMPLETE: '✓',
        STAGE_FAILED: '✗',
    }

    def __init__(
        self,
        visualizer: Optional[TrainingVisualizer] = None,
        chart_name: str = 'training_history'
    ):
        self.visualizer = visualizer
        self.chart_name = chart_name
        self.history = TrainingHistory()
        self.charts_drawn = 0

    def on_stage(self, stage: PipelineState, status: str, details: str = '') -> None:
        icon = self.ICONS.get(status, '?')
        message = f"{icon} {stage.value}"
        if details:
            message = f"{message} - {details}"

        if status == STAGE_FAILED:
            logger.error(message)
        else:
            logger.info(message)

        if stage is PipelineState.TRAINING and status == STAGE_ACTIVE:
            self.history.reset()

    def on_epoch_end(self, progress: EpochProgress) -> None:
        self.history.append(progress.metrics)

        logger.info(
            f"Epoch {progress.epoch}/{progress.total_epochs} "
            f"[{progress.percent:5.1f}%] "
            f"loss={progress.loss:.2f} val_loss={progress.val_loss:.2f} mae={progress.mae:.2f}"
        )

        if progress.redraw_chart and self.visualizer is not None:
            fig = self.visualizer.plot_training_history(self.history, save_name=self.chart_name)
            plt.close(fig)
            self.charts_drawn += 1

    def on_status(self, state: PipelineState, message: str) -> None:
        if state is PipelineState.FAILED:
            logger.error(message)
        else:
            logger.info(message)
