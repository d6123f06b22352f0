"""Tests for metrics, training history and progress reporting."""

import math

import numpy as np
import pytest

from ev_range.evaluation import TrainingHistory, TrainingVisualizer, calculate_metrics
from ev_range.models import EpochMetrics
from ev_range.pipeline import ConsoleProgressReporter, EpochProgress, PipelineState
from ev_range.pipeline.progress import STAGE_ACTIVE, should_redraw


def epoch(n: int, loss: float = 10.0) -> EpochMetrics:
    return EpochMetrics(epoch=n, loss=loss, val_loss=loss + 1, mae=loss / 2, val_mae=loss / 2 + 1)


class TestCalculateMetrics:
    """Tests for calculate_metrics."""

    def test_perfect_predictions(self) -> None:
        metrics = calculate_metrics([300.0, 400.0, 500.0], [300.0, 400.0, 500.0])

        assert metrics["mae"] == 0.0
        assert metrics["rmse"] == 0.0
        assert metrics["r2"] == pytest.approx(1.0)

    def test_known_errors(self) -> None:
        metrics = calculate_metrics(np.array([100.0, 200.0]), np.array([110.0, 190.0]))

        assert metrics["mae"] == pytest.approx(10.0)
        assert metrics["mse"] == pytest.approx(100.0)
        assert metrics["rmse"] == pytest.approx(10.0)

    def test_single_sample_has_no_r2(self) -> None:
        assert math.isnan(calculate_metrics([1.0], [2.0])["r2"])

    def test_nan_pairs_ignored(self) -> None:
        metrics = calculate_metrics([1.0, np.nan, 3.0], [1.0, 2.0, 3.0])
        assert metrics["mae"] == 0.0


class TestTrainingHistory:
    """Tests for TrainingHistory."""

    def test_append_in_order(self) -> None:
        history = TrainingHistory()
        for n in (1, 2, 3):
            history.append(epoch(n, loss=10.0 - n))

        assert len(history) == 3
        assert history.loss == [9.0, 8.0, 7.0]
        assert history[-1].epoch == 3

    def test_out_of_order_rejected(self) -> None:
        history = TrainingHistory()
        history.append(epoch(1))

        with pytest.raises(ValueError, match="Expected epoch 2"):
            history.append(epoch(3))

    def test_reset(self) -> None:
        history = TrainingHistory()
        history.append(epoch(1))
        history.reset()
        history.append(epoch(1))

        assert len(history) == 1

    def test_to_frame(self) -> None:
        history = TrainingHistory()
        history.append(epoch(1, 4.0))
        history.append(epoch(2, 2.0))

        frame = history.to_frame()

        assert list(frame.index) == [1, 2]
        assert list(frame["val_loss"]) == [5.0, 3.0]
        assert list(history.smoothed_loss(2)) == [4.0, 3.0]

    def test_empty_frame(self) -> None:
        assert TrainingHistory().to_frame().empty


class TestProgress:
    """Tests for chart cadence and the console reporter."""

    @pytest.mark.parametrize(
        "n,total,expected",
        [(1, 100, False), (5, 100, True), (10, 100, True), (99, 100, False), (100, 100, True), (7, 7, True)],
    )
    def test_should_redraw(self, n: int, total: int, expected: bool) -> None:
        assert should_redraw(n, total) is expected

    def test_percent(self) -> None:
        assert EpochProgress(epoch(25), total_epochs=100).percent == pytest.approx(25.0)

    def test_reporter_draws_chart(self, tmp_path) -> None:
        reporter = ConsoleProgressReporter(visualizer=TrainingVisualizer(tmp_path))
        reporter.on_stage(PipelineState.TRAINING, STAGE_ACTIVE)

        for n in (1, 2):
            reporter.on_epoch_end(EpochProgress(epoch(n), total_epochs=2, redraw_chart=n == 2))

        assert reporter.charts_drawn == 1
        assert len(reporter.history) == 2
        assert (tmp_path / "training_history.png").exists()

    def test_reporter_without_visualizer(self) -> None:
        reporter = ConsoleProgressReporter()
        reporter.on_epoch_end(EpochProgress(epoch(1), total_epochs=1, redraw_chart=True))

        assert reporter.charts_drawn == 0

    def test_actual_vs_predicted_plot(self, tmp_path) -> None:
        fig = TrainingVisualizer(tmp_path).plot_actual_vs_predicted(
            np.array([300.0, 400.0]), np.array([310.0, 390.0]), save_name="scatter"
        )

        assert fig is not None
        assert (tmp_path / "scatter.png").exists()
