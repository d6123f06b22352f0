"""
Pipeline orchestrator for the end-to-end training and inference workflow.

Manages the complete lifecycle:
1. Data loading
2. Validation, feature fitting and train/test split
3. Model building
4. Training with per-epoch progress
5. Point predictions for user-entered specifications

The orchestrator runs on a single asyncio event loop. It yields
control after every stage and every epoch so a host UI can repaint;
the state machine rejects a second run or an early prediction that
slips in at one of those yield points.
"""

import asyncio
import logging
import math
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import joblib
import numpy as np

from .. import __version__
from ..config import Config
from ..data import DataLoader, DataValidator
from ..evaluation.metrics import TrainingHistory
from ..exceptions import EmptyDatasetError, StateTransitionError, TrainingCancelledError
from ..features import FeaturePipeline, FittedFeatures, split_dataset
from ..features.split import DatasetSplit
from ..models import ModelTrainer, NeuralRangeRegressor
from .predictor import RangePredictor, coerce_form_input
from .progress import (
    STAGE_ACTIVE,
    STAGE_COMPLETE,
    STAGE_FAILED,
    EpochProgress,
    ProgressObserver,
    should_redraw,
)
from .state import PipelineState, StateMachine

logger = logging.getLogger(__name__)

READY_MESSAGE = "Model ready! Enter vehicle specifications to predict range."


class RangePipeline:
    """
    Main pipeline orchestrator.

    Coordinates loading, preprocessing, model building and training,
    then serves predictions from the trained model. One instance is one
    session: a failure is terminal and recovery means a new instance.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        config_path: str = "config/config.yaml",
        observers: Optional[Iterable[ProgressObserver]] = None
    ):
        """
        Initialize pipeline.

        Args:
            config: Configuration object (or load from path)
            config_path: Path to config file
            observers: Progress observers notified of stages and epochs
        """
        self.config = config or Config(config_path)

        # Initialize components
        self.loader = DataLoader(self.config)
        self.validator = DataValidator(self.config)
        self.feature_pipeline = FeaturePipeline(self.config)
        self.trainer = ModelTrainer(self.config)
        self.observers: List[ProgressObserver] = list(observers or [])

        self.state_machine = StateMachine()
        self.history = TrainingHistory()

        self.fitted: Optional[FittedFeatures] = None
        self.split: Optional[DatasetSplit] = None
        self.model: Optional[NeuralRangeRegressor] = None
        self.predictor: Optional[RangePredictor] = None
        self.test_metrics: Dict[str, float] = {}

        self._cancel_requested = False
        self._results: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self.state_machine.state

    @property
    def is_ready(self) -> bool:
        return self.state_machine.is_ready

    @property
    def is_training(self) -> bool:
        return self.state_machine.is_training

    @property
    def error(self) -> Optional[str]:
        return self.state_machine.error

    def add_observer(self, observer: ProgressObserver) -> None:
        self.observers.append(observer)

    def _notify(self, hook: str, *args) -> None:
        for observer in self.observers:
            getattr(observer, hook)(*args)

    def cancel(self) -> bool:
        """
        Request that an in-flight run stops at the next stage or epoch boundary.

        Returns:
            True if a run was in progress
        """
        if self.state in (PipelineState.IDLE, PipelineState.READY, PipelineState.FAILED):
            return False

        logger.warning("Cancellation requested")
        self._cancel_requested = True
        return True

    # ------------------------------------------------------------------
    # Training lifecycle
    # ------------------------------------------------------------------

    def _fail(self, message: str, exc_info: bool = False) -> None:
        """Move the current stage to FAILED and tell observers."""
        stage = self.state
        self.state_machine.fail(f"{stage.value}: {message}")
        logger.error(f"Stage {stage.value} failed: {message}", exc_info=exc_info)
        self._notify('on_stage', stage, STAGE_FAILED, message)
        self._notify('on_status', PipelineState.FAILED, f"Initialization failed: {self.state_machine.error}")

    @contextmanager
    def _stage(self, stage: PipelineState) -> Iterator[Dict[str, Any]]:
        """Enter a stage; on error or task cancellation move to FAILED(stage) and re-raise."""
        self.state_machine.transition(stage)
        self._notify('on_stage', stage, STAGE_ACTIVE, '')
        logger.info("\n" + "=" * 60)
        logger.info(f"STAGE: {stage.value.upper()}")
        logger.info("=" * 60)

        step: Dict[str, Any] = {'success': False, 'details': ''}
        self._results['steps'][stage.value] = step

        try:
            yield step
            self._notify('on_stage', stage, STAGE_COMPLETE, step['details'])
            step['success'] = True
        except asyncio.CancelledError:
            step['error'] = 'cancelled'
            self._fail('cancelled')
            raise
        except Exception as e:
            step['error'] = str(e)
            self._fail(str(e), exc_info=True)
            raise

    async def _checkpoint(self) -> None:
        """Yield between stages; a pending cancel fails the stage just finished."""
        try:
            await asyncio.sleep(0)
        except asyncio.CancelledError:
            self._fail('cancelled')
            raise

        if self._cancel_requested:
            self._fail('Run cancelled')
            raise TrainingCancelledError("Run cancelled")

    async def run(self, data_path: Optional[Union[str, Path]] = None) -> Optional[Dict[str, Any]]:
        """
        Run the complete training lifecycle.

        Only valid from the IDLE state; any other call is ignored.

        Args:
            data_path: CSV file to train on (default: configured path)

        Returns:
            Dictionary with run results, or None when the request was rejected
        """
        if self.state is not PipelineState.IDLE:
            logger.warning(f"Run rejected: pipeline is {self.state.value}")
            return None

        start_time = datetime.now()
        training_config = self.config.training_config

        logger.info("=" * 80)
        logger.info("EV RANGE PIPELINE")
        logger.info(f"Start time: {start_time}")
        logger.info("=" * 80)

        self._results = results = {
            'start_time': start_time,
            'steps': {}
        }

        try:
            with self._stage(PipelineState.LOADING) as step:
                raw = self.loader.load_csv(data_path)
                if raw.empty:
                    raise EmptyDatasetError("No data found in CSV file")
                step['details'] = f"{len(raw)} samples loaded"
            await self._checkpoint()

            with self._stage(PipelineState.PREPROCESSING) as step:
                valid = self.validator.validate_and_filter(raw)
                fitted, X, y = self.feature_pipeline.prepare_training_data(valid)
                rng = np.random.default_rng(training_config.seed)
                split = split_dataset(X, y, ratio=training_config.train_ratio, rng=rng)
                self.fitted, self.split = fitted, split
                step['details'] = f"{split.input_dim} features, {len(split.train)} train samples"
            await self._checkpoint()

            with self._stage(PipelineState.BUILDING_MODEL) as step:
                model = self.trainer.create_model(split.input_dim)
                model.feature_names = fitted.feature_names
                step['details'] = f"{model.param_count} parameters"
            await self._checkpoint()

            with self._stage(PipelineState.TRAINING) as step:
                await self._train(model, split)
                step['details'] = "Training completed successfully"

            self.model = model
            self.predictor = RangePredictor(model, fitted)
            self.state_machine.transition(PipelineState.READY)
            self._notify('on_status', PipelineState.READY, READY_MESSAGE)

            results['success'] = True

        except Exception as e:
            results['success'] = False
            results['error'] = self.state_machine.error or str(e)
            results['failed_stage'] = (
                self.state_machine.failed_stage.value
                if self.state_machine.failed_stage else None
            )

        end_time = datetime.now()
        results['end_time'] = end_time
        results['duration_seconds'] = (end_time - start_time).total_seconds()
        results['state'] = self.state.value
        results['epochs_completed'] = len(self.history)
        results['test_metrics'] = dict(self.test_metrics)

        self._print_summary(results)

        return results

    async def _train(self, model: NeuralRangeRegressor, split: DatasetSplit) -> None:
        """Fit with per-epoch reporting, then evaluate on the test split."""
        training_config = self.config.training_config
        total_epochs = training_config.epochs

        self.history.reset()
        iterator = self.trainer.train_iter(model, split)

        try:
            for metrics in iterator:
                self.history.append(metrics)

                if not (math.isfinite(metrics.loss) and math.isfinite(metrics.val_loss)):
                    logger.warning(f"Non-finite loss at epoch {metrics.epoch}")

                progress = EpochProgress(
                    metrics=metrics,
                    total_epochs=total_epochs,
                    redraw_chart=should_redraw(metrics.epoch, total_epochs, training_config.chart_every)
                )
                self._notify('on_epoch_end', progress)

                # Let the host repaint before the next epoch
                await asyncio.sleep(0)

                if self._cancel_requested:
                    raise TrainingCancelledError("Training cancelled")
        finally:
            iterator.close()

        self.test_metrics = self.trainer.evaluate(model, split)

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    async def predict(self, record: Mapping[str, Any]) -> Optional[int]:
        """
        Predict the range for one vehicle.

        A no-op returning None unless the pipeline is READY.

        Args:
            record: Feature name to value

        Returns:
            Range in whole kilometers, or None when not ready
        """
        if not self.is_ready:
            logger.warning(f"Prediction ignored: pipeline is {self.state.value}")
            return None

        # Yield one frame before the forward pass
        await asyncio.sleep(0)

        unseen = self.predictor.unseen_categories(record)
        if unseen:
            logger.warning(f"Unseen categories (encoded as all zeros): {unseen}")

        range_km = self.predictor.predict(record)
        logger.info(f"Predicted range: {range_km} km")

        return range_km

    async def predict_form(self, raw: Mapping[str, Any]) -> Optional[int]:
        """Predict from raw form values (strings allowed)."""
        if not self.is_ready:
            logger.warning(f"Prediction ignored: pipeline is {self.state.value}")
            return None

        return await self.predict(coerce_form_input(raw, self.fitted))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_artifacts(self, filepath: Optional[Union[str, Path]] = None) -> Path:
        """
        Save the trained model and fitted features together.

        Args:
            filepath: Target file (default: <models_path>/ev_range.joblib)

        Returns:
            Path to the saved artifacts
        """
        if not self.is_ready:
            raise StateTransitionError(f"Cannot save artifacts while {self.state.value}")

        filepath = Path(filepath) if filepath else self.config.models_path / "ev_range.joblib"
        filepath.parent.mkdir(parents=True, exist_ok=True)

        self.model.metadata['saved_at'] = datetime.now().isoformat()
        payload = {
            'version': __version__,
            'model': self.model.to_payload(),
            'features': self.fitted.to_dict(),
            'test_metrics': self.test_metrics,
        }
        joblib.dump(payload, filepath)

        logger.info(f"Artifacts saved to {filepath}")

        return filepath

    def restore(self, filepath: Union[str, Path]) -> None:
        """
        Load saved artifacts and move straight to READY.

        Args:
            filepath: File written by ``save_artifacts``
        """
        if self.state is not PipelineState.IDLE:
            raise StateTransitionError(f"Cannot restore while {self.state.value}")

        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Artifacts not found: {filepath}")

        payload = joblib.load(filepath)
        model = NeuralRangeRegressor.from_payload(payload['model'])
        fitted = FittedFeatures.from_dict(payload['features'])

        self.model, self.fitted = model, fitted
        self.predictor = RangePredictor(model, fitted)
        self.test_metrics = dict(payload.get('test_metrics', {}))
        self.state_machine.transition(PipelineState.READY)

        logger.info(f"Artifacts restored from {filepath}")
        self._notify('on_status', PipelineState.READY, READY_MESSAGE)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _print_summary(self, results: Dict) -> None:
        """Print execution summary."""
        logger.info("\n" + "=" * 80)
        logger.info("PIPELINE SUMMARY")
        logger.info("=" * 80)
        logger.info(f"Duration: {results['duration_seconds']:.1f} seconds")
        logger.info(f"Status: {'SUCCESS' if results['success'] else 'FAILED'}")

        for step_name, step_result in results.get('steps', {}).items():
            status = "✓" if step_result.get('success', False) else "✗"
            logger.info(f"  {status} {step_name}")

        if results.get('error'):
            logger.info(f"Error: {results['error']}")

        logger.info("=" * 80)
