"""
Pipeline module for the training and inference lifecycle.

This module provides:
- Lifecycle state machine
- Progress observers
- Single-vehicle prediction
- The async orchestrator tying it all together
"""

from .orchestrator import RangePipeline
from .predictor import RangePredictor
from .progress import ConsoleProgressReporter, EpochProgress, ProgressObserver
from .state import PipelineState, StateMachine

__all__ = [
    "RangePipeline",
    "RangePredictor",
    "ConsoleProgressReporter",
    "EpochProgress",
    "ProgressObserver",
    "PipelineState",
    "StateMachine"
]
