"""
Pipeline lifecycle states and guarded transitions.
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ..exceptions import StateTransitionError

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    PREPROCESSING = 'preprocessing'
    BUILDING_MODEL = 'building_model'
    TRAINING = 'training'
    READY = 'ready'
    FAILED = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self is PipelineState.FAILED


# IDLE -> READY is the restore-from-disk path
TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.LOADING, PipelineState.READY}),
    PipelineState.LOADING: frozenset({PipelineState.PREPROCESSING}),
    PipelineState.PREPROCESSING: frozenset({PipelineState.BUILDING_MODEL}),
    PipelineState.BUILDING_MODEL: frozenset({PipelineState.TRAINING}),
    PipelineState.TRAINING: frozenset({PipelineState.READY}),
    PipelineState.READY: frozenset(),
    PipelineState.FAILED: frozenset(),
}


class StateMachine:
    """
    Explicit lifecycle of one pipeline session.

    Any non-terminal state may fail; FAILED is terminal and records the
    stage that failed together with the error message.
    """

    def __init__(self):
        self.state = PipelineState.IDLE
        self.failed_stage: Optional[PipelineState] = None
        self.error: Optional[str] = None

    def can_transition(self, target: PipelineState) -> bool:
        if target is PipelineState.FAILED:
            return not self.state.is_terminal
        return target in TRANSITIONS[self.state]

    def transition(self, target: PipelineState) -> None:
        if target is PipelineState.FAILED:
            raise StateTransitionError("Use fail() to enter the failed state")
        if not self.can_transition(target):
            raise StateTransitionError(
                f"Illegal transition {self.state.value} -> {target.value}"
            )
        self._set(target)

    def fail(self, message: str) -> None:
        """Record a failure of the current stage."""
        if self.state.is_terminal:
            raise StateTransitionError(f"Already failed in stage {self.failed_stage.value}")
        self.failed_stage = self.state
        self.error = message
        self._set(PipelineState.FAILED)

    def _set(self, target: PipelineState) -> None:
        previous = self.state
        self.state = target
        logger.debug(f"State {previous.value} -> {target.value}")

    @property
    def is_ready(self) -> bool:
        return self.state is PipelineState.READY

    @property
    def is_training(self) -> bool:
        return self.state is PipelineState.TRAINING

    def __repr__(self) -> str:
        if self.state is PipelineState.FAILED:
            return f"StateMachine(failed in {self.failed_stage.value}: {self.error})"
        return f"StateMachine({self.state.value})"
