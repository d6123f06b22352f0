"""Tests for the pipeline state machine."""

import pytest

from ev_range.exceptions import StateTransitionError
from ev_range.pipeline import PipelineState, StateMachine

TRAINING_PATH = [
    PipelineState.LOADING,
    PipelineState.PREPROCESSING,
    PipelineState.BUILDING_MODEL,
    PipelineState.TRAINING,
    PipelineState.READY,
]


def test_starts_idle() -> None:
    machine = StateMachine()
    assert machine.state is PipelineState.IDLE
    assert not machine.is_ready


def test_happy_path() -> None:
    machine = StateMachine()

    for state in TRAINING_PATH:
        assert machine.can_transition(state)
        machine.transition(state)
        assert machine.state is state

    assert machine.is_ready
    assert machine.failed_stage is None
    assert machine.error is None


def test_stages_cannot_be_skipped() -> None:
    machine = StateMachine()
    machine.transition(PipelineState.LOADING)

    with pytest.raises(StateTransitionError, match="loading -> training"):
        machine.transition(PipelineState.TRAINING)


def test_restore_path() -> None:
    machine = StateMachine()
    machine.transition(PipelineState.READY)
    assert machine.is_ready


def test_ready_is_final_for_training() -> None:
    machine = StateMachine()
    for state in TRAINING_PATH:
        machine.transition(state)

    assert not machine.can_transition(PipelineState.LOADING)
    with pytest.raises(StateTransitionError):
        machine.transition(PipelineState.LOADING)


@pytest.mark.parametrize("stage_count", [1, 2, 3, 4])
def test_fail_records_stage(stage_count: int) -> None:
    machine = StateMachine()
    for state in TRAINING_PATH[:stage_count]:
        machine.transition(state)

    machine.fail("something broke")

    assert machine.state is PipelineState.FAILED
    assert machine.failed_stage is TRAINING_PATH[stage_count - 1]
    assert machine.error == "something broke"
    assert "something broke" in repr(machine)


def test_failed_is_terminal() -> None:
    machine = StateMachine()
    machine.transition(PipelineState.LOADING)
    machine.fail("bad file")

    for state in PipelineState:
        assert not machine.can_transition(state)
    with pytest.raises(StateTransitionError):
        machine.fail("again")


def test_failed_only_through_fail() -> None:
    machine = StateMachine()

    with pytest.raises(StateTransitionError, match="fail"):
        machine.transition(PipelineState.FAILED)
