"""Unit tests for the project transition table and its guards."""

import pytest

from src.kernel.models.project import ProjectStatus
from src.orchestration.state_machine import (
    INITIAL_STATUS,
    STEP_FOR_STATUS,
    TERMINAL_STATES,
    TransitionEvent,
    allowed_sources,
    can_transition,
    is_terminal,
    next_status,
    valid_events,
)
from src.ai.types import WorkflowStep

S = ProjectStatus
E = TransitionEvent


class TestTransitionTable:
    """Every row of the lifecycle table, and nothing else."""

    @pytest.mark.parametrize(
        "source,event,target",
        [
            (S.INTERVIEWING, E.INTERVIEW_NEEDS_INFO, S.AWAITING_ANSWER),
            (S.INTERVIEWING, E.INTERVIEW_COMPLETED, S.ANALYZING),
            (S.INTERVIEWING, E.INTERVIEW_FAILED, S.ANALYZING),
            (S.AWAITING_ANSWER, E.ANSWER_SUBMITTED, S.INTERVIEWING),
            (S.AWAITING_ANSWER, E.INTERVIEW_SKIPPED, S.ANALYZING),
            (S.INTERVIEWING, E.INTERVIEW_SKIPPED, S.ANALYZING),
            (S.ANALYZING, E.ANALYSIS_SUCCEEDED, S.AWAITING_REQUIREMENTS_APPROVAL),
            (S.ANALYZING, E.ANALYSIS_FAILED, S.FAILED),
            (S.AWAITING_REQUIREMENTS_APPROVAL, E.REQUIREMENTS_APPROVED, S.GENERATING_CODE),
            (S.AWAITING_REQUIREMENTS_APPROVAL, E.REQUIREMENTS_REJECTED, S.REJECTED),
            (S.GENERATING_CODE, E.CODE_GENERATED, S.AWAITING_CODE_APPROVAL),
            (S.GENERATING_CODE, E.CODE_GENERATION_FAILED, S.FAILED),
            (S.AWAITING_CODE_APPROVAL, E.CODE_APPROVED, S.COMPLETED),
            (S.AWAITING_CODE_APPROVAL, E.CODE_REJECTED, S.REJECTED),
        ],
    )
    def test_allowed_transition(self, source, event, target):
        assert next_status(source, event) == target
        assert next_status(source.value, event) == target

    def test_no_other_transitions(self):
        """Exactly 14 (status, event) pairs are accepted."""
        accepted = [
            (status, event)
            for status in ProjectStatus
            for event in TransitionEvent
            if can_transition(status, event)
        ]
        assert len(accepted) == 14

    def test_terminal_states_accept_nothing(self):
        for status in TERMINAL_STATES:
            assert is_terminal(status)
            assert valid_events(status) == []

    def test_initial_status(self):
        assert INITIAL_STATUS == S.INTERVIEWING
        assert not is_terminal(INITIAL_STATUS)


class TestGuards:
    """Re-entrant triggers are refused while a step is outstanding."""

    def test_step_statuses_refuse_user_triggers(self):
        user_triggers = [
            E.ANSWER_SUBMITTED,
            E.REQUIREMENTS_APPROVED,
            E.REQUIREMENTS_REJECTED,
            E.CODE_APPROVED,
            E.CODE_REJECTED,
        ]
        for status in (S.ANALYZING, S.GENERATING_CODE):
            for event in user_triggers + [E.INTERVIEW_SKIPPED]:
                assert not can_transition(status, event), (status, event)

    def test_approval_requires_awaiting_status(self):
        assert allowed_sources(E.REQUIREMENTS_APPROVED) == {S.AWAITING_REQUIREMENTS_APPROVAL}
        assert allowed_sources(E.CODE_APPROVED) == {S.AWAITING_CODE_APPROVAL}

    def test_skip_sources(self):
        assert allowed_sources(E.INTERVIEW_SKIPPED) == {S.INTERVIEWING, S.AWAITING_ANSWER}

    def test_step_results_discarded_after_rejection(self):
        assert not can_transition(S.REJECTED, E.CODE_GENERATED)
        assert not can_transition(S.REJECTED, E.CODE_GENERATION_FAILED)

    def test_each_step_status_maps_to_its_step(self):
        assert STEP_FOR_STATUS == {
            S.INTERVIEWING: WorkflowStep.INTERVIEW,
            S.ANALYZING: WorkflowStep.ANALYZE,
            S.GENERATING_CODE: WorkflowStep.GENERATE,
        }
