"""
Tests for the status state machines.
"""

import pytest
from types import SimpleNamespace

from core.exceptions import InvalidTransition
from core.workflow.states import (
    APPLICATION_TRANSITIONS,
    TERMINAL_APPLICATION_STATES,
    advance_application,
    advance_decision,
    advance_interview,
    advance_offer,
    advance_onboarding_task,
    can_transition,
    derive_interview_status,
)
from database.models import (
    ApplicationStatus,
    DecisionType,
    InterviewStatus,
    OfferStatus,
    OnboardingTaskStatus,
)


class TestApplicationTransitions:
    """Application status moves."""

    @pytest.mark.parametrize("current,target", [
        (ApplicationStatus.APPLIED, ApplicationStatus.SCREENING_SENT),
        (ApplicationStatus.SCREENING_SENT, ApplicationStatus.SCREENED),
        (ApplicationStatus.SCREENED, ApplicationStatus.INTERVIEW_INVITED),
        (ApplicationStatus.INTERVIEW_INVITED, ApplicationStatus.INTERVIEW_COMPLETED),
        (ApplicationStatus.INTERVIEW_COMPLETED, ApplicationStatus.INTERVIEW_SCHEDULED),
        (ApplicationStatus.INTERVIEW_COMPLETED, ApplicationStatus.HIRED),
    ])
    def test_legal_moves(self, current, target):
        application = SimpleNamespace(status=current)
        assert advance_application(application, target) is True
        assert application.status == target

    def test_repeat_is_noop(self):
        application = SimpleNamespace(status=ApplicationStatus.SCREENED)
        assert advance_application(application, ApplicationStatus.SCREENED) is False
        assert application.status == ApplicationStatus.SCREENED

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_APPLICATION_STATES, key=lambda s: s.value))
    def test_terminal_states_have_no_exits(self, terminal):
        for target in ApplicationStatus:
            if target != terminal:
                assert not can_transition(APPLICATION_TRANSITIONS, terminal, target)

    def test_illegal_move_raises_with_details(self):
        application = SimpleNamespace(status=ApplicationStatus.HIRED)
        with pytest.raises(InvalidTransition) as exc_info:
            advance_application(application, ApplicationStatus.REJECTED)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"entity": "Application", "from": "hired", "to": "rejected"}
        assert application.status == ApplicationStatus.HIRED


class TestInterviewOfferAndTaskTransitions:
    """Interview, offer and onboarding task moves."""

    def test_interview_cannot_skip_to_completed(self):
        interview = SimpleNamespace(status=InterviewStatus.SCHEDULED)
        with pytest.raises(InvalidTransition):
            advance_interview(interview, InterviewStatus.COMPLETED)

    def test_interview_completed_is_final(self):
        interview = SimpleNamespace(status=InterviewStatus.COMPLETED)
        with pytest.raises(InvalidTransition):
            advance_interview(interview, InterviewStatus.CANCELLED)

    def test_offer_pending_to_accepted(self):
        offer = SimpleNamespace(status=OfferStatus.PENDING)
        assert advance_offer(offer, OfferStatus.ACCEPTED) is True

    def test_offer_rejected_cannot_be_accepted(self):
        offer = SimpleNamespace(status=OfferStatus.REJECTED)
        with pytest.raises(InvalidTransition):
            advance_offer(offer, OfferStatus.ACCEPTED)

    def test_task_can_be_reopened_from_in_progress_only(self):
        task = SimpleNamespace(status=OnboardingTaskStatus.IN_PROGRESS)
        assert advance_onboarding_task(task, OnboardingTaskStatus.PENDING) is True

        done = SimpleNamespace(status=OnboardingTaskStatus.COMPLETED)
        with pytest.raises(InvalidTransition):
            advance_onboarding_task(done, OnboardingTaskStatus.PENDING)


class TestDecisionTransitions:
    """Decision repeats and round changes."""

    def test_hire_repeat_is_noop(self):
        decision = SimpleNamespace(decision=DecisionType.HIRE, next_round=None)
        assert advance_decision(decision, DecisionType.HIRE) is False

    def test_proceed_to_new_round_is_a_change(self):
        decision = SimpleNamespace(decision=DecisionType.PROCEED, next_round="Technical Round")
        assert advance_decision(decision, DecisionType.PROCEED, "HR Round") is True
        assert decision.next_round == "HR Round"

    def test_proceed_to_same_round_is_noop(self):
        decision = SimpleNamespace(decision=DecisionType.PROCEED, next_round="HR Round")
        assert advance_decision(decision, DecisionType.PROCEED, "HR Round") is False

    def test_rejected_cannot_be_hired(self):
        decision = SimpleNamespace(decision=DecisionType.REJECT, next_round=None)
        with pytest.raises(InvalidTransition):
            advance_decision(decision, DecisionType.HIRE)


class TestDerivedInterviewStatus:
    """Status derived from stored responses."""

    def _interview(self, status=InterviewStatus.SCHEDULED, total=3, responses=(), started_at=None):
        return SimpleNamespace(
            status=status,
            total_questions=total,
            responses=list(responses),
            started_at=started_at,
        )

    def test_no_responses_is_scheduled(self):
        assert derive_interview_status(self._interview()) == InterviewStatus.SCHEDULED

    def test_partial_responses_are_in_progress(self):
        interview = self._interview(responses=[{"answer": "a"}])
        assert derive_interview_status(interview) == InterviewStatus.IN_PROGRESS

    def test_full_responses_are_completed(self):
        interview = self._interview(total=2, responses=[{"answer": "a"}, {"answer": "b"}])
        assert derive_interview_status(interview) == InterviewStatus.COMPLETED

    def test_cancelled_stays_cancelled(self):
        interview = self._interview(
            status=InterviewStatus.CANCELLED, total=1, responses=[{"answer": "a"}]
        )
        assert derive_interview_status(interview) == InterviewStatus.CANCELLED
