"""
Status state machines.

Every status column is changed through one of the ``advance_*`` functions
below, each backed by an explicit table of legal moves. Moving to the
current state is a no-op and returns False so triggers can tell a real
transition from a repeat.
"""

from enum import Enum
from typing import Mapping, TypeVar

from core.exceptions import InvalidTransition
from database.models.applications import Application, ApplicationStatus
from database.models.decisions import DecisionMatrix, DecisionType
from database.models.interviews import Interview, InterviewStatus
from database.models.offers import JobOffer, OfferStatus
from database.models.onboarding import OnboardingTask, OnboardingTaskStatus

S = TypeVar("S", bound=Enum)

AS = ApplicationStatus
APPLICATION_TRANSITIONS: Mapping[ApplicationStatus, frozenset] = {
    AS.APPLIED: frozenset(
        {AS.SCREENING_SENT, AS.INTERVIEW_INVITED, AS.INTERVIEW_SCHEDULED, AS.REJECTED, AS.HIRED}
    ),
    AS.SCREENING_SENT: frozenset(
        {AS.SCREENED, AS.INTERVIEW_INVITED, AS.INTERVIEW_SCHEDULED, AS.REJECTED, AS.HIRED}
    ),
    AS.SCREENED: frozenset({AS.INTERVIEW_INVITED, AS.INTERVIEW_SCHEDULED, AS.REJECTED, AS.HIRED}),
    AS.INTERVIEW_INVITED: frozenset(
        {AS.INTERVIEW_SCHEDULED, AS.INTERVIEW_COMPLETED, AS.REJECTED, AS.HIRED}
    ),
    AS.INTERVIEW_SCHEDULED: frozenset({AS.INTERVIEW_COMPLETED, AS.REJECTED, AS.HIRED}),
    # back to scheduled when a further round is booked
    AS.INTERVIEW_COMPLETED: frozenset({AS.INTERVIEW_SCHEDULED, AS.REJECTED, AS.HIRED}),
    AS.REJECTED: frozenset(),
    AS.HIRED: frozenset(),
}

IS = InterviewStatus
INTERVIEW_TRANSITIONS: Mapping[InterviewStatus, frozenset] = {
    IS.SCHEDULED: frozenset({IS.IN_PROGRESS, IS.CANCELLED}),
    IS.IN_PROGRESS: frozenset({IS.COMPLETED, IS.CANCELLED}),
    IS.COMPLETED: frozenset(),
    IS.CANCELLED: frozenset(),
}

OS = OfferStatus
OFFER_TRANSITIONS: Mapping[OfferStatus, frozenset] = {
    OS.PENDING: frozenset({OS.ACCEPTED, OS.REJECTED, OS.EXPIRED}),
    OS.ACCEPTED: frozenset(),
    OS.REJECTED: frozenset(),
    OS.EXPIRED: frozenset(),
}

TS = OnboardingTaskStatus
ONBOARDING_TRANSITIONS: Mapping[OnboardingTaskStatus, frozenset] = {
    TS.PENDING: frozenset({TS.IN_PROGRESS, TS.COMPLETED}),
    TS.IN_PROGRESS: frozenset({TS.COMPLETED, TS.PENDING}),
    TS.COMPLETED: frozenset(),
}

DS = DecisionType
DECISION_TRANSITIONS: Mapping[DecisionType, frozenset] = {
    DS.PENDING: frozenset({DS.PROCEED, DS.HIRE, DS.REJECT, DS.HOLD}),
    DS.HOLD: frozenset({DS.PROCEED, DS.HIRE, DS.REJECT}),
    DS.PROCEED: frozenset({DS.PROCEED, DS.HIRE, DS.REJECT, DS.HOLD}),
    DS.HIRE: frozenset(),
    DS.REJECT: frozenset(),
}

TERMINAL_APPLICATION_STATES = frozenset({AS.REJECTED, AS.HIRED})


def can_transition(table: Mapping[S, frozenset], current: S, target: S) -> bool:
    return target in table.get(current, frozenset())


def check_transition(entity: str, table: Mapping[S, frozenset], current: S, target: S) -> bool:
    """
    Validate a move. Returns False for a same-state repeat, True for a legal
    move, and raises InvalidTransition otherwise.
    """
    if current == target:
        return False
    if not can_transition(table, current, target):
        raise InvalidTransition(entity, current, target)
    return True


def advance_application(application: Application, target: ApplicationStatus) -> bool:
    changed = check_transition(
        "Application", APPLICATION_TRANSITIONS, application.status, target
    )
    if changed:
        application.status = target
    return changed


def advance_interview(interview: Interview, target: InterviewStatus) -> bool:
    changed = check_transition("Interview", INTERVIEW_TRANSITIONS, interview.status, target)
    if changed:
        interview.status = target
    return changed


def advance_offer(offer: JobOffer, target: OfferStatus) -> bool:
    changed = check_transition("JobOffer", OFFER_TRANSITIONS, offer.status, target)
    if changed:
        offer.status = target
    return changed


def advance_onboarding_task(task: OnboardingTask, target: OnboardingTaskStatus) -> bool:
    changed = check_transition(
        "OnboardingTask", ONBOARDING_TRANSITIONS, task.status, target
    )
    if changed:
        task.status = target
    return changed


def advance_decision(
    decision: DecisionMatrix,
    target: DecisionType,
    next_round: str | None = None,
) -> bool:
    """
    Decisions are the one place a repeat is meaningful: ``proceed`` to a
    different next round is a new event, ``proceed`` to the same one is not.
    """
    if decision.decision == target:
        if target == DecisionType.PROCEED and next_round and next_round != decision.next_round:
            decision.next_round = next_round
            return True
        return False
    check_transition("DecisionMatrix", DECISION_TRANSITIONS, decision.decision, target)
    decision.decision = target
    if target == DecisionType.PROCEED:
        decision.next_round = next_round
    return True


def derive_interview_status(interview: Interview) -> InterviewStatus:
    """
    Status implied by the stored responses. Cancelled sessions stay cancelled;
    otherwise a full response list means completed, any response or a start
    time means in progress.
    """
    if interview.status == InterviewStatus.CANCELLED:
        return InterviewStatus.CANCELLED
    answered = len(interview.responses or [])
    if interview.total_questions and answered >= interview.total_questions:
        return InterviewStatus.COMPLETED
    if answered or interview.started_at is not None:
        return InterviewStatus.IN_PROGRESS
    return InterviewStatus.SCHEDULED
