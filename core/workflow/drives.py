"""
Drive test scoring and cutoff qualification.

Both functions are pure so a cutoff change can be replayed over stored
scores and give exactly the result a first-time grading would have.
"""

from typing import Iterable, Mapping, Optional, Protocol

from database.models.drives import QualificationStatus

APTITUDE_ROUND = 1
TECHNICAL_ROUND = 2

ROUND_NAMES = {
    APTITUDE_ROUND: "Aptitude",
    TECHNICAL_ROUND: "Technical",
}


class GradedQuestion(Protocol):
    id: int
    correct_answer: str


def score_test(
    questions: Iterable[GradedQuestion], answers: Mapping[str, str]
) -> tuple[int, int]:
    """
    Grade a submission.

    ``answers`` maps question id (as a string) to the chosen option. The
    score is the percentage of the questions actually asked, rounded.

    Returns:
        ``(correct, score)``
    """
    asked = list(questions)
    if not asked:
        return 0, 0
    correct = sum(
        1
        for question in asked
        if str(answers.get(str(question.id), "")).strip() == question.correct_answer.strip()
    )
    return correct, round(correct / len(asked) * 100)


def recompute_qualification(
    aptitude_score: Optional[float],
    technical_score: Optional[float],
    aptitude_cutoff: float,
    technical_cutoff: float,
    current: QualificationStatus,
) -> QualificationStatus:
    """
    Qualification implied by stored scores and the given cutoffs.

    With both scores both cutoffs must be met; with only an aptitude score
    the aptitude cutoff decides; with no scores the status is unchanged.
    """
    if aptitude_score is not None and technical_score is not None:
        passed = aptitude_score >= aptitude_cutoff and technical_score >= technical_cutoff
    elif aptitude_score is not None:
        passed = aptitude_score >= aptitude_cutoff
    else:
        return current
    return QualificationStatus.QUALIFIED if passed else QualificationStatus.NOT_QUALIFIED
