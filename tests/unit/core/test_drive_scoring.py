"""
Tests for drive test grading and cutoff recomputation.
"""

import pytest
from types import SimpleNamespace

from core.workflow.drives import recompute_qualification, score_test
from database.models import QualificationStatus


def _questions(*answers):
    return [SimpleNamespace(id=i + 1, correct_answer=a) for i, a in enumerate(answers)]


class TestScoreTest:
    """Percentage grading of a sitting."""

    def test_all_correct(self):
        questions = _questions("A", "B", "C", "D")
        assert score_test(questions, {"1": "A", "2": "B", "3": "C", "4": "D"}) == (4, 100)

    def test_missing_answers_count_as_wrong(self):
        questions = _questions("A", "B", "C")
        assert score_test(questions, {"1": "A"}) == (1, 33)

    def test_answers_are_trimmed(self):
        assert score_test(_questions("Paris"), {"1": "  Paris "}) == (1, 100)

    def test_answers_to_unasked_questions_are_ignored(self):
        questions = _questions("A", "B")
        assert score_test(questions, {"1": "A", "2": "B", "99": "X"}) == (2, 100)

    def test_no_questions_scores_zero(self):
        assert score_test([], {"1": "A"}) == (0, 0)


class TestRecomputeQualification:
    """Qualification from stored scores and cutoffs."""

    def test_raising_cutoff_disqualifies(self):
        status = recompute_qualification(75, None, 80, 70, QualificationStatus.QUALIFIED)
        assert status == QualificationStatus.NOT_QUALIFIED

    def test_lowering_cutoff_qualifies(self):
        status = recompute_qualification(65, None, 60, 70, QualificationStatus.NOT_QUALIFIED)
        assert status == QualificationStatus.QUALIFIED

    def test_both_scores_must_pass(self):
        assert recompute_qualification(90, 60, 60, 70, QualificationStatus.QUALIFIED) == (
            QualificationStatus.NOT_QUALIFIED
        )
        assert recompute_qualification(90, 75, 60, 70, QualificationStatus.NOT_QUALIFIED) == (
            QualificationStatus.QUALIFIED
        )

    def test_no_scores_leaves_status_alone(self):
        status = recompute_qualification(None, None, 60, 70, QualificationStatus.PENDING)
        assert status == QualificationStatus.PENDING

    @pytest.mark.parametrize("scores", [[55, 62, 70, 75, 81, 90, 100, 0]])
    def test_recompute_matches_direct_grading(self, scores):
        """Moving the cutoff 70 -> 80 equals grading everyone at 80 from the start."""
        at_70 = [recompute_qualification(s, None, 70, 70, QualificationStatus.PENDING) for s in scores]
        moved = [recompute_qualification(s, None, 80, 70, q) for s, q in zip(scores, at_70)]
        direct = [recompute_qualification(s, None, 80, 70, QualificationStatus.PENDING) for s in scores]
        assert moved == direct
