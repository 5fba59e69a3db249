"""Rule-based interview scoring used when the LLM is unavailable."""

import re
from typing import Any, Dict, List

from database.models.evaluations import Recommendation

STRUCTURE_MARKERS = (
    "first",
    "then",
    "finally",
    "because",
    "for example",
    "as a result",
    "situation",
    "result",
)
COLLABORATION_MARKERS = ("team", "we ", "together", "collaborat", "stakeholder", "mentor", "learn")


def _words(text: str) -> List[str]:
    return re.findall(r"[a-zA-Z0-9+#.]+", text.lower())


def recommendation_for(overall: float) -> Recommendation:
    if overall >= 80:
        return Recommendation.HIRE
    if overall >= 65:
        return Recommendation.HIRE_WITH_CONDITIONS
    if overall >= 50:
        return Recommendation.NEEDS_FURTHER_EVALUATION
    return Recommendation.NO_HIRE


def score_interview(responses: List[Dict[str, Any]], job_keywords: List[str]) -> Dict[str, Any]:
    """
    Score a transcript from answer length, structure and keyword coverage.

    Deterministic: the same transcript always yields the same result.
    """
    if not responses:
        return {
            "technical_score": 0.0,
            "communication_score": 0.0,
            "cultural_fit_score": 0.0,
            "overall_score": 0.0,
            "recommendation": Recommendation.NO_HIRE,
            "feedback": "No answers were recorded.",
            "strengths": [],
            "improvements": ["Complete the interview questions"],
        }

    answers = [str(r.get("answer") or "") for r in responses]
    word_counts = [len(_words(a)) for a in answers]
    lowered = " ".join(answers).lower()

    # Communication: answers of 40-250 words score best
    def length_score(count: int) -> float:
        if count == 0:
            return 0.0
        if count < 40:
            return 30 + count * 1.25
        if count <= 250:
            return 80.0
        return 70.0

    base_comm = sum(length_score(c) for c in word_counts) / len(word_counts)
    structure_hits = sum(1 for marker in STRUCTURE_MARKERS if marker in lowered)
    communication = min(100.0, base_comm + structure_hits * 2.5)

    keywords = sorted({k.lower() for k in job_keywords if k})
    if keywords:
        covered = sum(1 for k in keywords if re.search(rf"\b{re.escape(k)}\b", lowered))
        coverage = covered / len(keywords)
    else:
        coverage = 0.5
    technical = min(100.0, 40 + coverage * 45 + min(sum(word_counts) / len(word_counts), 150) / 10)

    collaboration_hits = sum(1 for marker in COLLABORATION_MARKERS if marker in lowered)
    cultural_fit = min(100.0, 55 + collaboration_hits * 6)

    overall = round(technical * 0.4 + communication * 0.35 + cultural_fit * 0.25, 1)

    strengths, improvements = [], []
    if communication >= 70:
        strengths.append("Clear, well-developed answers")
    else:
        improvements.append("Give fuller answers with concrete examples")
    if coverage >= 0.5:
        strengths.append("Covered the role's key skills")
    else:
        improvements.append("Relate answers more closely to the role's requirements")
    if collaboration_hits >= 2:
        strengths.append("Shows a collaborative working style")

    return {
        "technical_score": round(technical, 1),
        "communication_score": round(communication, 1),
        "cultural_fit_score": round(cultural_fit, 1),
        "overall_score": overall,
        "recommendation": recommendation_for(overall),
        "feedback": (
            f"Rule-based assessment of {len(answers)} answers "
            f"(average {sum(word_counts) // len(word_counts)} words)."
        ),
        "strengths": strengths,
        "improvements": improvements,
    }
