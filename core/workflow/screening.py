"""
Screening qualification policy.

A candidate's screening reply, whether a free-text email or the structured
form, is first adapted into ``ScreeningAnswers``. A ``ScreeningEvaluator``
then scores those answers against ``JobCriteria`` derived from the job text.
Trigger code only ever sees the resulting ``ScreeningResult``.

Scoring (``WeightedCriteriaEvaluator``):
  * each criterion the job asks for adds 1 to the criteria count and
    contributes 1.0 (clear match), 0.5 (partial/buffered match) or 0;
  * a flat 0.5 engagement bonus is added when the reply is affirmative or
    longer than 50 characters;
  * qualification rate = score / criteria count, qualified at >= threshold.
When the job yields no criteria the generic rule applies: more than 20
characters and at least one engagement keyword.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from core.config import settings

SKILL_CHECKLIST = (
    "python",
    "java",
    "javascript",
    "react",
    "node",
    "sql",
    "machine learning",
    "ai",
    "data science",
    "backend",
    "frontend",
)

AFFIRMATIVE_KEYWORDS = ("yes", "interested", "available")
GENERIC_KEYWORDS = ("yes", "interested", "available", "experience")

_JOB_SALARY = re.compile(r"(\d+(?:\.\d+)?)\s*(lpa|lakhs?|lacs?|k|thousand)\b")
_JOB_EXPERIENCE = re.compile(r"(\d+)\s*\+?\s*years?")
_REPLY_SALARY = re.compile(r"(\d+(?:\.\d+)?)\s*(lpa|lakhs?|lacs?|k|thousand)\b")
_REPLY_EXPERIENCE = re.compile(r"(\d+(?:\.\d+)?)\s*\+?\s*(?:years?|yrs?)\b")
_SALARY_WORDS = re.compile(r"\b(ctc|salary|lpa|lakhs?|compensation|package)\b")
_NOTICE_WORDS = re.compile(r"\b(notice|immediate(ly)?|available|join(ing)?)\b")
_RELOCATION_WORDS = re.compile(r"relocat|willing to move|open to mov")
_RELOCATION_REFUSAL = re.compile(
    r"(not|n't|unable to|cannot|can not)\s+(be\s+)?(willing\s+to\s+)?(relocat|move)"
)
_NUMBERED_ANSWER = re.compile(r"^\s*(\d+)[.)]\s*(.+)$")
_QA_PAIR = re.compile(r"Q\s*\d*\s*[:.]\s*(.+?)\s*\n\s*A\s*\d*\s*[:.]\s*(.+)", re.IGNORECASE)
_REPLY_HEADER = re.compile(r"^\s*On .+wrote:\s*$", re.IGNORECASE)


def _to_lakhs(amount: float, unit: str) -> float:
    if unit in ("k", "thousand"):
        return amount / 100
    return amount


def _contains_word(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


# ==================== Job criteria ===================== #
@dataclass(frozen=True)
class JobCriteria:
    """What a job's text asks screening replies to cover."""

    requires_salary_info: bool = False
    salary_range: Optional[tuple[float, float]] = None  # lakhs per annum
    requires_experience: bool = False
    min_experience: Optional[float] = None
    requires_relocation: bool = False
    allows_remote: bool = False
    requires_notice_period: bool = False
    skills: tuple[str, ...] = ()

    @classmethod
    def from_text(cls, text: str, work_type: str = "onsite") -> "JobCriteria":
        text = (text or "").lower()

        salary_amounts = [
            _to_lakhs(float(amount), unit) for amount, unit in _JOB_SALARY.findall(text)
        ]
        requires_salary = bool(salary_amounts) or "salary" in text or "compensation" in text
        salary_range = (
            (min(salary_amounts), max(salary_amounts)) if salary_amounts else None
        )

        years = [int(value) for value in _JOB_EXPERIENCE.findall(text)]
        requires_experience = bool(years) or "experience" in text

        requires_relocation = (
            "relocat" in text
            or "willing to move" in text
            or (work_type == "onsite" and "local" not in text)
        )
        requires_notice = any(word in text for word in ("notice", "immediately", "joining"))

        return cls(
            requires_salary_info=requires_salary,
            salary_range=salary_range,
            requires_experience=requires_experience,
            min_experience=float(min(years)) if years else None,
            requires_relocation=requires_relocation,
            allows_remote="remote" in text or work_type == "remote",
            requires_notice_period=requires_notice,
            skills=tuple(skill for skill in SKILL_CHECKLIST if _contains_word(text, skill)),
        )

    @classmethod
    def from_job(cls, job: Any) -> "JobCriteria":
        work_type = getattr(job.work_type, "value", job.work_type) or "onsite"
        return cls.from_text(job.criteria_text, work_type=work_type)

    @property
    def count(self) -> int:
        return sum(
            (
                self.requires_salary_info,
                self.requires_experience,
                self.requires_relocation,
                self.requires_notice_period,
                bool(self.skills),
            )
        )


# ==================== Candidate answers ===================== #
@dataclass
class ScreeningAnswers:
    """
    Channel-independent view of a screening reply.

    Structured fields are None when the reply does not state them; numeric
    values without a recognisable unit are treated as not stated.
    """

    text: str
    answers: list[dict[str, str]] = field(default_factory=list)
    salary_disclosed: bool = False
    salary_lakhs: Optional[float] = None
    experience_years: Optional[float] = None
    relocation_ok: Optional[bool] = None
    notice_disclosed: bool = False
    skills: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """No text and no structured answer."""
        return not self.text.strip() and not (
            self.salary_disclosed
            or self.experience_years is not None
            or self.relocation_ok is not None
            or self.notice_disclosed
            or self.skills
        )

    @property
    def engaged(self) -> bool:
        lowered = self.text.lower()
        return any(_contains_word(lowered, word) for word in AFFIRMATIVE_KEYWORDS) or len(
            self.text.strip()
        ) > 50

    def mentions_skill(self, skill: str) -> bool:
        if any(skill == s.lower().strip() for s in self.skills):
            return True
        return _contains_word(self.text.lower(), skill)

    @classmethod
    def from_text(cls, body: str) -> "ScreeningAnswers":
        text = strip_quoted_reply(body or "")
        lowered = text.lower()

        salary_match = _REPLY_SALARY.search(lowered)
        experience_match = _REPLY_EXPERIENCE.search(lowered)

        relocation_ok: Optional[bool] = None
        if _RELOCATION_REFUSAL.search(lowered):
            relocation_ok = False
        elif _RELOCATION_WORDS.search(lowered):
            relocation_ok = True

        return cls(
            text=text,
            answers=parse_screening_answers(text),
            salary_disclosed=bool(_SALARY_WORDS.search(lowered)),
            salary_lakhs=(
                _to_lakhs(float(salary_match.group(1)), salary_match.group(2))
                if salary_match
                else None
            ),
            experience_years=float(experience_match.group(1)) if experience_match else None,
            relocation_ok=relocation_ok,
            notice_disclosed=bool(_NOTICE_WORDS.search(lowered)),
        )

    @classmethod
    def from_form(
        cls,
        years_of_experience: Optional[float] = None,
        expected_salary_lpa: Optional[float] = None,
        current_ctc_lpa: Optional[float] = None,
        notice_period_days: Optional[int] = None,
        willing_to_relocate: Optional[bool] = None,
        skills: Optional[list[str]] = None,
        answers: Optional[list[dict[str, str]]] = None,
        comments: Optional[str] = None,
    ) -> "ScreeningAnswers":
        answers = answers or []
        parts = [a.get("answer", "") for a in answers]
        if comments:
            parts.append(comments)
        if skills:
            parts.append(", ".join(skills))
        salary = expected_salary_lpa if expected_salary_lpa is not None else current_ctc_lpa
        return cls(
            text="\n".join(p for p in parts if p),
            answers=answers,
            salary_disclosed=salary is not None,
            salary_lakhs=salary,
            experience_years=years_of_experience,
            relocation_ok=willing_to_relocate,
            notice_disclosed=notice_period_days is not None,
            skills=list(skills or []),
        )


@dataclass
class ScreeningResult:
    qualified: bool
    rate: float
    score: float
    criteria_count: int
    path: str  # criteria, no_criteria, generic, empty
    breakdown: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "qualified": self.qualified,
            "rate": round(self.rate, 4),
            "score": self.score,
            "criteria_count": self.criteria_count,
            "path": self.path,
            "breakdown": self.breakdown,
        }


# ==================== Evaluators ===================== #
class ScreeningEvaluator(Protocol):
    def evaluate(
        self, answers: ScreeningAnswers, criteria: Optional[JobCriteria]
    ) -> ScreeningResult:
        ...


class WeightedCriteriaEvaluator:
    """Keyword-weighted criteria scorer; the only screening policy in use."""

    def __init__(self, threshold: Optional[float] = None):
        self.threshold = settings.screening_qualify_threshold if threshold is None else threshold

    def evaluate(
        self, answers: ScreeningAnswers, criteria: Optional[JobCriteria]
    ) -> ScreeningResult:
        if answers.is_empty:
            return ScreeningResult(False, 0.0, 0.0, 0, "empty")

        if criteria is None:
            return self._generic(answers)
        if criteria.count == 0:
            return ScreeningResult(False, 0.0, 0.0, 0, "no_criteria")

        breakdown: dict[str, float] = {}

        if criteria.requires_salary_info:
            breakdown["salary"] = self._salary(answers, criteria)
        if criteria.requires_experience:
            breakdown["experience"] = self._experience(answers, criteria)
        if criteria.requires_relocation:
            breakdown["relocation"] = 1.0 if answers.relocation_ok else 0.0
        if criteria.requires_notice_period:
            breakdown["notice_period"] = 1.0 if answers.notice_disclosed else 0.0
        if criteria.skills:
            matched = sum(1 for skill in criteria.skills if answers.mentions_skill(skill))
            breakdown["skills"] = min(matched / len(criteria.skills), 1.0)

        score = sum(breakdown.values())
        if answers.engaged:
            score += 0.5
            breakdown["engagement"] = 0.5

        count = criteria.count
        rate = score / count
        return ScreeningResult(
            qualified=rate >= self.threshold,
            rate=rate,
            score=score,
            criteria_count=count,
            path="criteria",
            breakdown=breakdown,
        )

    @staticmethod
    def _salary(answers: ScreeningAnswers, criteria: JobCriteria) -> float:
        if not answers.salary_disclosed:
            return 0.0
        if criteria.salary_range is None:
            return 1.0
        low, high = criteria.salary_range
        if answers.salary_lakhs is not None and low <= answers.salary_lakhs <= high * 1.5:
            return 1.0
        return 0.5

    @staticmethod
    def _experience(answers: ScreeningAnswers, criteria: JobCriteria) -> float:
        years = answers.experience_years
        if years is None:
            return 0.0
        minimum = criteria.min_experience
        if minimum is None or years >= minimum:
            return 1.0
        if years >= 0.8 * minimum:
            return 0.5
        return 0.0

    @staticmethod
    def _generic(answers: ScreeningAnswers) -> ScreeningResult:
        lowered = answers.text.lower()
        qualified = len(answers.text.strip()) > 20 and any(
            _contains_word(lowered, word) for word in GENERIC_KEYWORDS
        )
        return ScreeningResult(
            qualified=qualified,
            rate=1.0 if qualified else 0.0,
            score=1.0 if qualified else 0.0,
            criteria_count=0,
            path="generic",
        )


def evaluate_screening(
    answers: ScreeningAnswers,
    job: Any = None,
    evaluator: Optional[ScreeningEvaluator] = None,
) -> ScreeningResult:
    """Score answers against a job (or the generic rule when no job is known)."""
    evaluator = evaluator or WeightedCriteriaEvaluator()
    criteria = JobCriteria.from_job(job) if job is not None else None
    return evaluator.evaluate(answers, criteria)


# ==================== Free-text parsing ===================== #
def strip_quoted_reply(body: str) -> str:
    """Drop quoted history (``>`` lines and everything after ``On ... wrote:``)."""
    kept: list[str] = []
    for line in body.splitlines():
        if _REPLY_HEADER.match(line):
            break
        if line.lstrip().startswith(">"):
            continue
        kept.append(line)
    return "\n".join(kept).strip()


def parse_screening_answers(text: str) -> list[dict[str, str]]:
    """
    Pull answers out of an email body. Numbered lines (``1. ...``) become
    answers to question N; ``Q: ... / A: ...`` pairs keep their question.
    """
    pairs = [
        {"question": q.strip(), "answer": a.strip()} for q, a in _QA_PAIR.findall(text)
    ]
    if pairs:
        return pairs

    numbered = []
    for line in text.splitlines():
        match = _NUMBERED_ANSWER.match(line)
        if match:
            numbered.append({"question": f"Question {match.group(1)}", "answer": match.group(2).strip()})
    return numbered
