"""Keyword-overlap matching between resume text and a job posting."""

import re
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

SKILL_VOCABULARY = (
    "python", "java", "javascript", "typescript", "react", "angular", "vue",
    "node", "django", "flask", "fastapi", "spring", "sql", "postgresql", "mysql",
    "mongodb", "redis", "aws", "azure", "gcp", "docker", "kubernetes", "terraform",
    "linux", "git", "ci/cd", "rest", "graphql", "machine learning", "deep learning",
    "data science", "pandas", "numpy", "tensorflow", "pytorch", "nlp", "excel",
    "tableau", "power bi", "c++", "c#", "go", "rust", "kotlin", "swift", "html", "css",
    "figma", "agile", "scrum", "communication", "leadership", "sales", "marketing",
)

_YEARS = re.compile(r"(\d+(?:\.\d+)?)\s*\+?\s*(?:years?|yrs?)")
_EMAIL = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE = re.compile(r"\+?\d[\d\s().-]{7,}\d")


def _has_term(text: str, term: str) -> bool:
    return re.search(rf"(?<![a-z0-9+#]){re.escape(term)}(?![a-z0-9+#])", text) is not None


def find_skills(text: str, vocabulary: Iterable[str] = SKILL_VOCABULARY) -> list[str]:
    lowered = (text or "").lower()
    return [term for term in vocabulary if _has_term(lowered, term)]


def estimate_experience_years(text: str) -> Optional[float]:
    """Largest ``N years`` figure in the text, or None."""
    values = [float(v) for v in _YEARS.findall((text or "").lower())]
    return max(values) if values else None


@dataclass
class MatchResult:
    match_score: float
    skills_match: float
    experience_match: float
    matched_skills: list[str]
    missing_skills: list[str]

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_match(
    resume_text: str,
    job_text: str,
    required_years: Optional[float] = None,
    candidate_years: Optional[float] = None,
) -> MatchResult:
    """
    Score a resume against a job from 0 to 100.

    70% of the score is the share of the job's skills found in the resume,
    30% is how well stated experience covers the job's requirement.
    """
    job_skills = find_skills(job_text)
    resume_skills = set(find_skills(resume_text))
    matched = [s for s in job_skills if s in resume_skills]
    missing = [s for s in job_skills if s not in resume_skills]
    skills_match = (len(matched) / len(job_skills) * 100) if job_skills else 50.0

    if required_years is None:
        required_years = estimate_experience_years(job_text)
    if candidate_years is None:
        candidate_years = estimate_experience_years(resume_text)

    if not required_years:
        experience_match = 100.0 if candidate_years else 50.0
    elif candidate_years is None:
        experience_match = 0.0
    else:
        experience_match = min(candidate_years / required_years, 1.0) * 100

    score = round(skills_match * 0.7 + experience_match * 0.3, 1)
    return MatchResult(
        match_score=score,
        skills_match=round(skills_match, 1),
        experience_match=round(experience_match, 1),
        matched_skills=matched,
        missing_skills=missing,
    )


def guess_contact(text: str) -> dict:
    """Best-effort name/email/phone from the top of a resume."""
    email = _EMAIL.search(text or "")
    phone = _PHONE.search(text or "")
    name = None
    for line in (text or "").splitlines():
        stripped = line.strip()
        if stripped and "@" not in stripped and len(stripped.split()) <= 5 and not any(
            ch.isdigit() for ch in stripped
        ):
            name = stripped
            break
    return {
        "name": name,
        "email": email.group(0).lower() if email else None,
        "phone": phone.group(0).strip() if phone else None,
    }
