"""Interview evaluation prompt templates."""

from agents.common.prompts import (
    ANALYTICAL_TONE,
    JSON_OUTPUT,
    SCORING_GUIDELINES,
)


EVALUATION_SYSTEM_PROMPT = f"""{ANALYTICAL_TONE}

You are a senior talent assessor reviewing a completed first-round
interview transcript. Judge only what the candidate actually said.

Dimensions:
- Technical competency: depth, accuracy and relevance of technical content
- Communication: clarity, structure and concision of answers
- Cultural fit: collaboration, ownership and learning mindset

{SCORING_GUIDELINES}

Recommendation must be one of: hire, hire_with_conditions, no_hire,
needs_further_evaluation.

{JSON_OUTPUT}"""


def build_evaluation_prompt(responses: list[dict], candidate: dict, job: dict) -> str:
    transcript = "\n\n".join(
        f"Q{i}: {r.get('question')}\nA{i}: {r.get('answer')}"
        for i, r in enumerate(responses, start=1)
    )
    return f"""Evaluate this interview for the role of {job.get("title")}.

ROLE REQUIREMENTS:
{job.get("requirements") or job.get("description") or "n/a"}

CANDIDATE: {candidate.get("name")}

TRANSCRIPT:
{transcript}

Return JSON with keys:
technical_score, communication_score, cultural_fit_score, overall_score (numbers 0-100),
recommendation, feedback (string), strengths (list of strings), improvements (list of strings)."""
