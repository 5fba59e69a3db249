"""Interview question generation prompt templates."""

from agents.common.prompts import JSON_OUTPUT, PROFESSIONAL_TONE


INTERVIEW_SYSTEM_PROMPT = f"""{PROFESSIONAL_TONE}

You are an experienced interviewer preparing a structured first-round
interview that a candidate answers on video, one question at a time.

Guidelines:
- Ask open questions that cannot be answered with yes or no
- Mix technical, behavioral and situational questions
- Tailor questions to the role and to the candidate's background
- Never ask about age, family, religion, health or other protected attributes
- Keep each question to one or two sentences

{JSON_OUTPUT}"""


def build_question_prompt(candidate: dict, job: dict, count: int, seed_questions: list[str]) -> str:
    seeds = "\n".join(f"- {q}" for q in seed_questions) or "- (none)"
    return f"""Write exactly {count} interview questions.

ROLE:
Title: {job.get("title")}
Department: {job.get("department") or "n/a"}
Description: {job.get("description") or ""}
Requirements: {job.get("requirements") or ""}

CANDIDATE:
Name: {candidate.get("name")}
Skills: {", ".join(candidate.get("skills") or []) or "n/a"}
Experience (years): {candidate.get("experience_years") or "n/a"}

QUESTIONS ALREADY CHOSEN BY THE HIRING TEAM (do not repeat them):
{seeds}

Return JSON: {{"questions": ["...", "..."]}}"""
