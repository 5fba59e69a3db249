"""Resume-to-job matching prompt templates."""

from agents.common.prompts import ANALYTICAL_TONE, JSON_OUTPUT


MATCHING_SYSTEM_PROMPT = f"""{ANALYTICAL_TONE}

You compare a candidate's resume with a job posting and estimate how well
they fit. Weigh technical skill alignment, experience level, domain
knowledge and career progression.

{JSON_OUTPUT}"""

# Resume and job text are cut to keep prompts small
RESUME_CHARS = 2000
JOB_CHARS = 1000


def build_matching_prompt(candidate: dict, job: dict) -> str:
    resume = (candidate.get("resume_text") or "")[:RESUME_CHARS]
    return f"""Score how well this candidate matches the job.

CANDIDATE PROFILE:
- Skills: {", ".join(candidate.get("skills") or []) or "not listed"}
- Experience: {candidate.get("experience_years") if candidate.get("experience_years") is not None else "unknown"} years
- Summary: {candidate.get("summary") or "n/a"}
- Resume: {resume or "n/a"}

JOB:
- Title: {job.get("title")}
- Description: {(job.get("description") or "")[:JOB_CHARS]}
- Requirements: {(job.get("requirements") or "")[:JOB_CHARS]}

Return JSON with keys:
match_score, skills_match, experience_match (numbers 0-100),
matched_skills (list of strings), missing_skills (list of strings),
analysis (one or two sentences)."""
