"""Aptitude and technical test prompt templates."""

from agents.common.prompts import JSON_OUTPUT


APTITUDE_SYSTEM_PROMPT = f"""You write multiple-choice questions for
recruitment tests. Questions must be fair, unambiguous and free of
cultural or regional bias, with exactly one correct option.

{JSON_OUTPUT}"""

FOCUS = {
    1: """Aptitude and general intelligence: logical reasoning, numerical
ability, verbal reasoning and abstract problem solving.""",
    2: """Technical assessment: programming concepts, algorithms, databases
and SQL, system design and debugging, relevant to the role.""",
}


def build_aptitude_prompt(request: dict) -> str:
    test_round = request.get("test_round", 1)
    topics = ", ".join(request.get("topics") or []) or "any"
    job = request.get("job") or {}
    role = ""
    if test_round == 2 and job.get("title"):
        role = f"\nROLE: {job['title']}\n{(job.get('description') or '')[:1000]}\n"
    return f"""Write exactly {request.get("count")} {request.get("difficulty", "medium")} multiple-choice questions.

FOCUS:
{FOCUS.get(test_round, FOCUS[1])}
{role}
TOPICS: {topics}

Each question has exactly 4 options and one correct answer.

Return JSON: {{"questions": [{{"question": "...", "options": ["...", "...", "...", "..."],
"correct_answer": <index 0-3 or the option text>, "explanation": "...", "tags": ["..."]}}]}}"""
