"""Deterministic interview questions used when no LLM is available."""

GENERAL_QUESTIONS = [
    "Tell me about yourself and what drew you to this role.",
    "Walk me through a project you are proud of and your specific contribution to it.",
    "Describe a difficult problem you solved recently. How did you approach it?",
    "Tell me about a time you disagreed with a teammate. How did you resolve it?",
    "How do you prioritise when several tasks are due at the same time?",
    "Describe a mistake you made at work and what you learned from it.",
    "How do you keep your skills up to date?",
    "Tell me about a time you had to learn something new quickly.",
    "What kind of work environment helps you do your best work?",
    "Where do you see yourself growing over the next two years?",
]

ROLE_QUESTIONS = {
    "engineer": [
        "How do you make sure the code you ship is correct and maintainable?",
        "Describe a system you designed. What trade-offs did you make?",
        "How do you debug an issue that only happens in production?",
    ],
    "developer": [
        "How do you make sure the code you ship is correct and maintainable?",
        "Tell me about a performance problem you diagnosed and fixed.",
    ],
    "data": [
        "How do you validate that a dataset is fit for the analysis you are doing?",
        "Describe a model or analysis whose results changed a decision.",
    ],
    "design": [
        "Walk me through your design process from brief to hand-off.",
        "How do you incorporate user research into your designs?",
    ],
    "manager": [
        "How do you support an under-performing team member?",
        "Describe how you set goals for your team and track progress.",
    ],
    "sales": [
        "Walk me through how you qualify a new lead.",
        "Tell me about a deal you lost and what you changed afterwards.",
    ],
}


def fallback_questions(job_title: str, count: int) -> list[str]:
    """Role-specific questions first, then the general list, capped at ``count``."""
    title = (job_title or "").lower()
    questions: list[str] = []
    for keyword, role_questions in ROLE_QUESTIONS.items():
        if keyword in title:
            for question in role_questions:
                if question not in questions:
                    questions.append(question)
    for question in GENERAL_QUESTIONS:
        if question not in questions:
            questions.append(question)
    return questions[:count]
