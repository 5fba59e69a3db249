"""Interview question generation agent."""

import logging
from typing import Any, Dict, Optional

from agents.base import BaseAgent, LLMUnavailable
from agents.interview.prompts import INTERVIEW_SYSTEM_PROMPT, build_question_prompt
from agents.interview.question_bank import fallback_questions
from agents.registry import register_agent

logger = logging.getLogger(__name__)


@register_agent("interview_questions")
class QuestionGeneratorAgent(BaseAgent):
    """Builds the fixed question list for an AI interview."""

    def __init__(self, client: Optional[Any] = None):
        super().__init__(
            name="interview_questions",
            instructions=INTERVIEW_SYSTEM_PROMPT,
            client=client,
        )

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Generate questions.

        Args:
            input_data: ``candidate`` and ``job`` dicts, ``count`` and optional
                ``configured`` questions from the job's interview config

        Returns:
            ``{"questions": [...], "source": "config" | "llm" | "fallback"}``
        """
        candidate = input_data.get("candidate", {})
        job = input_data.get("job", {})
        count = max(1, int(input_data.get("count") or 1))
        configured = [q for q in input_data.get("configured") or [] if q]

        questions = configured[:count]
        if len(questions) == count:
            return {"questions": questions, "source": "config"}

        source = "config" if questions else "fallback"
        missing = count - len(questions)
        generated: list[str] = []
        if self.available:
            try:
                generated = await self._generate(candidate, job, missing, questions)
                source = "llm"
            except LLMUnavailable as exc:
                logger.warning("Question generation fell back to question bank: %s", exc)

        for question in generated + fallback_questions(job.get("title", ""), count * 2):
            if len(questions) >= count:
                break
            if question not in questions:
                questions.append(question)

        return {"questions": questions, "source": source}

    async def _generate(
        self, candidate: dict, job: dict, count: int, seeds: list[str]
    ) -> list[str]:
        payload = await self.run_json(build_question_prompt(candidate, job, count, seeds))
        questions = payload.get("questions") if isinstance(payload, dict) else payload
        if not isinstance(questions, list):
            raise LLMUnavailable("question payload missing 'questions' list")
        cleaned = [str(q).strip() for q in questions if str(q).strip()]
        if not cleaned:
            raise LLMUnavailable("no usable questions in reply")
        return cleaned[:count]
