"""Multiple-choice question generation for drive tests."""

import logging
from typing import Any, Dict, List, Optional

from agents.aptitude.prompts import APTITUDE_SYSTEM_PROMPT, build_aptitude_prompt
from agents.aptitude.question_bank import fallback_mcqs
from agents.base import BaseAgent, LLMUnavailable
from agents.registry import register_agent

logger = logging.getLogger(__name__)


@register_agent("aptitude_questions")
class AptitudeQuestionAgent(BaseAgent):
    """Writes aptitude (round 1) or technical (round 2) questions."""

    def __init__(self, client: Optional[Any] = None):
        super().__init__(
            name="aptitude_questions",
            instructions=APTITUDE_SYSTEM_PROMPT,
            client=client,
        )

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Generate questions.

        Args:
            input_data: ``test_round``, ``count``, ``difficulty``, ``topics``
                and an optional ``job`` dict

        Returns:
            ``{"questions": [...], "source": "llm" | "fallback"}``; each
            question has ``question``, ``options``, ``correct_answer``
            (one of the options) and ``tags``
        """
        test_round = input_data.get("test_round", 1)
        count = max(1, int(input_data.get("count") or 1))

        if self.available:
            try:
                payload = await self.run_json(build_aptitude_prompt({**input_data, "count": count}))
                questions = self._validate(payload)[:count]
                return {"questions": questions, "source": "llm"}
            except LLMUnavailable as exc:
                logger.warning("Aptitude question generation fell back to the bank: %s", exc)

        return {"questions": fallback_mcqs(test_round, count), "source": "fallback"}

    @staticmethod
    def _validate(payload: Any) -> List[Dict[str, Any]]:
        items = payload.get("questions") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise LLMUnavailable("question payload missing 'questions' list")

        questions = []
        for item in items:
            if not isinstance(item, dict):
                continue
            text = str(item.get("question") or "").strip()
            options = [str(o).strip() for o in item.get("options") or [] if str(o).strip()]
            answer = item.get("correct_answer")
            # index into the options, or the option text itself
            if isinstance(answer, int) and not isinstance(answer, bool) and 0 <= answer < len(options):
                answer = options[answer]
            answer = str(answer).strip() if answer is not None else ""
            if not text or len(options) < 2 or answer not in options:
                continue
            questions.append({
                "question": text,
                "options": options,
                "correct_answer": answer,
                "tags": [str(t) for t in item.get("tags") or []],
            })
        if not questions:
            raise LLMUnavailable("no usable questions in reply")
        return questions
