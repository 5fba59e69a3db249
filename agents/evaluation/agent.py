"""Evaluation agent for completed AI interviews."""

import logging
from typing import Any, Dict, Optional

from agents.base import BaseAgent, LLMUnavailable
from agents.evaluation.prompts import EVALUATION_SYSTEM_PROMPT, build_evaluation_prompt
from agents.evaluation.tools import recommendation_for, score_interview
from agents.registry import register_agent
from database.models.evaluations import Recommendation

logger = logging.getLogger(__name__)

SCORE_KEYS = ("technical_score", "communication_score", "cultural_fit_score", "overall_score")


@register_agent("interview_evaluation")
class InterviewEvaluationAgent(BaseAgent):
    """Scores a finished interview transcript."""

    def __init__(self, client: Optional[Any] = None):
        super().__init__(
            name="interview_evaluation",
            instructions=EVALUATION_SYSTEM_PROMPT,
            client=client,
        )

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Evaluate an interview.

        Args:
            input_data: ``responses`` list plus ``candidate`` and ``job`` dicts
                (``job["keywords"]`` feeds the rule-based fallback)

        Returns:
            Scores, ``recommendation`` (Recommendation), feedback lists and
            ``source`` ("llm" or "rules")
        """
        responses = input_data.get("responses") or []
        candidate = input_data.get("candidate", {})
        job = input_data.get("job", {})

        if self.available and responses:
            try:
                payload = await self.run_json(build_evaluation_prompt(responses, candidate, job))
                result = self._validate(payload)
                result["source"] = "llm"
                return result
            except LLMUnavailable as exc:
                logger.warning("Interview evaluation fell back to rules: %s", exc)

        result = score_interview(responses, job.get("keywords") or [])
        result["source"] = "rules"
        return result

    @staticmethod
    def _validate(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise LLMUnavailable("evaluation reply is not an object")
        result: Dict[str, Any] = {}
        for key in SCORE_KEYS:
            try:
                value = float(payload[key])
            except (KeyError, TypeError, ValueError) as exc:
                raise LLMUnavailable(f"evaluation reply missing {key}") from exc
            result[key] = max(0.0, min(100.0, value))

        try:
            result["recommendation"] = Recommendation(str(payload.get("recommendation", "")).lower())
        except ValueError:
            result["recommendation"] = recommendation_for(result["overall_score"])

        result["feedback"] = str(payload.get("feedback") or "")
        result["strengths"] = [str(s) for s in payload.get("strengths") or []]
        result["improvements"] = [str(s) for s in payload.get("improvements") or []]
        return result
