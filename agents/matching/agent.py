"""Resume-to-job matching agent."""

import logging
from typing import Any, Dict, Optional

from agents.base import BaseAgent, LLMUnavailable
from agents.matching.prompts import MATCHING_SYSTEM_PROMPT, build_matching_prompt
from agents.registry import register_agent
from lib.matching import calculate_match

logger = logging.getLogger(__name__)

SCORE_KEYS = ("match_score", "skills_match", "experience_match")


@register_agent("resume_matching")
class ResumeMatchingAgent(BaseAgent):
    """Scores a candidate against a job, with keyword overlap as fallback."""

    def __init__(self, client: Optional[Any] = None):
        super().__init__(
            name="resume_matching",
            instructions=MATCHING_SYSTEM_PROMPT,
            client=client,
        )

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Match a candidate to a job.

        Args:
            input_data: ``candidate`` dict (``resume_text``, ``skills``,
                ``experience_years``, ``summary``) and ``job`` dict
                (``title``, ``description``, ``requirements``, ``criteria_text``)

        Returns:
            The three scores (0-100), matched/missing skills, ``analysis``
            and ``source`` ("llm" or "rules")
        """
        candidate = input_data.get("candidate", {})
        job = input_data.get("job", {})

        if self.available:
            try:
                payload = await self.run_json(build_matching_prompt(candidate, job))
                result = self._validate(payload)
                result["source"] = "llm"
                return result
            except LLMUnavailable as exc:
                logger.warning("Resume matching fell back to rules: %s", exc)

        resume = " ".join(
            filter(None, [
                candidate.get("resume_text"),
                " ".join(candidate.get("skills") or []),
                candidate.get("summary"),
            ])
        )
        match = calculate_match(
            resume,
            job.get("criteria_text") or "",
            candidate_years=candidate.get("experience_years"),
        )
        result = match.to_dict()
        result["analysis"] = (
            f"Matched {len(match.matched_skills)} of "
            f"{len(match.matched_skills) + len(match.missing_skills)} job skills."
        )
        result["source"] = "rules"
        return result

    @staticmethod
    def _validate(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise LLMUnavailable("matching reply is not an object")
        result: Dict[str, Any] = {}
        for key in SCORE_KEYS:
            try:
                value = float(payload[key])
            except (KeyError, TypeError, ValueError) as exc:
                raise LLMUnavailable(f"matching reply missing {key}") from exc
            result[key] = round(max(0.0, min(100.0, value)), 1)

        result["matched_skills"] = [str(s) for s in payload.get("matched_skills") or []]
        result["missing_skills"] = [str(s) for s in payload.get("missing_skills") or []]
        result["analysis"] = str(payload.get("analysis") or "")
        return result
