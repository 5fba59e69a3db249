"""Base agent class for the LLM-backed collaborators."""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from google import genai
from google.genai import types

from core.config import settings

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


class LLMUnavailable(Exception):
    """No client configured, the call failed, or the reply was unusable."""


def build_llm_client(api_key: Optional[str] = None) -> Optional[genai.Client]:
    """
    Build the Gemini client once at start-up. Returns None when no key is
    configured, which puts every agent in fallback mode.
    """
    api_key = api_key or settings.google_api_key
    if not api_key:
        logger.info("GOOGLE_API_KEY not set; LLM agents will use rule-based fallbacks")
        return None
    return genai.Client(api_key=api_key)


class BaseAgent(ABC):
    """
    Base class for all AI agents.

    The client is passed in by the caller; agents never build or cache one
    themselves, so tests and requests can supply their own.
    """

    def __init__(
        self,
        name: str,
        instructions: str,
        client: Optional[Any] = None,
        model: Optional[str] = None,
    ):
        """Initialize the agent.

        Args:
            name: Agent name
            instructions: System instructions for the agent
            client: ``google.genai.Client`` (or compatible) instance, or None
            model: Model to use, defaults to ``settings.llm_model``
        """
        self.name = name
        self.instructions = instructions
        self.client = client
        self.model = model or settings.llm_model

    @property
    def available(self) -> bool:
        return self.client is not None

    @abstractmethod
    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Process input data and return results, falling back when needed."""

    async def run(self, prompt: str, json_output: bool = False) -> str:
        """Send one prompt to the model and return its text."""
        if self.client is None:
            raise LLMUnavailable(f"{self.name}: no LLM client configured")

        config = types.GenerateContentConfig(
            system_instruction=self.instructions,
            response_mime_type="application/json" if json_output else None,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as exc:
            raise LLMUnavailable(f"{self.name}: LLM call failed: {exc}") from exc

        text = getattr(response, "text", None)
        if not text:
            raise LLMUnavailable(f"{self.name}: empty LLM response")
        return text

    async def run_json(self, prompt: str) -> Any:
        """Like ``run`` but parses the reply as JSON."""
        text = await self.run(prompt, json_output=True)
        cleaned = _FENCE.sub("", text.strip())
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise LLMUnavailable(f"{self.name}: reply was not JSON") from exc
