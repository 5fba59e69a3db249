"""
LLM-backed agents.

Each agent takes its LLM client in the constructor and always has a
deterministic fallback, so the hiring workflow never blocks on the model.
"""

from agents.registry import registry, register_agent
from agents.base import BaseAgent, LLMUnavailable, build_llm_client

# Import all agents to register them
from agents.interview.agent import QuestionGeneratorAgent
from agents.evaluation.agent import InterviewEvaluationAgent
from agents.matching.agent import ResumeMatchingAgent
from agents.aptitude.agent import AptitudeQuestionAgent

__all__ = [
    "registry",
    "register_agent",
    "BaseAgent",
    "LLMUnavailable",
    "build_llm_client",
    "QuestionGeneratorAgent",
    "InterviewEvaluationAgent",
    "ResumeMatchingAgent",
    "AptitudeQuestionAgent",
]
