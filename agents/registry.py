"""Name -> agent class lookup used by the services."""

from typing import Any, Callable, Dict, Optional, Type

from agents.base import BaseAgent


class AgentRegistry:
    """
    Holds agent classes, not instances: every ``create`` call binds a fresh
    agent to the caller's LLM client (or to none, for rule-only operation).
    """

    def __init__(self):
        self._classes: Dict[str, Type[BaseAgent]] = {}

    def register(self, name: str, agent_class: Type[BaseAgent]) -> None:
        if name in self._classes and self._classes[name] is not agent_class:
            raise ValueError(f"Agent name '{name}' is already taken by {self._classes[name].__name__}")
        self._classes[name] = agent_class

    def create(self, name: str, client: Optional[Any] = None) -> BaseAgent:
        try:
            agent_class = self._classes[name]
        except KeyError:
            raise ValueError(f"Agent '{name}' not registered") from None
        return agent_class(client=client)

    def list_agents(self) -> list[str]:
        return sorted(self._classes)


registry = AgentRegistry()


def register_agent(name: str) -> Callable[[Type[BaseAgent]], Type[BaseAgent]]:
    """Class decorator: ``@register_agent("interview_questions")``."""

    def decorator(cls: Type[BaseAgent]) -> Type[BaseAgent]:
        registry.register(name, cls)
        return cls

    return decorator
