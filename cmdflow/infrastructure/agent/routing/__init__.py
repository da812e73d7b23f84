"""Routing package for agent selection."""

from cmdflow.infrastructure.agent.routing.agent_router import (
    DEFAULT_ACTIVATION_THRESHOLD,
    AgentRouter,
    AgentSuggestion,
)

__all__ = [
    "DEFAULT_ACTIVATION_THRESHOLD",
    "AgentRouter",
    "AgentSuggestion",
]
