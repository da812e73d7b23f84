"""Context-based agent selection.

The router scores every registered agent against a ``TaskContext`` and
ranks them by score, highest first. Equal scores are ordered by agent
id so selection never depends on registration order.
"""

import logging
import math
from dataclasses import dataclass

from cmdflow.domain.model.agent import ActivationScore, Agent, TaskContext

logger = logging.getLogger(__name__)

DEFAULT_ACTIVATION_THRESHOLD = 0.6


@dataclass(frozen=True)
class AgentSuggestion:
    """A ranked candidate agent."""

    agent_id: str
    name: str
    description: str
    score: float


def _clamp(value: float) -> float:
    if math.isnan(value):
        raise ValueError("Activation threshold cannot be NaN")
    return min(1.0, max(0.0, value))


class AgentRouter:
    """Scores agents against a task context and picks the best match."""

    def __init__(self, activation_threshold: float = DEFAULT_ACTIVATION_THRESHOLD) -> None:
        self._agents: dict[str, Agent] = {}
        self._activation_threshold = _clamp(activation_threshold)

    @property
    def activation_threshold(self) -> float:
        return self._activation_threshold

    @activation_threshold.setter
    def activation_threshold(self, value: float) -> None:
        self._activation_threshold = _clamp(value)

    def register_agent(self, agent: Agent) -> None:
        """Register an agent, replacing any agent with the same id."""
        if agent.id in self._agents:
            logger.warning(f"Replacing registered agent '{agent.id}'")
        self._agents[agent.id] = agent
        logger.debug("Registered agent: %s", agent.id)

    def unregister_agent(self, agent_id: str) -> bool:
        return self._agents.pop(agent_id, None) is not None

    def get_agent(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    def agents(self) -> list[Agent]:
        """All registered agents, ordered by id."""
        return [self._agents[agent_id] for agent_id in sorted(self._agents)]

    def _rank(self, context: TaskContext) -> list[tuple[Agent, float]]:
        scored: list[tuple[Agent, float]] = []
        for agent in self._agents.values():
            score = agent.can_handle(context)
            value = score.value if isinstance(score, ActivationScore) else float(score)
            if math.isnan(value):
                raise ValueError(f"Agent '{agent.id}' returned a NaN activation score")
            scored.append((agent, value))
        scored.sort(key=lambda item: (-item[1], item[0].id))
        return scored

    def select_agent(self, context: TaskContext) -> Agent | None:
        """
        Pick the highest-scoring agent.

        Args:
            context: Task context to score against

        Returns:
            The top agent if its score reaches the activation threshold,
            otherwise None

        Raises:
            ValueError: If an agent reports a NaN score
        """
        ranked = self._rank(context)
        if not ranked:
            return None
        agent, score = ranked[0]
        if score >= self._activation_threshold:
            logger.info(f"Selected agent '{agent.id}' (score={score:.2f})")
            return agent
        logger.info(
            f"No agent reached threshold {self._activation_threshold:.2f} "
            f"(best: '{agent.id}' at {score:.2f})"
        )
        return None

    def suggest_agents(self, context: TaskContext, top_k: int = 3) -> list[AgentSuggestion]:
        """Return up to ``top_k`` agents ranked by score, regardless of threshold."""
        return [
            AgentSuggestion(
                agent_id=agent.id,
                name=agent.name,
                description=agent.description,
                score=score,
            )
            for agent, score in self._rank(context)[: max(0, top_k)]
        ]

    def __len__(self) -> int:
        return len(self._agents)
