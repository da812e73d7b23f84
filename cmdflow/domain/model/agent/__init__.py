"""Agent domain models.

This module contains:
- Agent: the contract routed agents implement
- ActivationScore: clamped [0, 1] routing confidence
- TaskContext / Task: what an agent is asked to do
- AgentResult variants: CodeReviewResult, AnalysisResult, SuggestionsResult
- AgentPermissions / FileAccessPolicy: capability grants
"""

from cmdflow.domain.model.agent.agent import (
    ActivationScore,
    Agent,
    AgentResult,
    AnalysisResult,
    CodeReviewFinding,
    CodeReviewResult,
    ExecutionMode,
    GitContext,
    Severity,
    Suggestion,
    SuggestionsResult,
    Task,
    TaskContext,
)
from cmdflow.domain.model.agent.permissions import (
    AgentPermissions,
    FileAccessPolicy,
    NoAccess,
    ReadOnly,
    ReadWrite,
    matches_pattern,
)

__all__ = [
    "ActivationScore",
    "Agent",
    "AgentPermissions",
    "AgentResult",
    "AnalysisResult",
    "CodeReviewFinding",
    "CodeReviewResult",
    "ExecutionMode",
    "FileAccessPolicy",
    "GitContext",
    "NoAccess",
    "ReadOnly",
    "ReadWrite",
    "Severity",
    "Suggestion",
    "SuggestionsResult",
    "Task",
    "TaskContext",
    "matches_pattern",
]
