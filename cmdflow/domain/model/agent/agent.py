"""Agent contract and task/result value objects.

Agents are external collaborators: they score a ``TaskContext`` with an
``ActivationScore`` and, when selected, execute a ``Task`` through a
permission-checked toolkit, returning one of the ``AgentResult``
variants.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from cmdflow.domain.model.agent.permissions import AgentPermissions

if TYPE_CHECKING:
    from cmdflow.infrastructure.agent.permission.toolkit import AgentToolkit


@dataclass(frozen=True, order=True)
class ActivationScore:
    """Confidence in [0.0, 1.0] that an agent should handle a task.

    Out-of-range values are clamped. NaN is rejected.
    """

    value: float

    def __post_init__(self):
        value = float(self.value)
        if math.isnan(value):
            raise ValueError("Activation score cannot be NaN")
        object.__setattr__(self, "value", min(1.0, max(0.0, value)))

    def __float__(self) -> float:
        return self.value


class ExecutionMode(str, Enum):
    """How the task was started."""

    INTERACTIVE = "interactive"
    AUTOMATED = "automated"


@dataclass
class GitContext:
    """Version control state of the workspace."""

    diff: str = ""
    branch: str = ""
    changed_files: list[Path] = field(default_factory=list)


@dataclass(kw_only=True)
class TaskContext:
    """
    Everything an agent sees when scoring and executing a task.

    Attributes:
        file_paths: Candidate files the task refers to
        file_contents: Optional preloaded file contents
        git_context: Optional version control state
        execution_mode: Interactive or automated run
        user_intent: Rendered natural-language request
    """

    file_paths: list[Path] = field(default_factory=list)
    file_contents: dict[Path, str] | None = None
    git_context: GitContext | None = None
    execution_mode: ExecutionMode = ExecutionMode.INTERACTIVE
    user_intent: str = ""


@dataclass(kw_only=True)
class Task:
    context: TaskContext
    additional_instructions: str | None = None


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(kw_only=True)
class CodeReviewFinding:
    severity: Severity
    category: str
    message: str
    location: Path | None = None
    line_number: int | None = None


@dataclass(kw_only=True)
class Suggestion:
    title: str
    description: str
    code_change: str | None = None


@dataclass(kw_only=True)
class CodeReviewResult:
    findings: list[CodeReviewFinding] = field(default_factory=list)


@dataclass(kw_only=True)
class AnalysisResult:
    summary: str
    details: dict[str, str] = field(default_factory=dict)


@dataclass(kw_only=True)
class SuggestionsResult:
    items: list[Suggestion] = field(default_factory=list)


AgentResult = CodeReviewResult | AnalysisResult | SuggestionsResult


class Agent(ABC):
    """Interface every routable agent implements."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique agent identifier."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable agent name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the agent is good at."""

    @abstractmethod
    def can_handle(self, context: TaskContext) -> ActivationScore:
        """Score how well this agent fits ``context``."""

    @abstractmethod
    async def execute(self, task: Task, toolkit: "AgentToolkit") -> AgentResult:
        """
        Execute a task.

        Args:
            task: Task to run
            toolkit: Permission-checked I/O surface

        Returns:
            Structured agent result
        """

    @abstractmethod
    def permissions(self) -> AgentPermissions:
        """Capabilities this agent needs."""

    @abstractmethod
    def system_prompt(self) -> str:
        """System prompt used when the agent talks to a model."""
