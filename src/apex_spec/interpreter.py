# interpreter.py
# Turns a ValidatedDocument into an ExecutionPlan, and defines the
# out-of-band ExecutionState a runtime uses to track progress.
#
# The plan never references the state and the state never references the
# plan: state is plain per-step lists indexed by step_number - 1, so a host
# can checkpoint it independently of parsing.

import logging
from enum import Enum

from pydantic import BaseModel, Field

from apex_spec.validator import ToolDeclaration, ValidatedDocument

logger = logging.getLogger(__name__)

# Verbs that bind a step to a tool whose name carries the same verb.
_VERB_HINTS = ("read", "write", "search", "edit")


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


class ToolInvocation(BaseModel):
    name: str
    raw_arguments: str | None = None

    @classmethod
    def from_declaration(cls, declaration: ToolDeclaration) -> "ToolInvocation":
        return cls(name=declaration.name, raw_arguments=declaration.arguments)


class ExecutionStep(BaseModel):
    step_number: int = Field(..., ge=1, description="1-based position in PLAN.")
    description: str
    tool: ToolInvocation | None = None
    depends_on: list[int] = Field(default_factory=list, description="Step numbers that must complete first.")


class ExecutionPlan(BaseModel):
    task: str
    goals: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    steps: list[ExecutionStep] = Field(default_factory=list)
    validation: list[str] = Field(default_factory=list)
    available_tools: list[ToolInvocation] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.steps

    def step_count(self) -> int:
        return len(self.steps)

    def initial_steps(self) -> list[ExecutionStep]:
        """Steps with no prerequisites."""
        return [step for step in self.steps if not step.depends_on]

    def dependents(self, step_number: int) -> list[ExecutionStep]:
        return [step for step in self.steps if step_number in step.depends_on]

    def tool_for_step(self, step_number: int) -> ToolInvocation | None:
        if 1 <= step_number <= len(self.steps):
            return self.steps[step_number - 1].tool
        return None


def match_tool_to_step(description: str, tools: list[ToolInvocation]) -> ToolInvocation | None:
    """
    First declared tool that fits the step, or None.

    A tool fits when its name appears in the description, or when both the
    tool name and the description contain the same verb hint.
    """
    lowered = description.lower()
    for tool in tools:
        name = tool.name.lower()
        if name in lowered:
            return tool
        if any(verb in lowered and verb in name for verb in _VERB_HINTS):
            return tool
    return None


def _build_steps(descriptions: list[str], tools: list[ToolInvocation]) -> list[ExecutionStep]:
    positional = len(tools) == len(descriptions)
    logger.debug(
        "Binding %d step(s) to %d tool(s) by %s",
        len(descriptions),
        len(tools),
        "position" if positional else "keyword",
    )

    steps: list[ExecutionStep] = []
    for index, description in enumerate(descriptions):
        number = index + 1
        tool = tools[index] if positional else match_tool_to_step(description, tools)
        if tool is not None:
            tool = tool.model_copy()
        steps.append(
            ExecutionStep(
                step_number=number,
                description=description,
                tool=tool,
                depends_on=[number - 1] if number > 1 else [],
            )
        )
    return steps


def build_execution_plan(doc: ValidatedDocument) -> ExecutionPlan:
    available_tools = (
        [ToolInvocation.from_declaration(d) for d in doc.tools.tools] if doc.tools is not None else []
    )
    descriptions = doc.plan.steps if doc.plan is not None else []

    return ExecutionPlan(
        task=doc.task.line,
        goals=list(doc.goals.goals) if doc.goals is not None else [],
        constraints=list(doc.constraints.rules) if doc.constraints is not None else [],
        steps=_build_steps(descriptions, available_tools),
        validation=list(doc.validation.conditions) if doc.validation is not None else [],
        available_tools=available_tools,
    )


# ---------------------------------------------------------------------------
# Execution state
# ---------------------------------------------------------------------------


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"
    SKIPPED = "skipped"

    def is_terminal(self) -> bool:
        return self in (StepStatus.COMPLETE, StepStatus.FAILED, StepStatus.SKIPPED)

    def can_resume(self) -> bool:
        return self in (StepStatus.PENDING, StepStatus.FAILED)


class ExecutionState(BaseModel):
    """
    Progress tracker owned by the executing runtime.

    Each transition is a single bounds-checked mutation with no locking;
    the host serializes calls. Out-of-range indices are ignored.
    """

    step_states: list[StepStatus] = Field(default_factory=list)
    checkpoint: int = Field(0, ge=0, description="Index after the last completed step.")
    tool_results: list[str | None] = Field(default_factory=list)
    validation_outcomes: list[bool] = Field(default_factory=list)
    paused: bool = False
    error: str | None = None

    @classmethod
    def for_steps(cls, count: int) -> "ExecutionState":
        return cls(
            step_states=[StepStatus.PENDING] * count,
            tool_results=[None] * count,
        )

    @classmethod
    def for_plan(cls, plan: ExecutionPlan) -> "ExecutionState":
        return cls.for_steps(plan.step_count())

    def current_step(self) -> int:
        return self.checkpoint

    def is_complete(self) -> bool:
        return all(status.is_terminal() for status in self.step_states)

    def is_failed(self) -> bool:
        return any(status is StepStatus.FAILED for status in self.step_states)

    def _in_range(self, step: int) -> bool:
        if 0 <= step < len(self.step_states):
            return True
        logger.debug("Ignoring transition for out-of-range step index %s", step)
        return False

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_step(self, step: int) -> None:
        if self._in_range(step):
            self.step_states[step] = StepStatus.RUNNING

    def complete_step(self, step: int, result: str | None = None) -> None:
        if self._in_range(step):
            self.step_states[step] = StepStatus.COMPLETE
            self.tool_results[step] = result
            self.checkpoint = step + 1

    def fail_step(self, step: int, error: str) -> None:
        if self._in_range(step):
            self.step_states[step] = StepStatus.FAILED
            self.error = error

    def skip_step(self, step: int) -> None:
        if self._in_range(step):
            self.step_states[step] = StepStatus.SKIPPED

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def record_validation(self, passed: bool) -> None:
        self.validation_outcomes.append(passed)
