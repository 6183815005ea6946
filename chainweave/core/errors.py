"""Core error types for chainweave."""

from __future__ import annotations

from typing import Any


class ChainweaveError(Exception):
    """Base exception for all chainweave errors."""

    pass


# ---------------------------------------------------------------------------
# Construction errors
# ---------------------------------------------------------------------------


class TypeMismatchError(ChainweaveError, TypeError):
    """Raised when a value crossing a pipeline boundary has the wrong type.

    Attributes:
        step_index: Position of the step whose input did not match.
        step_name: Name of that step.
        expected: Declared input type of the step.
        actual: Type that was actually produced (or declared) upstream.
    """

    def __init__(self, step_index: int, step_name: str, expected: Any, actual: Any):
        self.step_index = step_index
        self.step_name = step_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Step {step_index} ('{step_name}') expects {_type_name(expected)}, "
            f"got {_type_name(actual)}"
        )


class NoBranchMatchedError(ChainweaveError):
    """Raised when no branch predicate matched and no default branch exists."""

    def __init__(self, branch_name: str):
        self.branch_name = branch_name
        super().__init__(
            f"No branch condition matched in '{branch_name}' and no default branch "
            "was provided"
        )


class InvalidAgentOutputError(ChainweaveError, ValueError):
    """Raised when an agent output holds both actions and a finish, or neither."""

    pass


# ---------------------------------------------------------------------------
# Invocation errors
# ---------------------------------------------------------------------------


class StepExecutionError(ChainweaveError):
    """Raised when a step in a sequence fails during execution.

    Attributes:
        step_index: Position of the failing step.
        step_name: Name of the failing step.
        executed: Names of steps that completed successfully before the failure.
        cause: The original exception raised by the failing step.
    """

    def __init__(
        self,
        step_index: int,
        step_name: str,
        executed: list[str],
        cause: BaseException,
    ):
        self.step_index = step_index
        self.step_name = step_name
        self.executed: tuple[str, ...] = tuple(executed)
        self.cause = cause
        executed_display = ", ".join(self.executed) if self.executed else "none"
        super().__init__(
            f"Step {step_index} ('{step_name}') failed after executing: "
            f"{executed_display}.\nCause: {cause.__class__.__name__}: {cause}"
        )


class ParallelBranchError(ChainweaveError):
    """Raised when one entry of a parallel fan-out fails."""

    def __init__(self, key: str, cause: BaseException):
        self.key = key
        self.cause = cause
        super().__init__(
            f"Parallel branch '{key}' failed: {cause.__class__.__name__}: {cause}"
        )


class BatchItemError(ChainweaveError):
    """Raised when one input of a batch fails."""

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(
            f"Batch item {index} failed: {cause.__class__.__name__}: {cause}"
        )


class OutputParserError(ChainweaveError, ValueError):
    """Raised when model output cannot be parsed into the expected shape.

    Attributes:
        llm_output: The raw text that failed to parse.
    """

    def __init__(self, message: str, llm_output: str = ""):
        self.llm_output = llm_output
        super().__init__(message)


class ToolExecutionError(ChainweaveError):
    """Raised by a tool when it cannot produce an output."""

    def __init__(self, tool_name: str, cause: BaseException | str):
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(f"Tool '{tool_name}' failed: {cause}")


class PlanningError(ChainweaveError):
    """Raised when the agent planner fails and parsing errors are not handled."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Agent planning error: {cause}")


class RunCancelledError(ChainweaveError):
    """Raised at a suspension point after the run's cancel token was set."""

    def __init__(self, where: str = ""):
        self.where = where
        suffix = f" at {where}" if where else ""
        super().__init__(f"Run cancelled{suffix}")


# ---------------------------------------------------------------------------
# Limit errors
# ---------------------------------------------------------------------------


class IterationLimitExceededError(ChainweaveError):
    """Raised when the agent loop never converged within its iteration budget."""

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(f"Agent exceeded maximum iterations ({max_iterations})")


class RecursionLimitError(ChainweaveError):
    """Raised when nested composition goes deeper than the configured limit."""

    def __init__(self, limit: int, name: str):
        self.limit = limit
        self.name = name
        super().__init__(f"Recursion limit of {limit} reached while entering '{name}'")


def _type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__qualname__
    if isinstance(tp, tuple):
        return " | ".join(_type_name(t) for t in tp)
    return repr(tp)
