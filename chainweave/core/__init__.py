"""Core components."""

from .config import (
    DEFAULT_RECURSION_LIMIT,
    Option,
    RunConfig,
    build_config,
    default_config,
    ensure_config,
    merge_config,
    with_callbacks,
    with_cancel_token,
    with_configurable,
    with_max_concurrency,
    with_metadata,
    with_recursion_limit,
    with_run_id,
    with_run_name,
    with_stop,
    with_tags,
)
from .context import CancelToken, check_cancelled, current_depth, current_run_id, run_context
from .errors import (
    BatchItemError,
    ChainweaveError,
    InvalidAgentOutputError,
    IterationLimitExceededError,
    NoBranchMatchedError,
    OutputParserError,
    ParallelBranchError,
    PlanningError,
    RecursionLimitError,
    RunCancelledError,
    StepExecutionError,
    ToolExecutionError,
    TypeMismatchError,
)
from .messages import Document, Message, ToolCall, ai, get_buffer_string, human, system, tool_result
from .runnable import ConcurrentBatchMixin, Runnable, coerce_to_runnable, maybe_await
from .stream import StreamChunk, StreamIterator

__all__ = [
    # Config
    "DEFAULT_RECURSION_LIMIT",
    "Option",
    "RunConfig",
    "build_config",
    "default_config",
    "ensure_config",
    "merge_config",
    "with_callbacks",
    "with_cancel_token",
    "with_configurable",
    "with_max_concurrency",
    "with_metadata",
    "with_recursion_limit",
    "with_run_id",
    "with_run_name",
    "with_stop",
    "with_tags",
    # Run state
    "CancelToken",
    "check_cancelled",
    "current_depth",
    "current_run_id",
    "run_context",
    # Errors
    "BatchItemError",
    "ChainweaveError",
    "InvalidAgentOutputError",
    "IterationLimitExceededError",
    "NoBranchMatchedError",
    "OutputParserError",
    "ParallelBranchError",
    "PlanningError",
    "RecursionLimitError",
    "RunCancelledError",
    "StepExecutionError",
    "ToolExecutionError",
    "TypeMismatchError",
    # Messages
    "Document",
    "Message",
    "ToolCall",
    "ai",
    "get_buffer_string",
    "human",
    "system",
    "tool_result",
    # Contract
    "ConcurrentBatchMixin",
    "Runnable",
    "StreamChunk",
    "StreamIterator",
    "coerce_to_runnable",
    "maybe_await",
]
