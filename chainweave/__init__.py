"""chainweave - Composable runnables and tool-using agent loops."""

from .agents import AgentExecutor, ReActPlanner, ToolCallingPlanner
from .callbacks import (
    BaseCallbackHandler,
    CallbackManager,
    LoggingCallbackHandler,
    StdoutCallbackHandler,
)
from .core import (
    CancelToken,
    ChainweaveError,
    Runnable,
    RunConfig,
    StreamIterator,
    build_config,
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
from .parsers import JsonOutputParser, StrOutputParser
from .retrievers import RetrieverRunnable
from .runnables import (
    Assign,
    Branch,
    Lambda,
    Parallel,
    Passthrough,
    Sequence,
    pipe,
    pipe2,
    pipe3,
    pipe4,
    runnable,
)
from .tools import StructuredTool, ToolRunnable, tool

__version__ = "0.1.0"

__all__ = [
    # Contract
    "Runnable",
    "StreamIterator",
    "ChainweaveError",
    # Config
    "CancelToken",
    "RunConfig",
    "build_config",
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
    # Composition
    "Assign",
    "Branch",
    "Lambda",
    "Parallel",
    "Passthrough",
    "Sequence",
    "pipe",
    "pipe2",
    "pipe3",
    "pipe4",
    "runnable",
    # Parsers, tools, retrieval
    "JsonOutputParser",
    "RetrieverRunnable",
    "StrOutputParser",
    "StructuredTool",
    "ToolRunnable",
    "tool",
    # Callbacks
    "BaseCallbackHandler",
    "CallbackManager",
    "LoggingCallbackHandler",
    "StdoutCallbackHandler",
    # Agents
    "AgentExecutor",
    "ReActPlanner",
    "ToolCallingPlanner",
]
