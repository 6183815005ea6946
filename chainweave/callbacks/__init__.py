"""Lifecycle event handlers and their dispatcher."""

from .base import BaseCallbackHandler, CallbackHandler, LLMResult
from .logging_handler import LoggingCallbackHandler
from .manager import CallbackManager
from .stdout import StdoutCallbackHandler

__all__ = [
    "BaseCallbackHandler",
    "CallbackHandler",
    "CallbackManager",
    "LLMResult",
    "LoggingCallbackHandler",
    "StdoutCallbackHandler",
]
