"""Adapt a retriever to the runnable contract."""

from __future__ import annotations

import logging
import uuid

from .callbacks.manager import CallbackManager
from .core.config import RunConfig, ensure_config
from .core.messages import Document
from .core.runnable import ConcurrentBatchMixin, Runnable
from .interfaces import Retriever

logger = logging.getLogger(__name__)


class RetrieverRunnable(ConcurrentBatchMixin, Runnable[str, list]):
    """Turns a query string into relevant documents.

    Emits retriever start/end/error callbacks around each lookup. Batches of
    queries run concurrently.

    Example:
        rag = Parallel({"context": RetrieverRunnable(store), "question": Passthrough()})
    """

    input_type = str
    output_type = list

    def __init__(self, retriever: Retriever, name: str | None = None):
        self.retriever = retriever
        self._name = name or type(retriever).__name__

    async def invoke(self, input: str, config: RunConfig | None = None) -> list[Document]:
        config = ensure_config(config)
        callbacks = CallbackManager.for_run(config)
        run_id = str(uuid.uuid4())
        callbacks.on_retriever_start(input, run_id=run_id)
        try:
            documents = list(await self.retriever.get_relevant_documents(input))
        except Exception as exc:
            callbacks.on_retriever_error(exc, run_id=run_id)
            raise
        logger.debug("%s: %d documents for %r", self.name, len(documents), input)
        callbacks.on_retriever_end(documents, run_id=run_id)
        return documents
