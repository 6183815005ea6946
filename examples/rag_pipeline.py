"""
RAG (Retrieval-Augmented Generation) pipeline built from runnables.

The pipeline:
1. Fan out: retrieve documents and keep the question alongside them
2. Build a prompt from both
3. Generate an answer and parse it to a string

Each stage is a plain runnable, so the same pipeline can be invoked,
streamed or batched.
"""

import asyncio
import logging

from chainweave import (
    Branch,
    LoggingCallbackHandler,
    Parallel,
    Passthrough,
    RetrieverRunnable,
    StrOutputParser,
    build_config,
    runnable,
    with_callbacks,
)
from chainweave.core import Document, ai, human, system


class KeywordRetriever:
    """Toy vector store: returns documents sharing a word with the query."""

    def __init__(self, texts):
        self.documents = [Document(text, {"source": f"doc-{i}"}) for i, text in enumerate(texts)]

    async def get_relevant_documents(self, query):
        words = set(query.lower().split())
        return [d for d in self.documents if words & set(d.page_content.lower().split())]


@runnable
def build_prompt(inputs: dict) -> list:
    context = "\n".join(d.page_content for d in inputs["context"]) or "(no documents)"
    return [
        system(f"Answer using only this context:\n{context}"),
        human(inputs["question"]),
    ]


@runnable
async def generate(messages: list):
    # Stand-in for a chat model call
    await asyncio.sleep(0.01)
    context = messages[0].content.splitlines()[1:]
    return ai(f"Based on {len(context)} document(s): {context[0]}")


async def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    retriever = KeywordRetriever(
        [
            "transformers use attention",
            "retrieval augments generation with documents",
            "vector databases index embeddings",
        ]
    )

    rag = (
        Parallel({"context": RetrieverRunnable(retriever), "question": Passthrough()})
        >> build_prompt
        >> generate
        >> StrOutputParser()
    )
    print(f"Pipeline: {rag!r}\n")

    # Single query, with logging callbacks
    config = build_config(with_callbacks(LoggingCallbackHandler()))
    print(await rag.invoke("how does retrieval work", config))

    # Streaming only streams the last stage
    stream = await rag.stream("what do transformers use")
    async for chunk in stream:
        print(f"chunk: {chunk}")

    # One answer per query, in input order
    answers = await rag.batch(["attention", "embeddings", "generation"])
    for answer in answers:
        print(answer)

    # Route short queries away from retrieval
    router = Branch(
        (lambda q: len(q.split()) < 2, runnable(lambda q: f"Please ask a full question, not '{q}'.")),
        default=rag,
    )
    print(await router.invoke("hi"))


if __name__ == "__main__":
    asyncio.run(main())
