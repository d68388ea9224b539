"""Embedding providers behind a narrow ``embed(texts) -> vectors`` interface."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ragger.errors import ProviderError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from ragger.config import Settings

logger = logging.getLogger(__name__)

OPENAI_MODELS = ("text-embedding-3-small", "text-embedding-3-large")


class Embedder(ABC):
    """Abstract embedding provider."""

    @abstractmethod
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts into vectors, one per input, in order."""
        ...

    def embed_one(self, text: str) -> list[float]:
        """Embed a single text into a vector."""
        return self.embed([text])[0]


class LangChainEmbedder(Embedder):
    """Adapter over any LangChain :class:`~langchain_core.embeddings.Embeddings`.

    Parameters
    ----------
    embeddings:
        The LangChain embedding model (OpenAI, HuggingFace, ...).
    max_retries:
        Extra attempts after a failed call; ``0`` fails on the first error.
    backoff:
        Base delay in seconds; attempt *n* waits ``backoff * 2 ** (n - 1)``.
    """

    def __init__(self, embeddings: Embeddings, *, max_retries: int = 0, backoff: float = 1.0) -> None:
        self._embeddings = embeddings
        self.max_retries = max_retries
        self.backoff = backoff

    def embed(self, texts: list[str]) -> list[list[float]]:
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                vectors = self._embeddings.embed_documents(texts)
                break
            except Exception as exc:
                if attempt >= attempts:
                    raise ProviderError(f"embedding: {exc}") from exc
                wait = self.backoff * 2 ** (attempt - 1)
                logger.warning("Retry %d/%d for embedding (wait %.1fs): %s", attempt, self.max_retries, wait, exc)
                time.sleep(wait)

        if len(vectors) != len(texts):
            raise ProviderError(f"embedding: got {len(vectors)} vectors for {len(texts)} inputs")
        return [list(v) for v in vectors]


def make_embedder(settings: Settings) -> Embedder:
    """Create the configured embedder.

    Raises
    ------
    ValueError
        If the backend or OpenAI model name is not supported.
    """
    if settings.embedding_backend == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        embeddings: Embeddings = HuggingFaceEmbeddings(model_name=settings.model)
    elif settings.embedding_backend == "openai":
        if settings.model not in OPENAI_MODELS:
            raise ValueError(f"unknown model: {settings.model}")

        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {
            "model": settings.model,
            "dimensions": settings.embedding_dim,
            # retries are handled by LangChainEmbedder
            "max_retries": 0,
        }
        if settings.openai_api_key:
            kwargs["api_key"] = settings.openai_api_key
        embeddings = OpenAIEmbeddings(**kwargs)
    else:
        raise ValueError(f"embedding_backend is not supported: {settings.embedding_backend!r}")

    logger.info("Initialized %s embeddings, model=%s", settings.embedding_backend, settings.model)
    return LangChainEmbedder(embeddings, max_retries=settings.embed_max_retries)
