"""Factory for creating the configured vector store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ragger.config import Settings
    from ragger.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def make_vector_store(settings: Settings) -> VectorStoreBase:
    """Build the backend selected by ``settings.vector_backend``.

    Backends are imported lazily so only the selected client library has
    to be importable.
    """
    backend = settings.vector_backend
    if backend == "qdrant":
        from ragger.retrieval.qdrant_store import QdrantVectorStore

        logger.info("Connecting to Qdrant at %s:%d", settings.qdrant_host, settings.qdrant_port)
        return QdrantVectorStore(
            host=settings.qdrant_host,
            port=settings.qdrant_port,
            grpc_port=settings.qdrant_grpc_port,
            prefer_grpc=settings.qdrant_prefer_grpc,
        )
    if backend == "chroma":
        from ragger.retrieval.chroma_store import ChromaVectorStore

        logger.info("Connecting to Chroma at %s:%d", settings.chroma_host, settings.chroma_port)
        return ChromaVectorStore(host=settings.chroma_host, port=settings.chroma_port)

    raise ValueError(f"Unsupported vector_backend={backend!r}. Choose from: qdrant, chroma.")
