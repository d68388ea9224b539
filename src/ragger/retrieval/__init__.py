"""
Retrieval — vector stores, search, and hit mapping.

This package wraps the vector store behind a clean interface so that
the pipelines never need to know which DB is backing retrieval.

Public surface
--------------
- :class:`SemanticRetriever` — search entry point returning typed hits.
- :class:`VectorStoreBase` — abstract backend.
- :class:`QdrantVectorStore`, :class:`ChromaVectorStore` — bundled backends.
- :class:`Hit`, :class:`Point`, :class:`MetadataFilter` — data models.
- :func:`make_vector_store` — backend factory driven by settings.
"""

from ragger.retrieval.base import VectorStoreBase
from ragger.retrieval.factory import make_vector_store
from ragger.retrieval.models import Hit, MetadataFilter, Point
from ragger.retrieval.retriever import SemanticRetriever

__all__ = [
    "ChromaVectorStore",
    "Hit",
    "MetadataFilter",
    "Point",
    "QdrantVectorStore",
    "SemanticRetriever",
    "VectorStoreBase",
    "make_vector_store",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import the backends to avoid pulling in their clients at import time."""
    if name == "QdrantVectorStore":
        from ragger.retrieval.qdrant_store import QdrantVectorStore

        return QdrantVectorStore
    if name == "ChromaVectorStore":
        from ragger.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
