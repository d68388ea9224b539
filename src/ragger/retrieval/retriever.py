"""Semantic retriever: query embedding, filtered search and hit mapping.

This module is the **primary public interface** for search.  The embedder
and vector store are injected, so tests and notebooks can swap in fakes.

Usage::

    from ragger.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(settings, embedder=embedder, store=store)
    hits = retriever.search("How is the cache invalidated?", k=5, lang="en")
    print(retriever.build_prompt("How is the cache invalidated?", hits))

The query must be embedded with the same model family used at ingest
time; a dimensionality mismatch is not checked here and surfaces as a
store error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragger.prompts import build_prompt
from ragger.retrieval.models import Hit, MetadataFilter

if TYPE_CHECKING:
    from ragger.config import Settings
    from ragger.ingestion.embedder import Embedder
    from ragger.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

# Approximate-search breadth applied to every query.
HNSW_EF = 128

LANG_FIELD = "lang"


class SemanticRetriever:
    """Search pipeline over any :class:`VectorStoreBase`.

    Parameters
    ----------
    settings:
        Supplies the collection name, default ``top_k`` and ``lang`` filter.
    embedder:
        Embedding provider for queries.
    store:
        A concrete vector-store backend.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        embedder: Embedder,
        store: VectorStoreBase,
    ) -> None:
        self.settings = settings
        self._embedder = embedder
        self._store = store

    # -- public API -----------------------------------------------------------

    def search(self, query: str, *, k: int | None = None, lang: str | None = None) -> list[Hit]:
        """Run a semantic search and return typed hits in store order.

        Parameters
        ----------
        query:
            Natural-language query string.
        k:
            Number of results (defaults to ``settings.top_k``).
        lang:
            Restrict to points whose payload ``lang`` equals this value.
            ``None`` falls back to ``settings.lang``; empty means no filter.

        Raises
        ------
        ProviderError
            If embedding or search fails.
        """
        k = k or self.settings.top_k
        lang = self.settings.lang if lang is None else lang

        vector = self._embedder.embed_one(query)

        filters = [MetadataFilter.equals(LANG_FIELD, lang)] if lang else None
        raw_hits = self._store.search(
            self.settings.collection,
            vector,
            k=k,
            filters=filters,
            hnsw_ef=HNSW_EF,
            with_payload=True,
        )
        hits = [Hit.from_result(raw) for raw in raw_hits]
        logger.info("Search returned %d hits (k=%d, lang=%r)", len(hits), k, lang)
        return hits

    def build_prompt(self, query: str, hits: list[Hit]) -> str:
        """Render *hits* and *query* into the grounded-answer prompt."""
        return build_prompt(query, hits)

    def health_check(self) -> bool:
        """Return ``True`` when the backing vector store is reachable."""
        return self._store.health_check()
