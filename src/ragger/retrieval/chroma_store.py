"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import Any

import chromadb
from chromadb.errors import NotFoundError

from ragger.errors import CollectionNotFoundError, ProviderError
from ragger.retrieval.base import VectorStoreBase
from ragger.retrieval.models import MetadataFilter, Point

logger = logging.getLogger(__name__)


def _build_chroma_where(filters: list[MetadataFilter] | None) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        if f.operator != "eq":
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {"$eq": f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _flat_metadata(payload: dict[str, Any]) -> dict[str, Any]:
    # Chroma metadata values must be flat str/int/float/bool
    return {k: v for k, v in payload.items() if isinstance(v, (str, int, float, bool))}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Chroma fixes the HNSW search breadth per collection, so ``search_ef`` is
    applied when the collection is created and the per-query ``hnsw_ef``
    argument of :meth:`search` is ignored.

    Parameters
    ----------
    host / port:
        Chroma server address.
    search_ef:
        ``hnsw:search_ef`` for collections created by this store.
    client:
        Pre-built client; mainly for tests.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8000,
        *,
        search_ef: int = 128,
        client: Any | None = None,
    ) -> None:
        self._client = client or chromadb.HttpClient(host=host, port=port)
        self._search_ef = search_ef

    def _collection(self, name: str) -> Any:
        try:
            return self._client.get_collection(name)
        except NotFoundError as exc:
            raise CollectionNotFoundError(name) from exc
        except Exception as exc:
            raise ProviderError(f"get collection {name!r}: {exc}") from exc

    # -- VectorStoreBase overrides --------------------------------------------

    def get_collection(self, name: str) -> dict[str, Any]:
        collection = self._collection(name)
        try:
            count = collection.count()
        except Exception as exc:
            raise ProviderError(f"count collection {name!r}: {exc}") from exc
        return {"name": name, "points_count": count, "vector_size": None}

    def create_collection(self, name: str, dim: int) -> None:
        # Chroma infers the dimension from the first upsert
        try:
            self._client.create_collection(
                name,
                metadata={"hnsw:space": "cosine", "hnsw:search_ef": self._search_ef},
            )
        except Exception as exc:
            raise ProviderError(f"create collection {name!r}: {exc}") from exc
        logger.info("Created collection '%s' (dim=%d, cosine)", name, dim)

    def upsert(self, name: str, points: list[Point], *, wait: bool = True) -> None:
        # Chroma upserts are synchronous, so ``wait`` is always honoured
        collection = self._collection(name)
        try:
            collection.upsert(
                ids=[p.id for p in points],
                embeddings=[p.vector for p in points],
                documents=[str(p.payload.get("text", "")) for p in points],
                metadatas=[_flat_metadata(p.payload) for p in points],
            )
        except Exception as exc:
            raise ProviderError(f"upsert {len(points)} points into {name!r}: {exc}") from exc

    def search(
        self,
        name: str,
        vector: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
        hnsw_ef: int | None = None,
        with_payload: bool = True,
    ) -> list[dict[str, Any]]:
        where = _build_chroma_where(filters)
        collection = self._collection(name)
        include = ["distances", "metadatas", "documents"] if with_payload else ["distances"]
        try:
            results = collection.query(
                query_embeddings=[vector],
                n_results=k,
                where=where,
                include=include,
            )
        except Exception as exc:
            raise ProviderError(f"search in {name!r}: {exc}") from exc

        ids = results.get("ids", [[]])[0]
        distances = results.get("distances", [[]])[0]
        metas = (results.get("metadatas") or [[None] * len(ids)])[0]
        docs = (results.get("documents") or [[None] * len(ids)])[0]

        hits: list[dict[str, Any]] = []
        for point_id, dist, meta, doc in zip(ids, distances, metas, docs):
            payload: dict[str, Any] = {}
            if with_payload:
                payload = dict(meta or {})
                if doc is not None:
                    payload.setdefault("text", doc)
            # cosine distance -> similarity
            hits.append({"id": point_id, "score": 1.0 - dist, "payload": payload})
        return hits

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
