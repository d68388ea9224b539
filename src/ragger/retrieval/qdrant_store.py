"""Qdrant implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import Any

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointStruct,
    SearchParams,
    VectorParams,
)

from ragger.errors import CollectionNotFoundError, ProviderError
from ragger.retrieval.base import VectorStoreBase
from ragger.retrieval.models import MetadataFilter, Point

logger = logging.getLogger(__name__)


def _build_qdrant_filter(filters: list[MetadataFilter] | None) -> Filter | None:
    """Convert a list of :class:`MetadataFilter` to a Qdrant ``Filter`` (all must match)."""
    if not filters:
        return None

    conditions = []
    for f in filters:
        if f.operator != "eq":
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        conditions.append(FieldCondition(key=f.field, match=MatchValue(value=f.value)))
    return Filter(must=conditions)


class QdrantVectorStore(VectorStoreBase):
    """Qdrant-backed vector store.

    Parameters
    ----------
    host / port:
        Qdrant server hostname and REST port.
    grpc_port / prefer_grpc:
        gRPC transport settings.
    client:
        Pre-built client; mainly for tests.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        *,
        grpc_port: int = 6334,
        prefer_grpc: bool = True,
        client: QdrantClient | None = None,
    ) -> None:
        self._client = client or QdrantClient(host=host, port=port, grpc_port=grpc_port, prefer_grpc=prefer_grpc)

    # -- VectorStoreBase overrides --------------------------------------------

    def get_collection(self, name: str) -> dict[str, Any]:
        try:
            if not self._client.collection_exists(collection_name=name):
                raise CollectionNotFoundError(name)
            info = self._client.get_collection(collection_name=name)
        except CollectionNotFoundError:
            raise
        except Exception as exc:
            raise ProviderError(f"get collection {name!r}: {exc}") from exc

        vectors = info.config.params.vectors
        return {
            "name": name,
            "points_count": info.points_count,
            "vector_size": getattr(vectors, "size", None),
        }

    def create_collection(self, name: str, dim: int) -> None:
        try:
            self._client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=dim, distance=Distance.COSINE),
            )
        except Exception as exc:
            raise ProviderError(f"create collection {name!r}: {exc}") from exc
        logger.info("Created collection '%s' (dim=%d, cosine)", name, dim)

    def upsert(self, name: str, points: list[Point], *, wait: bool = True) -> None:
        structs = [PointStruct(id=p.id, vector=p.vector, payload=p.payload) for p in points]
        try:
            self._client.upsert(collection_name=name, points=structs, wait=wait)
        except Exception as exc:
            raise ProviderError(f"upsert {len(structs)} points into {name!r}: {exc}") from exc

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
        query_filter = _build_qdrant_filter(filters)
        params = SearchParams(hnsw_ef=hnsw_ef) if hnsw_ef is not None else None
        try:
            response = self._client.query_points(
                collection_name=name,
                query=vector,
                limit=k,
                query_filter=query_filter,
                search_params=params,
                with_payload=with_payload,
                with_vectors=False,
            )
        except Exception as exc:
            raise ProviderError(f"search in {name!r}: {exc}") from exc

        return [
            {"id": str(point.id), "score": point.score, "payload": point.payload or {}}
            for point in response.points
        ]

    def health_check(self) -> bool:
        try:
            self._client.get_collections()
            return True
        except Exception:
            logger.warning("Qdrant health-check failed", exc_info=True)
            return False

    def close(self) -> None:
        self._client.close()
