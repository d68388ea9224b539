"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing the abstract methods. The ingest and search pipelines
are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ragger.retrieval.models import MetadataFilter, Point


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Implementations translate backend failures into
    :class:`~ragger.errors.ProviderError`, and a missing collection on
    :meth:`get_collection` into :class:`~ragger.errors.CollectionNotFoundError`.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def get_collection(self, name: str) -> dict[str, Any]:
        """Probe collection *name* and return backend-specific info.

        Raises ``CollectionNotFoundError`` when it does not exist.
        """
        ...

    @abstractmethod
    def create_collection(self, name: str, dim: int) -> None:
        """Create collection *name* for cosine-similarity vectors of size *dim*."""
        ...

    @abstractmethod
    def upsert(self, name: str, points: list[Point], *, wait: bool = True) -> None:
        """Insert or overwrite *points* in one call.

        With ``wait=True`` the call returns only once the points are indexed.
        """
        ...

    @abstractmethod
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
        """Return the top-*k* results nearest to *vector*, best first.

        Each result dict contains:

        * ``"id"`` – point identifier
        * ``"score"`` – cosine similarity (higher = more similar)
        * ``"payload"`` – stored payload dict (empty without ``with_payload``)

        Parameters
        ----------
        hnsw_ef:
            Approximate-search breadth; ``None`` leaves the backend default.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- optional overrides ---------------------------------------------------

    def close(self) -> None:
        """Release network resources.  No-op by default."""
