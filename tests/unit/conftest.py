"""In-memory fakes shared by the unit tests.

None of these touch the network: the embedder is a deterministic function
of the text, the vector store records every call, and the document source
serves canned documents from a dict.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

import pytest

from ragger.config import Settings
from ragger.errors import CollectionNotFoundError, ParseError, ProviderError
from ragger.ingestion.embedder import Embedder
from ragger.ingestion.loader import Document, DocumentSource
from ragger.retrieval.base import VectorStoreBase
from ragger.retrieval.models import MetadataFilter, Point

DIM = 8


# ── Fakes ───────────────────────────────────────────────────────────────


class FakeEmbedder(Embedder):
    """Deterministic embedder: a vector of *dim* floats derived from the text hash."""

    def __init__(self, dim: int = DIM, *, fail_on: str | None = None) -> None:
        self.dim = dim
        self.fail_on = fail_on
        self.calls: list[list[str]] = []

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        vectors = []
        for text in texts:
            if self.fail_on is not None and self.fail_on in text:
                raise ProviderError(f"embedding: refused {text[:20]!r}")
            digest = hashlib.sha256(text.encode()).digest()
            vectors.append([b / 255.0 for b in digest[: self.dim]])
        return vectors


class RecordingVectorStore(VectorStoreBase):
    """Dict-backed store that records every call for later assertions."""

    def __init__(self, *, existing: set[str] | None = None, search_results: list[dict[str, Any]] | None = None) -> None:
        self.collections: dict[str, int] = {name: DIM for name in (existing or set())}
        self.points: dict[str, dict[str, Point]] = {}
        self.search_results = search_results or []
        self.created: list[tuple[str, int]] = []
        self.upserts: list[tuple[str, list[Point], bool]] = []
        self.searches: list[dict[str, Any]] = []
        self.probe_error: Exception | None = None
        self.create_error: Exception | None = None

    def get_collection(self, name: str) -> dict[str, Any]:
        if self.probe_error is not None:
            raise self.probe_error
        if name not in self.collections:
            raise CollectionNotFoundError(name)
        return {"name": name, "points_count": len(self.points.get(name, {})), "vector_size": self.collections[name]}

    def create_collection(self, name: str, dim: int) -> None:
        if self.create_error is not None:
            raise self.create_error
        self.created.append((name, dim))
        self.collections[name] = dim

    def upsert(self, name: str, points: list[Point], *, wait: bool = True) -> None:
        self.upserts.append((name, list(points), wait))
        bucket = self.points.setdefault(name, {})
        for p in points:
            bucket[p.id] = p

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
        self.searches.append(
            {"name": name, "vector": vector, "k": k, "filters": filters, "hnsw_ef": hnsw_ef, "with_payload": with_payload}
        )
        return self.search_results[:k]

    def health_check(self) -> bool:
        return True


class DictDocumentSource(DocumentSource):
    """Serves documents keyed by file name; ``None`` means the file fails to parse."""

    def __init__(self, docs: dict[str, tuple[str, str] | None]) -> None:
        self.docs = docs
        self.extracted: list[str] = []

    def extract(self, path: str | Path) -> Document:
        name = Path(path).name
        self.extracted.append(name)
        entry = self.docs.get(name)
        if entry is None:
            raise ParseError(str(path), "unreadable")
        text, title = entry
        return Document(path=str(path), text=text, title=title)


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        collection="test-docs",
        embedding_dim=DIM,
        chunk_size=40,
        chunk_overlap=10,
        openai_api_key="sk-test",
    )


@pytest.fixture()
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture()
def store() -> RecordingVectorStore:
    return RecordingVectorStore()


@pytest.fixture()
def fake_embedder_cls() -> type[FakeEmbedder]:
    return FakeEmbedder


@pytest.fixture()
def fake_store_cls() -> type[RecordingVectorStore]:
    return RecordingVectorStore


@pytest.fixture()
def doc_source_cls() -> type[DictDocumentSource]:
    return DictDocumentSource
