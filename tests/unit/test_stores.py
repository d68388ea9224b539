"""Unit tests for the Qdrant and Chroma backends with mocked clients."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from ragger.config import Settings
from ragger.errors import CollectionNotFoundError, ProviderError
from ragger.retrieval.models import MetadataFilter, Point

POINTS = [
    Point(id="11111111-1111-5111-8111-111111111111", vector=[0.1, 0.2], payload={"text": "one", "lang": "ru", "start": 0}),
    Point(id="22222222-2222-5222-8222-222222222222", vector=[0.3, 0.4], payload={"text": "two", "lang": "ru", "start": 5}),
]


# ── Qdrant ─────────────────────────────────────────────────────────────


class TestQdrantVectorStore:
    @pytest.fixture()
    def client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture()
    def qstore(self, client: MagicMock):
        from ragger.retrieval.qdrant_store import QdrantVectorStore

        return QdrantVectorStore(client=client)

    def test_missing_collection_raises_not_found(self, qstore, client: MagicMock) -> None:
        client.collection_exists.return_value = False
        with pytest.raises(CollectionNotFoundError):
            qstore.get_collection("docs")
        client.get_collection.assert_not_called()

    def test_probe_transport_error_is_provider_error(self, qstore, client: MagicMock) -> None:
        client.collection_exists.side_effect = ConnectionError("refused")
        with pytest.raises(ProviderError, match="refused") as exc_info:
            qstore.get_collection("docs")
        assert not isinstance(exc_info.value, CollectionNotFoundError)

    def test_existing_collection_info(self, qstore, client: MagicMock) -> None:
        client.collection_exists.return_value = True
        client.get_collection.return_value = SimpleNamespace(
            points_count=3,
            config=SimpleNamespace(params=SimpleNamespace(vectors=SimpleNamespace(size=8))),
        )
        info = qstore.get_collection("docs")
        assert info == {"name": "docs", "points_count": 3, "vector_size": 8}

    def test_create_collection_uses_cosine(self, qstore, client: MagicMock) -> None:
        from qdrant_client.models import Distance

        qstore.create_collection("docs", 1536)
        kwargs = client.create_collection.call_args.kwargs
        assert kwargs["collection_name"] == "docs"
        assert kwargs["vectors_config"].size == 1536
        assert kwargs["vectors_config"].distance == Distance.COSINE

    def test_upsert_single_call_with_wait(self, qstore, client: MagicMock) -> None:
        qstore.upsert("docs", POINTS, wait=True)
        client.upsert.assert_called_once()
        kwargs = client.upsert.call_args.kwargs
        assert kwargs["collection_name"] == "docs"
        assert kwargs["wait"] is True
        assert [p.id for p in kwargs["points"]] == [p.id for p in POINTS]
        assert kwargs["points"][0].payload["text"] == "one"

    def test_upsert_failure_wrapped(self, qstore, client: MagicMock) -> None:
        client.upsert.side_effect = RuntimeError("timeout")
        with pytest.raises(ProviderError, match="timeout"):
            qstore.upsert("docs", POINTS)

    def test_search_builds_filter_and_params(self, qstore, client: MagicMock) -> None:
        client.query_points.return_value = SimpleNamespace(
            points=[
                SimpleNamespace(id="a", score=0.9, payload={"title": "A"}),
                SimpleNamespace(id="b", score=0.8, payload=None),
            ]
        )
        hits = qstore.search("docs", [0.1, 0.2], k=2, filters=[MetadataFilter.equals("lang", "en")], hnsw_ef=128)

        kwargs = client.query_points.call_args.kwargs
        assert kwargs["limit"] == 2
        assert kwargs["with_payload"] is True
        assert kwargs["search_params"].hnsw_ef == 128
        condition = kwargs["query_filter"].must[0]
        assert condition.key == "lang"
        assert condition.match.value == "en"
        assert hits == [
            {"id": "a", "score": 0.9, "payload": {"title": "A"}},
            {"id": "b", "score": 0.8, "payload": {}},
        ]

    def test_search_without_filter(self, qstore, client: MagicMock) -> None:
        client.query_points.return_value = SimpleNamespace(points=[])
        assert qstore.search("docs", [0.1], k=5) == []
        kwargs = client.query_points.call_args.kwargs
        assert kwargs["query_filter"] is None
        assert kwargs["search_params"] is None

    def test_unsupported_operator_raises(self) -> None:
        from ragger.retrieval.qdrant_store import _build_qdrant_filter

        with pytest.raises(ValueError, match="Unsupported filter operator"):
            _build_qdrant_filter([MetadataFilter(field="x", operator="regex", value=".*")])

    def test_health_check(self, qstore, client: MagicMock) -> None:
        assert qstore.health_check() is True
        client.get_collections.side_effect = ConnectionError("down")
        assert qstore.health_check() is False


# ── Chroma ─────────────────────────────────────────────────────────────


class TestChromaVectorStore:
    @pytest.fixture()
    def client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture()
    def cstore(self, client: MagicMock):
        from ragger.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(client=client, search_ef=64)

    def test_missing_collection_raises_not_found(self, cstore, client: MagicMock) -> None:
        from chromadb.errors import NotFoundError

        client.get_collection.side_effect = NotFoundError("Collection docs does not exist")
        with pytest.raises(CollectionNotFoundError):
            cstore.get_collection("docs")

    def test_other_probe_error_is_provider_error(self, cstore, client: MagicMock) -> None:
        client.get_collection.side_effect = ConnectionError("refused")
        with pytest.raises(ProviderError) as exc_info:
            cstore.get_collection("docs")
        assert not isinstance(exc_info.value, CollectionNotFoundError)

    def test_count_failure_is_provider_error(self, cstore, client: MagicMock) -> None:
        client.get_collection.return_value.count.side_effect = ConnectionError("reset")
        with pytest.raises(ProviderError, match="reset"):
            cstore.get_collection("docs")

    def test_create_collection_cosine_metadata(self, cstore, client: MagicMock) -> None:
        cstore.create_collection("docs", 8)
        args, kwargs = client.create_collection.call_args
        assert args[0] == "docs"
        assert kwargs["metadata"] == {"hnsw:space": "cosine", "hnsw:search_ef": 64}

    def test_upsert_sends_documents_and_flat_metadata(self, cstore, client: MagicMock) -> None:
        collection = client.get_collection.return_value
        cstore.upsert("docs", POINTS)
        kwargs = collection.upsert.call_args.kwargs
        assert kwargs["ids"] == [p.id for p in POINTS]
        assert kwargs["documents"] == ["one", "two"]
        assert kwargs["metadatas"][1] == {"text": "two", "lang": "ru", "start": 5}

    def test_search_converts_distance_to_similarity(self, cstore, client: MagicMock) -> None:
        collection = client.get_collection.return_value
        collection.query.return_value = {
            "ids": [["a", "b"]],
            "distances": [[0.1, 0.25]],
            "metadatas": [[{"title": "A"}, None]],
            "documents": [["alpha", "beta"]],
        }
        hits = cstore.search("docs", [0.1, 0.2], k=2, filters=[MetadataFilter.equals("lang", "en")])

        kwargs = collection.query.call_args.kwargs
        assert kwargs["where"] == {"lang": {"$eq": "en"}}
        assert kwargs["n_results"] == 2
        assert [h["id"] for h in hits] == ["a", "b"]
        assert hits[0]["score"] == pytest.approx(0.9)
        assert hits[0]["payload"] == {"title": "A", "text": "alpha"}
        assert hits[1]["payload"] == {"text": "beta"}

    def test_where_builder(self) -> None:
        from ragger.retrieval.chroma_store import _build_chroma_where

        assert _build_chroma_where([]) is None
        assert _build_chroma_where(None) is None
        where = _build_chroma_where([MetadataFilter.equals("lang", "en"), MetadataFilter.equals("type", "html")])
        assert where == {"$and": [{"lang": {"$eq": "en"}}, {"type": {"$eq": "html"}}]}


# ── Factory ────────────────────────────────────────────────────────────


class TestMakeVectorStore:
    def test_qdrant_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from ragger.retrieval import qdrant_store
        from ragger.retrieval.factory import make_vector_store

        fake_client = MagicMock()
        monkeypatch.setattr(qdrant_store, "QdrantClient", fake_client)
        settings = Settings(vector_backend="qdrant", qdrant_host="qdrant.local", qdrant_port=7000)

        store = make_vector_store(settings)

        assert isinstance(store, qdrant_store.QdrantVectorStore)
        kwargs = fake_client.call_args.kwargs
        assert kwargs["host"] == "qdrant.local"
        assert kwargs["port"] == 7000

    def test_chroma_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from ragger.retrieval import chroma_store
        from ragger.retrieval.factory import make_vector_store

        fake_http = MagicMock()
        monkeypatch.setattr(chroma_store.chromadb, "HttpClient", fake_http)
        store = make_vector_store(Settings(vector_backend="chroma", chroma_port=9000))

        assert isinstance(store, chroma_store.ChromaVectorStore)
        assert fake_http.call_args.kwargs["port"] == 9000
