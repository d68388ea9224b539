"""Ingest pipeline: HTML files → chunks → embeddings → vector-store points.

Each file moves through Discovered → Parsed → Chunked → Embedded →
Upserted. A failure at any step aborts that file; under the default
fail-fast policy it also aborts the run, while ``continue_on_error``
records the error and moves on to the next file.

All points of one file are upserted in a single call, and only after
every chunk embedding of that file succeeded.

Usage::

    from ragger.config import load_settings
    from ragger.ingestion.embedder import make_embedder
    from ragger.ingestion.pipeline import IngestPipeline
    from ragger.retrieval.factory import make_vector_store

    settings = load_settings()
    pipeline = IngestPipeline(
        settings,
        embedder=make_embedder(settings),
        store=make_vector_store(settings),
    )
    report = pipeline.run("./html")
"""

from __future__ import annotations

import hashlib
import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from ragger.errors import CollectionNotFoundError, DimensionMismatchError, ProviderError, RaggerError, SchemaError
from ragger.ingestion.chunker import Chunk, chunk_text
from ragger.ingestion.loader import DocumentSource, HtmlDocumentSource, iter_html_files
from ragger.retrieval.models import Point

if TYPE_CHECKING:
    from ragger.config import Settings
    from ragger.ingestion.embedder import Embedder
    from ragger.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

DOCUMENT_TYPE = "html"


def document_id(path: str | Path) -> str:
    """Stable document id derived from the source path."""
    return "doc_" + hashlib.sha1(str(path).encode("utf-8")).hexdigest()


def point_id(doc_id: str, chunk_id: str) -> str:
    """Deterministic point id for ``(doc_id, chunk_id)``.

    Folded into a name-based UUID because Qdrant only accepts UUIDs or
    unsigned integers as point ids.
    """
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{doc_id}_{chunk_id}"))


class FileError(BaseModel):
    """A per-file failure recorded in continue-on-error mode."""

    path: str
    error: str


class IngestReport(BaseModel):
    """Summary of one ingest run."""

    files_seen: int = 0
    files_ingested: int = 0
    files_skipped: int = 0
    chunks_indexed: int = 0
    errors: list[FileError] = Field(default_factory=list)
    cancelled: bool = False


class IngestCancelled(Exception):
    """Raised internally when the stop event fires mid-file."""


class IngestPipeline:
    """Walks HTML documents and indexes their chunks.

    Parameters
    ----------
    settings:
        Collection name, dimensionality, chunking and concurrency knobs.
    embedder:
        Embedding provider; one request per chunk.
    store:
        Target vector store.
    source:
        Document source; defaults to :class:`HtmlDocumentSource`.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        embedder: Embedder,
        store: VectorStoreBase,
        source: DocumentSource | None = None,
    ) -> None:
        self.settings = settings
        self._embedder = embedder
        self._store = store
        self._source = source or HtmlDocumentSource()
        self._schema_lock = threading.Lock()
        self._ensured: set[str] = set()

    # -- public API -----------------------------------------------------------

    def ensure_collection(self, name: str | None = None, dim: int | None = None) -> None:
        """Create collection *name* for cosine vectors of size *dim* unless it exists.

        Only a "not found" probe result triggers creation; any other probe
        error propagates. Runs at most once per name and never concurrently.

        Raises
        ------
        SchemaError
            If the collection could not be created.
        """
        name = name or self.settings.collection
        dim = dim or self.settings.embedding_dim

        with self._schema_lock:
            if name in self._ensured:
                return
            try:
                self._store.get_collection(name)
                logger.debug("Collection '%s' already exists", name)
            except CollectionNotFoundError:
                logger.info("Collection '%s' not found, creating (dim=%d)", name, dim)
                try:
                    self._store.create_collection(name, dim)
                except RaggerError as exc:
                    raise SchemaError(f"create collection {name!r}: {exc}") from exc
            self._ensured.add(name)

    def ingest_file(self, path: str | Path, *, stop_event: threading.Event | None = None) -> int:
        """Index one document and return the number of chunks upserted.

        Empty documents are skipped and return ``0``.
        """
        self.ensure_collection()

        doc = self._source.extract(path)
        if not doc.text:
            logger.info("skip empty: %s", path)
            return 0

        doc_id = document_id(path)
        chunks = chunk_text(doc.text, self.settings.chunk_size, self.settings.chunk_overlap)
        vectors = self._embed_chunks(chunks, stop_event)

        ingested_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        points = [
            Point(
                id=point_id(doc_id, chunk.chunk_id),
                vector=vector,
                payload={
                    "doc_id": doc_id,
                    "chunk_id": chunk.chunk_id,
                    "title": doc.title,
                    "path": str(path),
                    "start": chunk.start,
                    "end": chunk.end,
                    "text": chunk.text,
                    "ingested_at": ingested_at,
                    "lang": self.settings.ingest_lang,
                    "type": DOCUMENT_TYPE,
                },
            )
            for chunk, vector in zip(chunks, vectors)
        ]

        self._store.upsert(self.settings.collection, points, wait=True)
        logger.info("ingested %s (%d chunks)", path, len(points))
        return len(points)

    def run(self, root: str | Path | None = None, *, stop_event: threading.Event | None = None) -> IngestReport:
        """Ingest every ``.html`` file under *root* (default ``settings.html_dir``).

        Raises
        ------
        SchemaError
            If the target collection cannot be created.
        RaggerError
            The first per-file error, unless ``continue_on_error`` is set.
        """
        root = root or self.settings.html_dir
        self.ensure_collection()

        report = IngestReport()
        for path in iter_html_files(root):
            if stop_event is not None and stop_event.is_set():
                report.cancelled = True
                break

            report.files_seen += 1
            try:
                count = self.ingest_file(path, stop_event=stop_event)
            except IngestCancelled:
                report.cancelled = True
                break
            except RaggerError as exc:
                if not self.settings.continue_on_error:
                    logger.error("Ingest of %s failed: %s", path, exc)
                    raise
                logger.error("Skipping %s: %s", path, exc)
                report.errors.append(FileError(path=str(path), error=str(exc)))
                continue

            if count:
                report.files_ingested += 1
                report.chunks_indexed += count
            else:
                report.files_skipped += 1

        if report.cancelled:
            logger.warning("Ingest cancelled after %d files", report.files_seen)
        logger.info(
            "Ingest finished: %d ingested, %d skipped, %d failed, %d chunks",
            report.files_ingested,
            report.files_skipped,
            len(report.errors),
            report.chunks_indexed,
        )
        return report

    # -- internals ------------------------------------------------------------

    def _embed_chunk(self, chunk: Chunk, stop_event: threading.Event | None) -> list[float]:
        if stop_event is not None and stop_event.is_set():
            raise IngestCancelled()
        vectors = self._embedder.embed([chunk.text])
        if not vectors:
            raise ProviderError(f"embedding: empty response for {chunk.chunk_id}")
        vector = vectors[0]
        if len(vector) != self.settings.embedding_dim:
            raise DimensionMismatchError(len(vector), self.settings.embedding_dim)
        return vector

    def _embed_chunks(self, chunks: list[Chunk], stop_event: threading.Event | None) -> list[list[float]]:
        workers = self.settings.embed_workers
        if workers <= 1 or len(chunks) <= 1:
            return [self._embed_chunk(chunk, stop_event) for chunk in chunks]

        # executor.map keeps chunk order and re-raises the first failure
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="embed")
        try:
            return list(pool.map(lambda c: self._embed_chunk(c, stop_event), chunks))
        finally:
            pool.shutdown(wait=True, cancel_futures=True)
