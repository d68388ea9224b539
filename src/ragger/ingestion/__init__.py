"""
Ingestion — HTML extraction, chunking, embedding and indexing.

This package converts raw HTML documents into embedded chunks stored in a
vector database.  :class:`~ragger.ingestion.pipeline.IngestPipeline` is the
orchestrator; the chunker is a pure function usable on its own.
"""
