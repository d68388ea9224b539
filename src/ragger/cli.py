"""Command-line entry point: ``ragger --mode ingest|search``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from ragger.config import DEFAULT_CONFIG_PATH, Settings, load_settings
from ragger.errors import RaggerError
from ragger.ingestion.embedder import make_embedder
from ragger.ingestion.pipeline import IngestPipeline
from ragger.prompts import snippet
from ragger.retrieval.factory import make_vector_store
from ragger.retrieval.retriever import SemanticRetriever

if TYPE_CHECKING:
    from ragger.retrieval.models import Hit

logger = logging.getLogger("ragger")

SNIPPET_CHARS = 280


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ragger", description="HTML RAG ingestion and search")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="path to TOML config file")
    parser.add_argument("--mode", choices=["ingest", "search"], help="ingest | search")
    parser.add_argument("--dir", dest="html_dir", help="directory with HTML files (ingest)")
    parser.add_argument("-q", "--query", help="query text (search)")
    parser.add_argument("-k", dest="top_k", type=int, help="top-k (search)")
    parser.add_argument("--lang", help="payload.lang filter (search, optional)")
    parser.add_argument("--model", help="embedding model, e.g. text-embedding-3-small|large")
    parser.add_argument("--backend", dest="vector_backend", choices=["qdrant", "chroma"], help="vector store")
    parser.add_argument("--qdrant-host", dest="qdrant_host", help="Qdrant host")
    parser.add_argument("--workers", dest="embed_workers", type=int, help="parallel embedding requests per file")
    parser.add_argument(
        "--continue-on-error",
        dest="continue_on_error",
        action="store_true",
        default=None,
        help="log failed files and keep going instead of aborting",
    )
    return parser


def print_hits(settings: Settings, hits: list[Hit], prompt: str) -> None:
    print(f"Query: {settings.query}\nTop-{settings.top_k} results:")
    for i, hit in enumerate(hits, 1):
        print(f"#{i} score={hit.score:.4f} {hit.title}\n{snippet(hit.text, SNIPPET_CHARS)}\npath={hit.path}\n---")
    print("\n--- PROMPT ---")
    print(prompt)


def run(settings: Settings) -> int:
    """Execute the configured mode; return the process exit code."""
    if settings.mode == "search" and not settings.query:
        logger.error("-q is required in search mode")
        return 2

    embedder = make_embedder(settings)
    store = make_vector_store(settings)
    try:
        if settings.mode == "ingest":
            logger.info("Starting ingest mode, html_dir=%s", settings.html_dir)
            pipeline = IngestPipeline(settings, embedder=embedder, store=store)
            report = pipeline.run(settings.html_dir)
            if report.errors:
                logger.warning("Ingest completed with %d failed files", len(report.errors))
                return 1
            logger.info("Ingest process completed successfully")
            return 0

        logger.info("Starting search mode, query=%r top_k=%d", settings.query, settings.top_k)
        retriever = SemanticRetriever(settings, embedder=embedder, store=store)
        hits = retriever.search(settings.query)
        print_hits(settings, hits, retriever.build_prompt(settings.query, hits))
        return 0
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if k != "config"}

    try:
        settings = load_settings(args.config, **overrides)
    except ValueError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Configuration loaded, mode=%s collection=%s", settings.mode, settings.collection)

    try:
        return run(settings)
    except (RaggerError, ValueError, FileNotFoundError) as exc:
        logger.error("%s stopped with error: %s", settings.mode, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
