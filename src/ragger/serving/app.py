"""FastAPI application exposing search + prompt assembly as a REST API."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from ragger import __version__
from ragger.config import load_settings
from ragger.errors import ProviderError
from ragger.retrieval.models import Hit
from ragger.retrieval.retriever import SemanticRetriever

app = FastAPI(
    title="ragger API",
    version=__version__,
    description="Semantic search over ingested HTML documents with grounded prompt assembly.",
)


@lru_cache(maxsize=1)
def get_retriever() -> SemanticRetriever:
    """Build the retriever once per process from the environment / config file."""
    from ragger.ingestion.embedder import make_embedder
    from ragger.retrieval.factory import make_vector_store

    settings = load_settings()
    return SemanticRetriever(settings, embedder=make_embedder(settings), store=make_vector_store(settings))


# ── Request / Response schemas ────────────────────────────────────────
class SearchRequest(BaseModel):
    """Incoming search query."""

    query: str = Field(min_length=1)
    k: int | None = Field(default=None, gt=0)
    lang: str | None = None


class SearchResponse(BaseModel):
    """Ordered hits plus the rendered prompt."""

    hits: list[Hit]
    prompt: str


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ready")
def ready(retriever: Annotated[SemanticRetriever, Depends(get_retriever)]) -> dict[str, str]:
    """Readiness probe: 503 until the vector store answers."""
    if not retriever.health_check():
        raise HTTPException(status_code=503, detail="vector store unavailable")
    return {"status": "ready"}


@app.post("/search", response_model=SearchResponse)
def search(
    request: SearchRequest,
    retriever: Annotated[SemanticRetriever, Depends(get_retriever)],
) -> SearchResponse:
    """Search the collection and build the grounded prompt."""
    try:
        hits = retriever.search(request.query, k=request.k, lang=request.lang)
    except ProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return SearchResponse(hits=hits, prompt=retriever.build_prompt(request.query, hits))
