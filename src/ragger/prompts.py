"""Prompt template for grounded answering over retrieved hits.

The prompt is a pure function of the query and the ordered hits, so the
same search always renders byte-identical text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ragger.retrieval.models import Hit

MAX_FRAGMENT_CHARS = 800
TRUNCATION_MARKER = "…"
HIT_SEPARATOR = "\n\n---\n\n"

RAG_PROMPT_TEMPLATE = """\
You are a technical assistant. Answer only from the context below and cite the [numbers] you rely on.
If the context does not contain the answer, say so honestly.

Question: {query}

Context:
{context}
"""


def snippet(text: str, limit: int) -> str:
    """Return *text* cut to *limit* characters, marked with ``…`` when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def format_hits(hits: list[Hit]) -> str:
    """Numbered ``[i] title (doc_id/chunk_id)`` listing of the hit texts."""
    parts: list[str] = []
    for i, hit in enumerate(hits, 1):
        text = snippet(hit.text, MAX_FRAGMENT_CHARS)
        parts.append(f"[{i}] {hit.title} ({hit.doc_id}/{hit.chunk_id})\n{text}")
    return HIT_SEPARATOR.join(parts)


def build_prompt(query: str, hits: list[Hit]) -> str:
    """Assemble the instruction prompt for a downstream language model.

    Parameters
    ----------
    query:
        The user question, inserted verbatim.
    hits:
        Search hits in ranking order; numbering follows this order.

    Returns
    -------
    str
        The rendered prompt.
    """
    return RAG_PROMPT_TEMPLATE.format(query=query, context=format_hits(hits))
