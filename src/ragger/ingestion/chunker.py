"""Character-window text chunking with overlap and word-boundary preservation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# A window is only cut at whitespace when that whitespace lies beyond this
# fraction of the window size.
WORD_BOUNDARY_RATIO = 0.6


class Chunk(BaseModel):
    """A fragment of a document with its character offsets.

    Attributes
    ----------
    text:
        ``document_text[start:end]``.
    start / end:
        Character offsets in the parent document, ``0 <= start < end``.
    index:
        Position of the chunk within one chunking call.
    chunk_id:
        ``"<prefix>_<index>"``, stable for identical inputs.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    start: int
    end: int
    index: int
    chunk_id: str


def _last_whitespace(fragment: str) -> int:
    for i in range(len(fragment) - 1, -1, -1):
        if fragment[i].isspace():
            return i
    return -1


def chunk_text(text: str, size: int, overlap: int, *, id_prefix: str = "ch") -> list[Chunk]:
    """Split *text* into overlapping windows of at most *size* characters.

    Every window that does not reach the end of the text is shortened to
    its last whitespace when that whitespace sits beyond 60% of *size*, so
    words are not cut in half. The next window starts ``overlap``
    characters before the current end.

    Parameters
    ----------
    text:
        Normalised document text.
    size:
        Window length in characters; must be positive.
    overlap:
        Characters shared by consecutive chunks; ``0 <= overlap < size``.
    id_prefix:
        Prefix of the generated chunk ids.

    Returns
    -------
    list[Chunk]
        Ordered chunks; empty for empty text. The last chunk always ends at
        ``len(text)``.

    Raises
    ------
    ValueError
        If ``size <= 0``, ``overlap < 0`` or ``overlap >= size``.
    """
    if size <= 0:
        raise ValueError(f"chunk_size must be positive, got {size}")
    if overlap < 0:
        raise ValueError(f"chunk_overlap must be >= 0, got {overlap}")
    if overlap >= size:
        raise ValueError(f"chunk_overlap ({overlap}) must be < chunk_size ({size})")

    chunks: list[Chunk] = []
    length = len(text)
    threshold = int(size * WORD_BOUNDARY_RATIO)
    position = 0

    while position < length:
        end = min(position + size, length)

        if end < length:
            cut = _last_whitespace(text[position:end])
            # only take the word-safe cut if the next window still moves forward
            if cut > threshold and cut > overlap:
                end = position + cut

        chunks.append(
            Chunk(
                text=text[position:end],
                start=position,
                end=end,
                index=len(chunks),
                chunk_id=f"{id_prefix}_{len(chunks)}",
            )
        )

        if end >= length:
            break

        next_position = end - overlap
        if next_position <= position:
            break
        position = next_position

    return chunks


def estimate_chunk_count(text_length: int, size: int, overlap: int) -> int:
    """Rough number of chunks :func:`chunk_text` produces for *text_length* characters.

    Ignores word-boundary cuts, which can only add chunks.
    """
    if text_length <= 0:
        return 0
    if text_length <= size:
        return 1
    step = size - overlap
    if step <= 0:
        return text_length
    return (text_length - size) // step + 1
