"""Domain models for indexed points, search hits and payload filters."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MetadataFilter(BaseModel):
    """Declarative payload filter for vector-store queries.

    Attributes
    ----------
    field:
        The payload key to filter on (e.g. ``"lang"``).
    operator:
        Comparison operator; only ``eq`` (exact match) is supported by the
        bundled backends.
    value:
        The value to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)


class Point(BaseModel):
    """One persisted record: vector, payload and a deterministic id."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class Hit(BaseModel):
    """Read-only projection of a search result.

    ``score`` is a cosine similarity: higher means more similar.
    """

    model_config = ConfigDict(frozen=True)

    score: float
    title: str = ""
    text: str = ""
    doc_id: str = ""
    chunk_id: str = ""
    path: str = ""

    @classmethod
    def from_result(cls, raw: dict[str, Any]) -> Hit:
        """Build a hit from a raw store result (``{"id", "score", "payload"}``).

        Payload fields are loosely typed; anything missing or null maps to
        an empty string instead of failing.
        """
        payload = raw.get("payload") or {}
        return cls(
            score=float(raw.get("score") or 0.0),
            title=_as_text(payload.get("title")),
            text=_as_text(payload.get("text")),
            doc_id=_as_text(payload.get("doc_id")),
            chunk_id=_as_text(payload.get("chunk_id")),
            path=_as_text(payload.get("path")),
        )
