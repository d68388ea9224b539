"""Error taxonomy shared by the ingest and search pipelines.

Every failure the core raises derives from :class:`RaggerError` so callers
(the CLI, the HTTP layer, continue-on-error ingestion) can catch one type.
Process exit codes are decided by the caller, never here.
"""

from __future__ import annotations


class RaggerError(Exception):
    """Base class for all pipeline errors."""


class ParseError(RaggerError):
    """Document extraction failed; aborts that document only."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"parse {path}: {reason}")
        self.path = path


class DimensionMismatchError(RaggerError):
    """An embedding's length disagrees with the configured dimensionality."""

    def __init__(self, got: int, want: int) -> None:
        super().__init__(f"dim mismatch: got {got} want {want}")
        self.got = got
        self.want = want


class ProviderError(RaggerError):
    """An embedding or vector-store call failed."""


class CollectionNotFoundError(ProviderError):
    """The probed collection does not exist (the only probe error that triggers creation)."""

    def __init__(self, name: str) -> None:
        super().__init__(f"collection {name!r} not found")
        self.name = name


class SchemaError(RaggerError):
    """Collection creation failed; nothing can be safely indexed."""
