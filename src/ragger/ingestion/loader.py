"""Document sources: HTML discovery and plain-text extraction."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from bs4 import BeautifulSoup
from pydantic import BaseModel

from ragger.errors import ParseError

NOISE_TAGS = ["script", "style", "nav", "footer", "header", "noscript"]

_WHITESPACE_RE = re.compile(r"\s+")


class Document(BaseModel):
    """Extracted document, alive only for one ingest pass over one file."""

    path: str
    text: str
    title: str


class DocumentSource(ABC):
    """Turns a source path into normalised text plus a title."""

    @abstractmethod
    def extract(self, path: str | Path) -> Document:
        """Return the extracted document; raise :class:`ParseError` on failure."""
        ...


class HtmlDocumentSource(DocumentSource):
    """BeautifulSoup-based HTML → text extraction.

    Boiler-plate tags are dropped, the ``<title>`` is used as title (the file
    name when absent) and all whitespace runs collapse to a single space.
    """

    def __init__(self, parser: str = "html.parser", encoding: str = "utf-8") -> None:
        self._parser = parser
        self._encoding = encoding

    def extract(self, path: str | Path) -> Document:
        path = Path(path)
        try:
            raw = path.read_text(encoding=self._encoding, errors="replace")
        except OSError as exc:
            raise ParseError(str(path), str(exc)) from exc
        return html_to_document(raw, str(path), parser=self._parser)


def html_to_document(html: str, path: str, *, parser: str = "html.parser") -> Document:
    """Parse *html* and return a normalised :class:`Document` for *path*."""
    soup = BeautifulSoup(html, parser)

    for tag in soup(NOISE_TAGS):
        tag.decompose()

    title = ""
    if soup.title is not None:
        title = soup.title.get_text().strip()
    if not title:
        title = Path(path).name

    text = _WHITESPACE_RE.sub(" ", soup.get_text().strip())
    return Document(path=path, text=text, title=title)


def iter_html_files(root: str | Path) -> Iterator[Path]:
    """Yield ``*.html`` files under *root* (case-insensitive suffix), sorted."""
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")
    for fpath in sorted(root.rglob("*")):
        if fpath.is_file() and fpath.suffix.lower() == ".html":
            yield fpath
