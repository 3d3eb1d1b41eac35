"""Editor-side types shared by every language-server backend.

Request and result shapes are the Language Server Protocol types from
:mod:`lsprotocol.types`; positions are 0-based for both line and character.
This module only adds what the protocol does not model: the interpreter a
backend analyzes against, the cancellation token handed to requests and
helpers to move between paths, URIs and open documents.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from lsprotocol.types import Location, LocationLink, TextDocumentItem

# Folder or file the backend is started for, as a path or ``file://`` URI
Resource = Optional[str]


def uri_to_path(uri: str) -> Path:
    """Convert a ``file://`` URI (or a plain path) to a filesystem path."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(url2pathname(unquote(parsed.path)))
    return Path(uri)


def path_to_uri(path: Union[str, Path]) -> str:
    """Convert a filesystem path (or something already a URI) to a URI."""
    if isinstance(path, str) and "://" in path:
        return path
    return Path(path).resolve().as_uri()


def text_document(
    path: Union[str, Path],
    text: Optional[str] = None,
    version: int = 0,
    language_id: str = "python",
) -> TextDocumentItem:
    """Build the open-document item for ``path``, reading it unless ``text`` is given."""
    path = Path(path)
    if text is None:
        text = path.read_text(encoding="utf-8")
    return TextDocumentItem(
        uri=path_to_uri(path), language_id=language_id, version=version, text=text
    )


def document_path(document: TextDocumentItem) -> Path:
    return uri_to_path(document.uri)


def as_location(item: Union[Location, LocationLink]) -> Location:
    """Collapse a LocationLink to the Location of its selected target."""
    if isinstance(item, LocationLink):
        return Location(uri=item.target_uri, range=item.target_selection_range)
    return item


@dataclass(frozen=True)
class Interpreter:
    """Python environment a backend should analyze code against."""

    path: str
    version: Optional[str] = None


class CancellationToken:
    """Cooperative cancellation flag handed to request operations.

    The multiplexer never inspects the token, it only forwards it. Backends
    check :attr:`is_cancellation_requested` or await :meth:`wait`.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
