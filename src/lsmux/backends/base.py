"""Capability-provider contract shared by every language-server backend.

Backends registered with the registry subclass :class:`BaseLanguageServer`.
:class:`LanguageServerProtocol` describes the same surface structurally so
third-party providers can be type-checked without inheriting from it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol, Union, runtime_checkable

from lsprotocol.types import (
    CodeLens,
    CompletionContext,
    CompletionItem,
    DocumentSymbol,
    Hover,
    Location,
    Position,
    ReferenceContext,
    ServerCapabilities,
    SignatureHelp,
    SignatureHelpContext,
    SymbolInformation,
    TextDocumentItem,
    WorkspaceEdit,
)

from ..events import Disposable
from ..types import CancellationToken, Interpreter, Resource


@runtime_checkable
class LanguageServerProtocol(Protocol):
    """Protocol defining the interface that language-server backends implement."""

    async def start(
        self, resource: Resource, interpreter: Optional[Interpreter]
    ) -> None: ...

    def activate(self) -> None: ...

    def deactivate(self) -> None: ...

    def dispose(self) -> None: ...

    @property
    def connection(self) -> Optional[Any]: ...

    @property
    def capabilities(self) -> Optional[ServerCapabilities]: ...

    @property
    def on_did_change_code_lenses(self) -> Callable[..., Disposable]: ...

    async def rename_edits(self, document, position, new_name, token): ...

    async def definition(self, document, position, token): ...

    async def hover(self, document, position, token): ...

    async def references(self, document, position, context, token): ...

    async def completion_items(self, document, position, token, context): ...

    async def code_lenses(self, document, token): ...

    async def document_symbols(self, document, token): ...

    async def signature_help(self, document, position, token, context): ...


class BaseLanguageServer(ABC):
    """Abstract base class for code-intelligence backends.

    A backend has a lifecycle (``start``, ``activate``, ``deactivate``,
    ``dispose``), two synchronous accessors (``connection`` and
    ``capabilities``), one event stream and one asynchronous operation per
    supported request kind. Every request takes the document, the position
    where applicable, a cancellation token and any kind-specific context.
    """

    @abstractmethod
    async def start(
        self, resource: Resource, interpreter: Optional[Interpreter]
    ) -> None:
        """Begin backend-specific startup.

        Args:
            resource: Workspace folder or file the backend serves.
            interpreter: Python environment to analyze against, if known.
        """

    @abstractmethod
    def activate(self) -> None:
        """Start answering requests."""

    @abstractmethod
    def deactivate(self) -> None:
        """Stop answering requests without releasing resources."""

    @abstractmethod
    def dispose(self) -> None:
        """Release processes, executors and connections held by the backend."""

    @property
    @abstractmethod
    def connection(self) -> Optional[Any]:
        """Protocol connection once started, None for connection-less backends."""

    @property
    @abstractmethod
    def capabilities(self) -> Optional[ServerCapabilities]:
        """Feature set the backend declares, as LSP ``ServerCapabilities``."""

    @property
    @abstractmethod
    def on_did_change_code_lenses(self) -> Callable[..., Disposable]:
        """Event fired when previously returned code lenses are stale."""

    @abstractmethod
    async def rename_edits(
        self,
        document: TextDocumentItem,
        position: Position,
        new_name: str,
        token: CancellationToken,
    ) -> Optional[WorkspaceEdit]:
        """Edits that rename the symbol at ``position`` to ``new_name``."""

    @abstractmethod
    async def definition(
        self, document: TextDocumentItem, position: Position, token: CancellationToken
    ) -> Optional[list[Location]]:
        """Locations where the symbol at ``position`` is defined."""

    @abstractmethod
    async def hover(
        self, document: TextDocumentItem, position: Position, token: CancellationToken
    ) -> Optional[Hover]:
        """Hover information for the symbol at ``position``."""

    @abstractmethod
    async def references(
        self,
        document: TextDocumentItem,
        position: Position,
        context: ReferenceContext,
        token: CancellationToken,
    ) -> Optional[list[Location]]:
        """All references to the symbol at ``position``."""

    @abstractmethod
    async def completion_items(
        self,
        document: TextDocumentItem,
        position: Position,
        token: CancellationToken,
        context: CompletionContext,
    ) -> Optional[list[CompletionItem]]:
        """Completion candidates at ``position``."""

    @abstractmethod
    async def code_lenses(
        self, document: TextDocumentItem, token: CancellationToken
    ) -> Optional[list[CodeLens]]:
        """Code lenses for the whole document."""

    @abstractmethod
    async def document_symbols(
        self, document: TextDocumentItem, token: CancellationToken
    ) -> Optional[list[Union[DocumentSymbol, SymbolInformation]]]:
        """Symbols defined in the document."""

    @abstractmethod
    async def signature_help(
        self,
        document: TextDocumentItem,
        position: Position,
        token: CancellationToken,
        context: SignatureHelpContext,
    ) -> Optional[SignatureHelp]:
        """Signature of the call surrounding ``position``."""


__all__ = ["BaseLanguageServer", "LanguageServerProtocol"]
