"""Full language-server backend speaking LSP to an external server over stdio.

The transport is a pygls :class:`~pygls.lsp.client.LanguageClient`. The
default command launches ``jedi-language-server``; any LSP server that reads
stdin and writes stdout works.
"""

from __future__ import annotations

import asyncio
import importlib.metadata as importlib_metadata
import logging
import os
import uuid
from typing import Any, Optional

from lsprotocol import types
from pygls.lsp.client import LanguageClient

from ..errors import BackendNotStartedError, ConnectionClosedError
from ..events import EventEmitter
from ..types import as_location, path_to_uri, uri_to_path
from ..utils import ignore_errors
from .base import BaseLanguageServer

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = ["jedi-language-server"]
SHUTDOWN_TIMEOUT = 5.0

CLIENT_CAPABILITIES = types.ClientCapabilities(
    text_document=types.TextDocumentClientCapabilities(
        synchronization=types.TextDocumentSyncClientCapabilities(),
        hover=types.HoverClientCapabilities(
            content_format=[types.MarkupKind.Markdown, types.MarkupKind.PlainText]
        ),
        definition=types.DefinitionClientCapabilities(link_support=True),
        references=types.ReferenceClientCapabilities(),
        rename=types.RenameClientCapabilities(),
        completion=types.CompletionClientCapabilities(),
        code_lens=types.CodeLensClientCapabilities(),
        document_symbol=types.DocumentSymbolClientCapabilities(
            hierarchical_document_symbol_support=True
        ),
        signature_help=types.SignatureHelpClientCapabilities(),
    ),
    workspace=types.WorkspaceClientCapabilities(
        code_lens=types.CodeLensWorkspaceClientCapabilities(refresh_support=True)
    ),
)


def _locations(result) -> list[types.Location]:
    if result is None:
        return []
    if not isinstance(result, list):
        result = [result]
    return [as_location(item) for item in result]


def _retrieve(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


class _LanguageClient(LanguageClient):
    """pygls client that records when the server process exits."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.server_exited = asyncio.Event()

    async def server_exit(self, server):
        logger.debug(f"Language server exited with code {server.returncode}")
        self.server_exited.set()


async def _shutdown(client: _LanguageClient) -> None:
    try:
        if not client.server_exited.is_set():
            await asyncio.wait_for(client.shutdown_async(None), SHUTDOWN_TIMEOUT)
            client.exit(None)
    finally:
        await client.stop()


class LanguageServerClient(BaseLanguageServer):
    """Full protocol-aware provider backed by a language-server subprocess."""

    def __init__(self, config: Optional[dict[str, Any]] = None):
        config = config or {}
        command = config.get("command", DEFAULT_COMMAND)
        if isinstance(command, str):
            command = [command]
        if not command:
            raise ValueError("Language server command must not be empty")

        self.command: list[str] = list(command)
        self.initialization_options = config.get("initialization_options", {})
        self.request_timeout: Optional[float] = config.get("request_timeout", 30.0)

        self._client: Optional[_LanguageClient] = None
        self._capabilities: Optional[types.ServerCapabilities] = None
        self._open_documents: dict[str, int] = {}  # uri -> synced version
        self._active = False
        self._start_lock = asyncio.Lock()
        self._stop_task: Optional[asyncio.Task] = None
        self._on_did_change_code_lenses = EventEmitter()

    async def start(self, resource, interpreter):
        # Concurrent callers wait for the first launch instead of spawning twice
        async with self._start_lock:
            if self._client is not None:
                logger.debug("Language server already started")
                return
            await self._launch(resource, interpreter)

    async def _launch(self, resource, interpreter) -> None:
        cwd = str(uri_to_path(resource)) if resource else None
        if cwd is not None and not os.path.isdir(cwd):
            cwd = os.path.dirname(cwd) or None

        client = _LanguageClient("lsmux", importlib_metadata.version("lsmux"))
        client.feature(types.WORKSPACE_CODE_LENS_REFRESH)(self._on_code_lens_refresh)
        client.feature(types.WINDOW_LOG_MESSAGE)(self._on_log_message)

        logger.debug(f"Launching language server: {' '.join(self.command)}")
        await client.start_io(*self.command, cwd=cwd)

        init_options = dict(self.initialization_options)
        if interpreter is not None:
            init_options.setdefault("workspace", {}).setdefault(
                "environmentPath", interpreter.path
            )

        try:
            result = await self._send(
                client,
                types.INITIALIZE,
                types.InitializeParams(
                    process_id=os.getpid(),
                    root_uri=path_to_uri(cwd) if cwd else None,
                    capabilities=CLIENT_CAPABILITIES,
                    initialization_options=init_options,
                ),
            )
            client.initialized(types.InitializedParams())
        except BaseException:
            await client.stop()
            raise

        self._client = client
        self._capabilities = result.capabilities
        self._active = True

        server_name = result.server_info.name if result.server_info else self.command[0]
        logger.info(f"Language server '{server_name}' started")

    async def _send(self, client: _LanguageClient, method: str, params, token=None):
        """Send one request and wait for its result.

        Returns None if ``token`` is cancelled first, after telling the server
        with ``$/cancelRequest``.

        Raises:
            ConnectionClosedError: If the server process has exited.
            asyncio.TimeoutError: If ``request_timeout`` elapsed first.
        """
        if client.server_exited.is_set():
            raise ConnectionClosedError("Language server process has exited")
        if token is not None and token.is_cancellation_requested:
            return None

        msg_id = str(uuid.uuid4())
        response = asyncio.ensure_future(
            client.protocol.send_request_async(method, params, msg_id=msg_id)
        )
        # Answers arriving after we stopped waiting are dropped
        response.add_done_callback(_retrieve)
        exited = asyncio.ensure_future(client.server_exited.wait())
        waiters = {response, exited}
        if token is not None:
            waiters.add(asyncio.ensure_future(token.wait()))

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self.request_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters - {response}:
                waiter.cancel()

        if response in done:
            if response.cancelled():
                raise ConnectionClosedError(
                    f"Request '{method}' was dropped by the connection"
                )
            return response.result()

        if exited in done:
            raise ConnectionClosedError(
                f"Language server exited before answering '{method}'"
            )
        if token is not None and token.is_cancellation_requested:
            logger.debug(f"Request {method} cancelled")
            client.protocol.notify(
                types.CANCEL_REQUEST, types.CancelParams(id=msg_id)
            )
            return None
        raise asyncio.TimeoutError(f"Request '{method}' timed out")

    def _on_code_lens_refresh(self, params):
        self._on_did_change_code_lenses.fire(None)
        return None

    def _on_log_message(self, params):
        logger.debug(f"[server] {params.message}")

    def activate(self):
        self._active = True

    def deactivate(self):
        self._active = False

    def dispose(self):
        client, self._client = self._client, None
        if client is not None:
            self._stop_task = ignore_errors(
                lambda: _shutdown(client), "language server shutdown"
            )
        self._open_documents.clear()
        self._active = False
        self._on_did_change_code_lenses.dispose()
        logger.debug("Language server client disposed")

    async def wait_stopped(self) -> None:
        """Wait until the server process released by ``dispose`` has stopped."""
        if self._stop_task is not None:
            await asyncio.wait([self._stop_task])

    @property
    def connection(self):
        return self._client

    @property
    def capabilities(self):
        return self._capabilities

    @property
    def on_did_change_code_lenses(self):
        return self._on_did_change_code_lenses.event

    def _sync_document(self, document) -> None:
        synced = self._open_documents.get(document.uri)
        if synced is None:
            self._client.text_document_did_open(
                types.DidOpenTextDocumentParams(text_document=document)
            )
        elif synced != document.version:
            self._client.text_document_did_change(
                types.DidChangeTextDocumentParams(
                    text_document=types.VersionedTextDocumentIdentifier(
                        uri=document.uri, version=document.version
                    ),
                    content_changes=[
                        types.TextDocumentContentChangeWholeDocument(text=document.text)
                    ],
                )
            )
        self._open_documents[document.uri] = document.version

    async def _request(self, method: str, document, params, token):
        if self._client is None:
            raise BackendNotStartedError("Language server used before start()")
        if not self._active:
            return None
        if self._client.server_exited.is_set():
            raise ConnectionClosedError("Language server process has exited")
        self._sync_document(document)
        return await self._send(self._client, method, params, token)

    @staticmethod
    def _identifier(document) -> types.TextDocumentIdentifier:
        return types.TextDocumentIdentifier(uri=document.uri)

    async def rename_edits(self, document, position, new_name, token):
        return await self._request(
            types.TEXT_DOCUMENT_RENAME,
            document,
            types.RenameParams(
                text_document=self._identifier(document),
                position=position,
                new_name=new_name,
            ),
            token,
        )

    async def definition(self, document, position, token):
        result = await self._request(
            types.TEXT_DOCUMENT_DEFINITION,
            document,
            types.DefinitionParams(
                text_document=self._identifier(document), position=position
            ),
            token,
        )
        return _locations(result)

    async def hover(self, document, position, token):
        return await self._request(
            types.TEXT_DOCUMENT_HOVER,
            document,
            types.HoverParams(
                text_document=self._identifier(document), position=position
            ),
            token,
        )

    async def references(self, document, position, context, token):
        result = await self._request(
            types.TEXT_DOCUMENT_REFERENCES,
            document,
            types.ReferenceParams(
                text_document=self._identifier(document),
                position=position,
                context=context or types.ReferenceContext(include_declaration=True),
            ),
            token,
        )
        return _locations(result)

    async def completion_items(self, document, position, token, context):
        result = await self._request(
            types.TEXT_DOCUMENT_COMPLETION,
            document,
            types.CompletionParams(
                text_document=self._identifier(document),
                position=position,
                context=context,
            ),
            token,
        )
        if result is None:
            return []
        if isinstance(result, types.CompletionList):
            return list(result.items)
        return list(result)

    async def code_lenses(self, document, token):
        result = await self._request(
            types.TEXT_DOCUMENT_CODE_LENS,
            document,
            types.CodeLensParams(text_document=self._identifier(document)),
            token,
        )
        return list(result or [])

    async def document_symbols(self, document, token):
        result = await self._request(
            types.TEXT_DOCUMENT_DOCUMENT_SYMBOL,
            document,
            types.DocumentSymbolParams(text_document=self._identifier(document)),
            token,
        )
        return list(result or [])

    async def signature_help(self, document, position, token, context):
        return await self._request(
            types.TEXT_DOCUMENT_SIGNATURE_HELP,
            document,
            types.SignatureHelpParams(
                text_document=self._identifier(document),
                position=position,
                context=context,
            ),
            token,
        )
