"""Backend that answers every request with an empty result."""

from __future__ import annotations

import logging

from lsprotocol.types import ServerCapabilities

from ..events import EventEmitter
from .base import BaseLanguageServer

logger = logging.getLogger(__name__)


class NoopLanguageServer(BaseLanguageServer):
    """Language server stand-in used for dry runs and tests."""

    def __init__(self):
        self.started = False
        self.active = False
        self.disposed = False
        self._on_did_change_code_lenses = EventEmitter()

    async def start(self, resource, interpreter):
        self.started = True
        logger.debug(f"Noop language server started for {resource!r}")

    def activate(self):
        self.active = True

    def deactivate(self):
        self.active = False

    def dispose(self):
        self.disposed = True
        self._on_did_change_code_lenses.dispose()

    @property
    def connection(self):
        return None

    @property
    def capabilities(self):
        return ServerCapabilities()

    @property
    def on_did_change_code_lenses(self):
        return self._on_did_change_code_lenses.event

    async def rename_edits(self, document, position, new_name, token):
        return None

    async def definition(self, document, position, token):
        return []

    async def hover(self, document, position, token):
        return None

    async def references(self, document, position, context, token):
        return []

    async def completion_items(self, document, position, token, context):
        return []

    async def code_lenses(self, document, token):
        return []

    async def document_symbols(self, document, token):
        return []

    async def signature_help(self, document, position, token, context):
        return None
