from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import typeguard

from .backends.base import BaseLanguageServer
from .backends.factory import factory
from .banner import Banner
from .constants import (
    FULL_BACKEND,
    JEDI_LSP_EXPERIMENT,
    LIGHT_BACKEND,
    is_test_execution,
)
from .events import Disposable, EventEmitter
from .experiments import ExperimentService
from .utils import get_event_loop_or_raise, ignore_errors

logger = logging.getLogger(__name__)


class LanguageServerMultiplexer(BaseLanguageServer):
    """
    A language server that defers to one of two backends chosen at startup.

    Construction immediately schedules the backend selection: the experiment
    service is asked once whether ``experiment`` is enabled, and exactly one of
    ``full_backend`` (enabled) or ``light_backend`` (disabled) is created
    through the backend factory. The resulting task is kept as the single
    source of truth for which backend, if any, serves requests.

    Request operations await the selection and then forward their arguments
    unchanged to the chosen backend. Requests issued before selection finishes
    wait for it; none are dropped. Lifecycle calls and accessors never wait:
    they act on the backend resolved so far, and are no-ops (or return None)
    while the selection is pending or after it failed. A failed selection is
    never retried; every awaiting request re-raises the same error.

    Attributes:
        experiments (ExperimentService): Decides which backend to use.
        banner (Banner | None): Shown once on the first ``start`` outside tests.
        experiment (str): Name of the experiment that selects the full backend.
        light_backend (str): Registry name used when the experiment is off.
        full_backend (str): Registry name used when the experiment is on.
        config (dict): Per-backend configuration keyed by registry name.
    """

    @typeguard.typechecked
    def __init__(
        self,
        experiments: ExperimentService,
        banner: Optional[Banner] = None,
        *,
        experiment: str = JEDI_LSP_EXPERIMENT,
        light_backend: str = LIGHT_BACKEND,
        full_backend: str = FULL_BACKEND,
        config: Optional[dict[str, dict[str, Any]]] = None,
    ) -> None:
        """
        Initialize the multiplexer and start selecting its backend.

        Must be called from a running event loop.

        Args:
            experiments: Experiment service consulted once for ``experiment``
            banner: Banner proposing the alternative server, optional
            experiment: Experiment name that selects ``full_backend``
            light_backend: Registry name of the light variant
            full_backend: Registry name of the full protocol variant
            config: Backend configuration dicts keyed by registry name

        Raises:
            RuntimeError: If no event loop is running
        """
        self.loop = get_event_loop_or_raise("LanguageServerMultiplexer")

        self.experiments = experiments
        self.banner = banner
        self.experiment = experiment
        self.light_backend = light_backend
        self.full_backend = full_backend
        self.config = config or {}

        # Read by the synchronous accessors, set together with the future
        self._backend: Optional[BaseLanguageServer] = None
        self._backend_subscription: Optional[Disposable] = None
        self._banner_requested = False
        self._on_did_change_code_lenses = EventEmitter()

        self._backend_future: asyncio.Task = self.loop.create_task(
            self._select_backend(), name="select-language-server"
        )
        self._backend_future.add_done_callback(self._log_selection)

    async def _select_backend(self) -> BaseLanguageServer:
        in_experiment = await self.experiments.in_experiment(self.experiment)
        name = self.full_backend if in_experiment else self.light_backend
        logger.debug(
            f"Experiment '{self.experiment}' is "
            f"{'on' if in_experiment else 'off'}, creating '{name}' backend"
        )

        backend = await factory.create_backend(name, self.config.get(name))

        try:
            subscription = backend.on_did_change_code_lenses(
                self._on_did_change_code_lenses.fire
            )
        except Exception:
            backend.dispose()
            raise

        self._backend = backend
        self._backend_subscription = subscription
        return backend

    def _log_selection(self, future: asyncio.Future) -> None:
        if future.cancelled():
            logger.debug("Language server selection cancelled")
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Language server selection failed: {exc}")
            return
        logger.info(f"Using {type(future.result()).__name__} language server")

    async def _resolved_backend(self) -> BaseLanguageServer:
        # Cancelling one waiting request must not cancel the shared selection
        return await asyncio.shield(self._backend_future)

    def _propose_alternative(self) -> None:
        if self.banner is None or self._banner_requested or is_test_execution():
            return
        self._banner_requested = True
        ignore_errors(self.banner.show_banner, "language server banner")

    async def start(self, resource, interpreter):
        backend = await self._resolved_backend()
        self._propose_alternative()
        return await backend.start(resource, interpreter)

    def activate(self):
        if self._backend is not None:
            self._backend.activate()

    def deactivate(self):
        if self._backend is not None:
            self._backend.deactivate()

    def dispose(self):
        if self._backend is None:
            return
        if self._backend_subscription is not None:
            self._backend_subscription.dispose()
            self._backend_subscription = None
        try:
            self._backend.dispose()
        finally:
            self._backend = None

    @property
    def connection(self):
        if self._backend is not None:
            return self._backend.connection
        return None

    @property
    def capabilities(self):
        if self._backend is not None:
            return self._backend.capabilities
        return None

    @property
    def on_did_change_code_lenses(self):
        return self._on_did_change_code_lenses.event

    async def rename_edits(self, document, position, new_name, token):
        backend = await self._resolved_backend()
        return await backend.rename_edits(document, position, new_name, token)

    async def definition(self, document, position, token):
        backend = await self._resolved_backend()
        return await backend.definition(document, position, token)

    async def hover(self, document, position, token):
        backend = await self._resolved_backend()
        return await backend.hover(document, position, token)

    async def references(self, document, position, context, token):
        backend = await self._resolved_backend()
        return await backend.references(document, position, context, token)

    async def completion_items(self, document, position, token, context):
        backend = await self._resolved_backend()
        return await backend.completion_items(document, position, token, context)

    async def code_lenses(self, document, token):
        backend = await self._resolved_backend()
        return await backend.code_lenses(document, token)

    async def document_symbols(self, document, token):
        backend = await self._resolved_backend()
        return await backend.document_symbols(document, token)

    async def signature_help(self, document, position, token, context):
        backend = await self._resolved_backend()
        return await backend.signature_help(document, position, token, context)
