"""Promotional banners shown once when a language server starts."""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

PROPOSE_LANGUAGE_SERVER_MESSAGE = (
    "A faster Python language server is available. "
    "Install it and set it as your language server to try it."
)

Notifier = Callable[[str], Union[Any, Awaitable[Any]]]


class Banner(ABC):
    """Notification offered to the user at most once."""

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether the banner may still be shown."""

    @abstractmethod
    async def show_banner(self) -> None:
        """Show the banner if it is enabled."""


class ProposeLanguageServerBanner(Banner):
    """Suggests the alternative language server the first time it is shown.

    Args:
        notify: Called with the message, sync or async. Defaults to logging
            the message at INFO level.
        enabled: Start disabled to make :meth:`show_banner` a no-op.
        message: Text to show.
    """

    def __init__(
        self,
        notify: Optional[Notifier] = None,
        enabled: bool = True,
        message: str = PROPOSE_LANGUAGE_SERVER_MESSAGE,
    ):
        self._notify = notify or logger.info
        self._enabled = enabled
        self.message = message
        self.shown = False

    @property
    def enabled(self) -> bool:
        return self._enabled and not self.shown

    def disable(self) -> None:
        self._enabled = False

    async def show_banner(self) -> None:
        if not self.enabled:
            return
        self.shown = True
        result = self._notify(self.message)
        if inspect.isawaitable(result):
            await result
