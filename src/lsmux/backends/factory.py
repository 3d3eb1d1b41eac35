"""Factory for creating language-server backends with proper configuration.

This module resolves backend names through the registry and constructs the
backend instance, awaiting backends that need asynchronous construction.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Optional

from ..errors import BackendInitializationError, BackendNotAvailableError
from .registry import registry

if TYPE_CHECKING:
    from .base import BaseLanguageServer

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory for creating and initializing language-server backends."""

    @staticmethod
    def _suggest_installation(backend_type: str) -> str:
        """Provide helpful installation suggestions for missing backends.

        Args:
            backend_type: Backend identifier

        Returns:
            Installation suggestion string
        """
        suggestions = {
            "jedi": "pip install jedi",
            "jedi_lsp": "pip install jedi-language-server",
        }

        if backend_type in suggestions:
            return f"Try: {suggestions[backend_type]}"
        return (
            "Register it with registry.add_backend_spec(name, 'module:Class') "
            "or registry.register_backend(name, cls)"
        )

    @staticmethod
    def _not_available(backend_type: str) -> BackendNotAvailableError:
        available_str = ", ".join(
            name for name, ok in registry.list_available().items() if ok
        )
        suggestion = BackendFactory._suggest_installation(backend_type)

        failure_reason = registry.get_failure_reason(backend_type)
        failure_info = f"\nReason: {failure_reason}" if failure_reason else ""

        return BackendNotAvailableError(
            f"Backend '{backend_type}' is not available.\n"
            f"Available backends: {available_str}\n"
            f"Installation hint: {suggestion}{failure_info}"
        )

    @staticmethod
    async def create_backend(
        backend_type: str,
        config: Optional[dict[str, Any]] = None,
        **kwargs,
    ) -> BaseLanguageServer:
        """Create a backend.

        Args:
            backend_type: Backend identifier ('jedi', 'jedi_lsp', 'noop', ...)
            config: Backend-specific configuration dictionary
            **kwargs: Additional arguments passed to backend constructor

        Returns:
            Backend instance, ready for ``start``

        Raises:
            BackendNotAvailableError: If backend is not available
            BackendInitializationError: If backend construction fails
        """
        backend_class = registry.get_backend(backend_type)
        if backend_class is None:
            raise BackendFactory._not_available(backend_type)

        try:
            if backend_type == "noop":
                # Noop backend takes no arguments
                logger.debug("Creating noop backend")
                backend = backend_class()
            else:
                backend_config = config or {}
                logger.debug(
                    f"Creating backend '{backend_type}' with config: {backend_config}"
                )
                backend = backend_class(backend_config, **kwargs)

            if inspect.isawaitable(backend):
                backend = await backend

            logger.info(f"Successfully created '{backend_type}' backend")
            return backend

        except Exception as e:
            logger.error(f"Failed to create backend '{backend_type}': {e}")
            raise BackendInitializationError(
                f"Failed to create backend '{backend_type}': {e}",
                backend_type=backend_type,
                root_cause=e,
            ) from e

    @staticmethod
    def list_available_backends() -> dict[str, dict[str, Any]]:
        """List all known backends with detailed information.

        Returns:
            Dictionary with backend info including availability and failure reasons
        """
        info = {}
        for name in registry.names():
            backend_class = registry.get_backend(name)
            info[name] = {
                "available": backend_class is not None,
                "class": backend_class.__name__ if backend_class else None,
                "failure_reason": registry.get_failure_reason(name),
                "installation_hint": (
                    BackendFactory._suggest_installation(name)
                    if backend_class is None
                    else None
                ),
            }

        return info


# Convenience factory instance
factory = BackendFactory()
