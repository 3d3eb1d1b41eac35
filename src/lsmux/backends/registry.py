"""Backend registry with discovery and lazy loading.

Backends are named by a ``module.path:ClassName`` spec and imported only when
first requested, so the optional stacks behind them (``jedi``, an external
language-server executable) are not needed until a variant is chosen.
"""

from __future__ import annotations

import importlib
import logging
from typing import Optional

from ..constants import FULL_BACKEND, LIGHT_BACKEND

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Registry for language-server backends with lazy loading and discovery."""

    def __init__(self):
        self._backends: dict[str, type] = {}
        self._failed_backends: dict[str, str] = {}  # name -> failure reason

        self._backend_specs = {
            "noop": "lsmux.backends.noop:NoopLanguageServer",
            LIGHT_BACKEND: "lsmux.backends.jedi_launcher:JediLauncher",
            FULL_BACKEND: "lsmux.backends.lsp_client:LanguageServerClient",
        }

    def get_backend(self, name: str) -> Optional[type]:
        """Get backend class by name, loading it if necessary.

        Args:
            name: Backend identifier (e.g., 'jedi', 'jedi_lsp', 'noop')

        Returns:
            Backend class if available and successfully loaded, None otherwise
        """
        if name in self._backends:
            return self._backends[name]

        if name in self._failed_backends:
            logger.debug(
                f"Backend '{name}' previously failed to load: "
                f"{self._failed_backends[name]}"
            )
            return None

        if name not in self._backend_specs:
            logger.debug(
                f"Unknown backend '{name}'. Available: {list(self._backend_specs)}"
            )
            return None

        module_path, class_name = self._backend_specs[name].split(":")
        try:
            module = importlib.import_module(module_path)
            backend_class = getattr(module, class_name)
        except ImportError as e:
            self._failed_backends[name] = f"Import error: {e}"
            logger.debug(f"Backend '{name}' not available: {e}")
            return None
        except AttributeError as e:
            self._failed_backends[name] = f"Class not found: {e}"
            logger.error(f"Backend '{name}' load failed: {e}")
            return None

        from .base import BaseLanguageServer

        if not (
            isinstance(backend_class, type)
            and issubclass(backend_class, BaseLanguageServer)
        ):
            error_msg = f"Class {class_name} is not a BaseLanguageServer subclass"
            self._failed_backends[name] = error_msg
            logger.error(f"Backend '{name}' validation failed: {error_msg}")
            return None

        self._backends[name] = backend_class
        logger.debug(f"Successfully loaded backend '{name}' from {module_path}")
        return backend_class

    def list_available(self) -> dict[str, bool]:
        """List all backends and their availability status.

        Returns:
            Dictionary mapping backend name to availability (True/False)
        """
        return {name: self.get_backend(name) is not None for name in self.names()}

    def list_loaded(self) -> dict[str, type]:
        """Get all currently loaded backends."""
        return self._backends.copy()

    def names(self) -> list[str]:
        """Names of every known backend, loaded or not."""
        return sorted(set(self._backend_specs) | set(self._backends))

    def get_failure_reason(self, name: str) -> Optional[str]:
        """Get the reason why a backend failed to load, if it did."""
        return self._failed_backends.get(name)

    def register_backend(self, name: str, backend_class: type) -> None:
        """Register a backend class directly (for testing or custom backends).

        Args:
            name: Backend identifier
            backend_class: Backend class to register

        Raises:
            TypeError: If backend_class is not a BaseLanguageServer subclass
        """
        from .base import BaseLanguageServer

        if not (
            isinstance(backend_class, type)
            and issubclass(backend_class, BaseLanguageServer)
        ):
            raise TypeError("Backend class must be a BaseLanguageServer subclass")

        self._backends[name] = backend_class
        self._failed_backends.pop(name, None)
        logger.debug(f"Registered backend '{name}': {backend_class}")

    def unregister_backend(self, name: str) -> None:
        """Forget a directly registered backend and any cached load result."""
        self._backends.pop(name, None)
        self._failed_backends.pop(name, None)

    def add_backend_spec(self, name: str, module_class_spec: str) -> None:
        """Add a new backend specification for lazy loading.

        Args:
            name: Backend identifier
            module_class_spec: Module and class specification in format
                "module.path:ClassName"

        Raises:
            ValueError: If the spec is not of the form "module:Class"
        """
        module_path, sep, class_name = module_class_spec.partition(":")
        if not (module_path and sep and class_name):
            raise ValueError(
                f"Invalid backend spec '{module_class_spec}', "
                "expected 'module.path:ClassName'"
            )
        self._backend_specs[name] = module_class_spec
        self._backends.pop(name, None)
        self._failed_backends.pop(name, None)
        logger.debug(f"Added backend spec '{name}': {module_class_spec}")


# Global registry instance
registry = BackendRegistry()
