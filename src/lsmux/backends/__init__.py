"""Language-server backends with a plugin-based registry.

Only the contract and the noop backend are imported eagerly. The jedi
launcher and the protocol client are loaded through the registry when a
multiplexer selects them, so their dependencies stay optional.
"""

from __future__ import annotations

from .base import BaseLanguageServer, LanguageServerProtocol
from .factory import factory
from .noop import NoopLanguageServer
from .registry import registry

__all__ = [
    "BaseLanguageServer",
    "LanguageServerProtocol",
    "NoopLanguageServer",
    "factory",
    "registry",
]
