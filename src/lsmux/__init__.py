from __future__ import annotations

import importlib.metadata as importlib_metadata

from .backends import BaseLanguageServer, NoopLanguageServer, factory, registry
from .banner import Banner, ProposeLanguageServerBanner
from .events import Disposable, EventEmitter
from .experiments import (
    EnvironmentExperimentService,
    ExperimentService,
    StaticExperimentService,
)
from .multiplexer import LanguageServerMultiplexer
from .types import CancellationToken, Interpreter, text_document

__version__ = importlib_metadata.version("lsmux")

__all__ = [
    "Banner",
    "BaseLanguageServer",
    "CancellationToken",
    "Disposable",
    "EnvironmentExperimentService",
    "EventEmitter",
    "ExperimentService",
    "Interpreter",
    "LanguageServerMultiplexer",
    "NoopLanguageServer",
    "ProposeLanguageServerBanner",
    "StaticExperimentService",
    "factory",
    "registry",
    "text_document",
]
