"""Experiment services used to choose between language-server backends."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Optional

from .constants import ENV_EXPERIMENTS, ENV_EXPERIMENTS_OPT_OUT

logger = logging.getLogger(__name__)

_ALL = "all"


class ExperimentService(ABC):
    """Asynchronous source of boolean experiment assignments."""

    @abstractmethod
    async def in_experiment(self, name: str) -> bool:
        """Return True if the user is assigned to experiment ``name``."""


class StaticExperimentService(ExperimentService):
    """Experiment assignments fixed at construction time."""

    def __init__(self, enabled: Iterable[str] = ()):
        self.enabled = frozenset(enabled)

    async def in_experiment(self, name: str) -> bool:
        return name in self.enabled


def _split(value: Optional[str]) -> set[str]:
    return {item.strip() for item in (value or "").split(",") if item.strip()}


class EnvironmentExperimentService(ExperimentService):
    """Experiment assignments read from environment variables.

    ``LSMUX_EXPERIMENTS`` lists experiments to opt into and
    ``LSMUX_EXPERIMENTS_OPT_OUT`` lists experiments to opt out of, both comma
    separated. Opting out wins, and ``All`` in the opt-out list disables every
    experiment. Variables are read on every call.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    async def in_experiment(self, name: str) -> bool:
        env = os.environ if self._environ is None else self._environ
        opt_in = _split(env.get(ENV_EXPERIMENTS))
        opt_out = _split(env.get(ENV_EXPERIMENTS_OPT_OUT))

        if name in opt_out or _ALL in {o.lower() for o in opt_out}:
            logger.debug(f"Opted out of experiment '{name}'")
            return False
        return name in opt_in or _ALL in {o.lower() for o in opt_in}
