import os
from typing import Mapping, Optional

# Experiment that switches the multiplexer to the full protocol client.
JEDI_LSP_EXPERIMENT = "pythonJediLSP"

# Registry names of the two variants the multiplexer chooses between.
LIGHT_BACKEND = "jedi"
FULL_BACKEND = "jedi_lsp"

ENV_TEST_EXECUTION = "LSMUX_TEST_EXECUTION"
ENV_CI_TEST = "LSMUX_CI_TEST"
ENV_EXPERIMENTS = "LSMUX_EXPERIMENTS"
ENV_EXPERIMENTS_OPT_OUT = "LSMUX_EXPERIMENTS_OPT_OUT"

_TRUTHY = ("1", "true", "yes", "on")


def _is_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


def is_test_execution(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when running under an automated test or CI harness.

    Args:
        environ: Mapping to read instead of ``os.environ``.

    Returns:
        bool: True if either test-mode variable is set to a truthy value.
    """
    env = os.environ if environ is None else environ
    return _is_truthy(env.get(ENV_TEST_EXECUTION)) or _is_truthy(
        env.get(ENV_CI_TEST)
    )
