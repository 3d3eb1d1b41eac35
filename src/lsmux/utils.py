import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# Strong references for fire-and-forget tasks until they finish
_background_tasks: set = set()


def get_event_loop_or_raise(
    context_name: str = "LanguageServerMultiplexer",
) -> asyncio.AbstractEventLoop:
    """Get the current running event loop or raise a helpful error.

    Args:
        context_name: Name of the class/context for error messages

    Returns:
        asyncio.AbstractEventLoop: The current running event loop

    Raises:
        RuntimeError: If no event loop is running with helpful guidance
    """
    try:
        return asyncio.get_running_loop()
    except RuntimeError as e:
        raise RuntimeError(
            f"{context_name} must be created within an async context. "
            f"Construct {context_name} from within an async function, "
            "or run within asyncio.run()."
        ) from e


def ignore_errors(
    action: Callable[[], Optional[Awaitable[Any]]], description: str = "action"
) -> Optional[asyncio.Task]:
    """Run ``action`` without waiting for it and discard any failure.

    ``action`` may be a plain callable or return an awaitable. Synchronous
    errors and errors of the scheduled task are logged at DEBUG level and
    never propagated to the caller.

    Args:
        action: Zero-argument callable to run.
        description: Used in the debug log when the action fails.

    Returns:
        The scheduled task if ``action`` returned an awaitable, else None.
    """
    try:
        result = action()
    except Exception as e:
        logger.debug(f"Ignoring failure of {description}: {e!r}")
        return None

    if not inspect.isawaitable(result):
        return None

    task = asyncio.ensure_future(result)
    _background_tasks.add(task)

    def _done(t: asyncio.Future) -> None:
        _background_tasks.discard(t)
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            logger.debug(f"Ignoring failure of {description}: {exc!r}")

    task.add_done_callback(_done)
    return task
