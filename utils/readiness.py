"""
Bounded-retry readiness wait.

Some collaborators (a renderer, a document manager) may initialize after the
event that needs them. Callers poll at a fixed interval up to a small retry
count and then give up silently: the miss is logged, never raised. This is
best-effort wiring, not a correctness guarantee.
"""

import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL_SECONDS = 0.1
DEFAULT_MAX_RETRIES = 50


def wait_until_ready(
    lookup: Callable[[], T | None],
    *,
    name: str = "collaborator",
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
) -> T | None:
    """
    Poll lookup until it returns something truthy.

    Args:
        lookup: Returns the collaborator, or None while it is not ready
        name: Used in log messages
        interval_seconds: Delay between checks
        max_retries: Checks after the first one before giving up
        sleep: Injected for tests

    Returns:
        The lookup's result, or None if the collaborator never became ready
    """
    result = lookup()
    attempts = 0
    while not result and attempts < max_retries:
        sleep(interval_seconds)
        attempts += 1
        result = lookup()

    if not result:
        logger.warning(
            f"{name} not ready after {max_retries} retries "
            f"({max_retries * interval_seconds:.1f}s); giving up"
        )
        return None

    if attempts:
        logger.debug(f"{name} ready after {attempts} retries")
    return result


def when_ready(
    lookup: Callable[[], T | None],
    action: Callable[[T], object],
    **wait_kwargs,
) -> bool:
    """
    Run action with the collaborator once it is ready.

    Returns True if the action ran, False if the wait was abandoned.
    """
    collaborator = wait_until_ready(lookup, **wait_kwargs)
    if collaborator is None:
        return False
    action(collaborator)
    return True
