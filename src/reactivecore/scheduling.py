"""
Next-tick scheduling.

Work is deferred to the next iteration of the running asyncio event loop when
one exists in the current thread, and run synchronously otherwise.
"""

import asyncio
from typing import Callable


def has_running_loop() -> bool:
    """True when called from inside a running asyncio event loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def call_soon_or_now(callback: Callable[[], None]) -> bool:
    """Schedule ``callback`` on the running loop, or call it right away.

    Returns:
        True if the callback was deferred, False if it already ran.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return False
    loop.call_soon(callback)
    return True
