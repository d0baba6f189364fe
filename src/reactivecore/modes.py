"""
Contextvars-based mode stack.

Modes are flags such as ``no_validate`` or ``no_save`` that are active for
the duration of a ``with run_in_mode(...)`` block. The stack is a tuple held
in a ContextVar, so nested blocks restore the outer state on every exit path
and separate threads or asyncio tasks never see each other's modes.
"""

import contextvars
from contextlib import contextmanager
from typing import Generator, Tuple

NO_VALIDATE = 'no_validate'
NO_SAVE = 'no_save'

# Ordered from outermost to innermost block
_mode_stack: contextvars.ContextVar[Tuple[str, ...]] = contextvars.ContextVar('mode_stack', default=())


@contextmanager
def run_in_mode(mode: str) -> Generator[None, None, None]:
    """Run the enclosed block with ``mode`` active.

    Usage:
        with run_in_mode(NO_SAVE):
            model['name'] = 'draft'   # validated, not persisted
    """
    token = _mode_stack.set(_mode_stack.get() + (mode,))
    try:
        yield
    finally:
        _mode_stack.reset(token)


def in_mode(mode: str) -> bool:
    """True if ``mode`` is active in any enclosing block."""
    return mode in _mode_stack.get()


def current_modes() -> Tuple[str, ...]:
    """The active modes, outermost first."""
    return _mode_stack.get()
