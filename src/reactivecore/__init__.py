"""
Generic reactive primitives: dependency tracking, scoped modes, next-tick
scheduling and event emission. Nothing here knows about models.

Modules:
    - dependency: Computation, Dependency, HashDependency, watch
    - modes: contextvars-based mode stack
    - scheduling: next-tick deferral on a running asyncio loop
    - events: Eventable mixin
"""

from reactivecore.dependency import Computation, Dependency, HashDependency, watch
from reactivecore.modes import NO_SAVE, NO_VALIDATE, current_modes, in_mode, run_in_mode
from reactivecore.scheduling import call_soon_or_now, has_running_loop
from reactivecore.events import Eventable

__all__ = [
    # Dependency tracking
    'Computation',
    'Dependency',
    'HashDependency',
    'watch',
    # Modes
    'NO_SAVE',
    'NO_VALIDATE',
    'current_modes',
    'in_mode',
    'run_in_mode',
    # Scheduling
    'call_soon_or_now',
    'has_running_loop',
    # Events
    'Eventable',
]
