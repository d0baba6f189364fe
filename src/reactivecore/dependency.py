"""
Dependency tracking for reactive reads.

A Computation runs a function and records every Dependency that function
reads through. When one of those dependencies changes, the computation is
invalidated and queued for a rerun.

Key components:
- Computation: a rerunnable unit of work; the current one lives in a ContextVar
- Dependency: a single observable "value may have changed" signal
- HashDependency: per-key Dependency map (one per model field)
- watch(): create and run a Computation in one call

Reruns are batched. Invalidation only queues the computation; the queue is
drained by Computation.flush(), which is scheduled on the running asyncio
loop when there is one and must be called explicitly otherwise.
"""

import contextvars
import logging
from typing import Any, Callable, Dict, Hashable, List, Optional, Set

from reactivecore.scheduling import call_soon_or_now, has_running_loop

logger = logging.getLogger(__name__)

# The computation whose function is currently executing (None outside any).
_current_computation: contextvars.ContextVar[Optional['Computation']] = contextvars.ContextVar(
    'current_computation', default=None
)


class Computation:
    """Rerunnable function that tracks the dependencies it reads.

    Thread safety: Not thread-safe (one computation graph per thread of control).
    """
    _flush_queue: List['Computation'] = []
    _flush_scheduled: bool = False

    def __init__(self, fn: Callable[[], Any]):
        self._fn = fn
        self._invalidate_callbacks: List[Callable[[], None]] = []
        self.invalidated = False
        self.stopped = False
        self.run_count = 0

    @classmethod
    def current(cls) -> Optional['Computation']:
        """Return the computation currently running, if any."""
        return _current_computation.get()

    def run(self) -> 'Computation':
        """Run the function with this computation as the current one."""
        token = _current_computation.set(self)
        try:
            self.run_count += 1
            self._fn()
        finally:
            _current_computation.reset(token)
        return self

    def on_invalidate(self, callback: Callable[[], None]) -> None:
        """Call back once when this run is invalidated (immediately if it already was)."""
        if self.invalidated:
            callback()
        else:
            self._invalidate_callbacks.append(callback)

    def invalidate(self) -> None:
        """Mark the current run stale and queue a rerun.

        Idempotent until the computation reruns, so any number of changed
        dependencies result in a single rerun.
        """
        if self.invalidated:
            return
        self.invalidated = True

        callbacks, self._invalidate_callbacks = self._invalidate_callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Error in invalidate callback: {e}")

        if not self.stopped:
            Computation._flush_queue.append(self)
            Computation._schedule_flush()

    def stop(self) -> None:
        """Invalidate and never rerun again."""
        if not self.stopped:
            self.stopped = True
            self.invalidate()

    def _rerun(self) -> None:
        if self.stopped:
            return
        self.invalidated = False
        self.run()

    @classmethod
    def _schedule_flush(cls) -> None:
        if cls._flush_scheduled or not has_running_loop():
            return
        cls._flush_scheduled = True
        call_soon_or_now(cls.flush)

    @classmethod
    def flush(cls) -> int:
        """Rerun every queued computation. Returns how many were rerun."""
        cls._flush_scheduled = False
        rerun = 0
        while cls._flush_queue:
            queue, cls._flush_queue = cls._flush_queue, []
            for computation in queue:
                if computation.invalidated and not computation.stopped:
                    computation._rerun()
                    rerun += 1
        return rerun

    @classmethod
    def reset(cls) -> None:
        """Drop all queued reruns."""
        cls._flush_queue = []
        cls._flush_scheduled = False


def watch(fn: Callable[[], Any]) -> Computation:
    """Create a Computation for ``fn`` and run it once."""
    return Computation(fn).run()


class Dependency:
    """Signal that the value behind it may have changed."""

    def __init__(self):
        self._dependents: Set[Computation] = set()

    def depend(self) -> bool:
        """Register the current computation as a dependent.

        Returns:
            True if a computation was registered, False outside any computation.
        """
        current = Computation.current()
        if current is None:
            return False

        if current not in self._dependents:
            self._dependents.add(current)
            current.on_invalidate(lambda: self._dependents.discard(current))
        return True

    def changed(self) -> None:
        """Invalidate every registered computation and forget them."""
        dependents, self._dependents = self._dependents, set()
        for computation in dependents:
            computation.invalidate()

    @property
    def dependent_count(self) -> int:
        return len(self._dependents)


class HashDependency:
    """A Dependency per key, created on first depend()."""

    def __init__(self):
        self._deps: Dict[Hashable, Dependency] = {}

    def depend(self, key: Hashable) -> None:
        if Computation.current() is None:
            return
        dep = self._deps.get(key)
        if dep is None:
            dep = self._deps[key] = Dependency()
        dep.depend()

    def changed(self, key: Hashable) -> None:
        dep = self._deps.get(key)
        if dep is not None:
            dep.changed()

    def delete(self, key: Hashable) -> None:
        dep = self._deps.pop(key, None)
        if dep is not None:
            dep.changed()

    def changed_all(self) -> None:
        """Invalidate every key's dependents (one 'everything changed' signal)."""
        for dep in list(self._deps.values()):
            dep.changed()
