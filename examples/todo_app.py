"""
Todo list built on modelstate.

Shows declared fields with validation, a reactive summary that reruns when
todos change, buffered edits and persistence into a MemoryStore.

Run with:  python examples/todo_app.py
"""

import logging

from modelstate import (
    Field,
    MemoryStore,
    MemoryStorePersistor,
    Model,
    ModelOptions,
    length,
    presence,
)
from reactivecore import Computation, watch

logger = logging.getLogger(__name__)


class Todo(Model):
    """A single todo item."""
    title = Field(presence(), length(maximum=80))
    done = Field()


class TodoList(Model):
    name = Field(presence())

    @property
    def remaining(self) -> int:
        return sum(1 for todo in self['todos'] if not todo['done'])


def main() -> None:
    logging.basicConfig(level=logging.INFO, format='%(name)s: %(message)s')

    store = MemoryStore()
    options = ModelOptions(
        class_paths={'todo': Todo},
        persistor=MemoryStorePersistor.factory(store, 'groceries'),
    )
    groceries = TodoList({'name': 'Groceries'}, options)

    summary = watch(lambda: logger.info(f"{groceries.name}: {groceries.remaining} remaining"))

    groceries['todos'].append({'title': 'Milk', 'done': False})
    groceries['todos'].append({'title': 'Bread', 'done': False})
    Computation.flush()

    # Invalid edits are reverted and reported
    milk = groceries['todos'][0]
    milk.title = ''
    logger.info(f"Title after rejected edit: {milk.title!r}, errors: {dict(milk.errors)}")

    # Buffered edits only reach the list on save()
    draft = milk.buffer()
    draft.done = True
    draft.save()
    Computation.flush()

    logger.info(f"Stored: {store.get('groceries')}")

    # A new root over the same key loads the stored tree
    reloaded = TodoList({}, options)
    logger.info(f"Reloaded {reloaded.name!r} with {len(reloaded['todos'])} todos")

    summary.stop()


if __name__ == '__main__':
    main()
