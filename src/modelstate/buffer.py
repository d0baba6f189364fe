"""
Buffers: detached, persistor-less copies of a model for staged edits.

A buffer may hold invalid state (the commit protocol validates but never
reverts it). ``save()`` validates and, when clean, writes the buffer's data
into the model or collection it was created from.
"""

import logging
from concurrent.futures import Future
from typing import Any

from reactivecore.modes import NO_VALIDATE, run_in_mode
from modelstate.errors import ModelError, PersistenceError, ValidationError
from modelstate.persistors.base import failed, resolved

logger = logging.getLogger(__name__)


class Buffer:
    """Mixin providing buffer() / save() for Model."""

    @property
    def is_buffer(self) -> bool:
        return self._options.buffer

    def buffer(self) -> Any:
        """Create a buffer over this model's current data."""
        # Detached from the tree; save() writes through save_to
        options = self._options.merge(parent=None, buffer=True, save_to=self, persistor=None)
        with run_in_mode(NO_VALIDATE):
            model = type(self)(self.to_dict(), options, 'loaded')
        model._new = self._new
        return model

    def save(self) -> Future:
        """Validate and copy this buffer into its save target.

        Returns:
            Future resolving with the saved model, or failing with
            ValidationError (local errors) / PersistenceError (target failed).
        """
        save_to = self._options.save_to
        if not self.is_buffer or save_to is None:
            raise ModelError('Model is not a buffer, can not be saved, modifications should be persisted as they are made.')

        errors = self.validate()
        if errors:
            return failed(ValidationError(errors))

        from modelstate.array_model import ArrayModel

        if isinstance(save_to, ArrayModel):
            target_future = save_to.append(self.to_dict())
        else:
            target_future = save_to.assign_attributes(self.to_dict())
            if target_future is None:
                # The target reverted the batch under its own validation rules
                if save_to.to_dict() != self.to_dict():
                    return failed(ValidationError(save_to.errors))
                target_future = resolved(save_to)

        result: Future = Future()

        def _on_done(done: Future) -> None:
            error = done.exception()
            if error is not None:
                if isinstance(error, PersistenceError) and error.errors:
                    self._server_errors.clear()
                    self._server_errors.merge(error.errors)
                    self._errors.merge(self._server_errors)
                    self._errors_dep.changed()
                logger.debug(f"Buffer save into {type(save_to).__name__} failed: {error}")
                result.set_exception(error)
                return

            saved = done.result()
            saved = saved if saved is not None else save_to
            self._new = False
            if isinstance(saved, Buffer):
                saved_id = (saved.attributes or {}).get('id')
                if saved_id is not None:
                    self._attributes['id'] = saved_id
                # Later saves update the stored model instead of appending again
                self._options = self._options.merge(save_to=saved)
            result.set_result(saved)

        target_future.add_done_callback(_on_done)
        return result
