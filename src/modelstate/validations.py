"""
Validation capability for models.

Rules are registered per class (inherited by subclasses) and evaluated
against the raw attribute store, so validating never materialises fields or
registers dependencies on them.
"""

import logging
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Mapping, Optional

from reactivecore.dependency import Dependency
from modelstate.errors import Errors
from modelstate.fields import Field

logger = logging.getLogger(__name__)


class Validations:
    """Mixin: rule registry, validate(), errors and server_errors."""

    _validations: ClassVar[Dict[str, List[Callable[..., Any]]]] = {}
    _model_validations: ClassVar[List[Callable[[Any], Optional[Mapping[str, Any]]]]] = []

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Copy so registrations on a subclass never leak into its bases
        cls._validations = {name: list(rules) for name, rules in cls._validations.items()}
        cls._model_validations = list(cls._model_validations)
        for name, attr in vars(cls).items():
            if isinstance(attr, Field) and attr.validators:
                cls._validations.setdefault(name, []).extend(attr.validators)

    @classmethod
    def add_validation(cls, field_name: str, *rules: Callable[..., Any]) -> None:
        """Register rules ``rule(model, field_name, value)`` for ``field_name``."""
        cls._validations.setdefault(field_name, []).extend(rules)

    @classmethod
    def add_model_validation(cls, rule: Callable[[Any], Optional[Mapping[str, Any]]]) -> None:
        """Register a whole-model rule ``rule(model) -> {field: message(s)}``."""
        cls._model_validations.append(rule)

    def _init_validations(self) -> None:
        self._errors = Errors()
        self._server_errors = Errors()
        self._errors_dep = Dependency()

    @property
    def errors(self) -> Errors:
        """Errors from the last validate() (reactive)."""
        self._errors_dep.depend()
        return self._errors

    @property
    def server_errors(self) -> Errors:
        """Errors reported by the persistence layer, merged into errors on validate()."""
        return self._server_errors

    def clear_server_errors(self, field_name: Optional[str] = None) -> None:
        if field_name is None:
            self._server_errors.clear()
        else:
            self._server_errors.pop(field_name, None)

    def validate(self) -> Errors:
        """Evaluate every rule against the current store and rebuild errors."""
        errors = Errors()
        attributes = self._attributes or {}

        for field_name, rules in self._validations.items():
            value = attributes.get(field_name)
            for rule in rules:
                _add_messages(errors, field_name, rule(self, field_name, value))

        for rule in self._model_validations:
            errors.merge(rule(self))

        errors.merge(self._server_errors)

        if errors != self._errors:
            logger.debug(f"Validation of {type(self).__name__} at {self._path!r}: {dict(errors)}")
        self._errors = errors
        self._errors_dep.changed()
        return errors

    def is_valid(self) -> bool:
        return not self.validate()

    def error_in_changed_attributes(self) -> bool:
        """True if any field changed since the last commit has errors."""
        return any(field_name in self._errors for field_name in self._changed_attributes)


def _add_messages(errors: Errors, field_name: str, result: Any) -> None:
    if not result:
        return
    messages: Iterable[str] = [result] if isinstance(result, str) else result
    for message in messages:
        errors.add(field_name, message)
