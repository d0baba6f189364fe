"""Exceptions and the field-keyed error collection."""

from typing import Iterable, Mapping, Optional


class Errors(dict):
    """Validation messages keyed by field name: {'age': ['must be a number']}."""

    def add(self, field_name: str, message: str) -> None:
        messages = self.setdefault(field_name, [])
        if message not in messages:
            messages.append(message)

    def merge(self, other: Optional[Mapping[str, Iterable[str]]]) -> 'Errors':
        """Add every message from ``other`` (duplicates skipped). Returns self."""
        if other:
            for field_name, messages in other.items():
                if isinstance(messages, str):
                    messages = [messages]
                for message in messages:
                    self.add(field_name, message)
        return self


class ModelError(Exception):
    """Base class for model errors."""


class InvalidFieldName(ModelError):
    """A reserved name was used as a field."""

    def __init__(self, name: str):
        super().__init__(f"`{name}` is reserved and can not be used as a field")
        self.name = name


class RootCollectionError(ModelError):
    """Collection data was appended to a model with no parent."""


class ValidationError(ModelError):
    """Carries the Errors of a rejected save."""

    def __init__(self, errors: Mapping[str, Iterable[str]]):
        self.errors = errors if isinstance(errors, Errors) else Errors().merge(errors)
        super().__init__(f"Validation failed: {dict(self.errors)}")


class PersistenceError(ModelError):
    """Raised (through a completion Future) when a persistor fails to store a change.

    ``errors`` holds field-keyed messages when the failure is attributable to
    specific fields, and is empty otherwise.
    """

    def __init__(self, message: str, errors: Optional[Mapping[str, Iterable[str]]] = None):
        super().__init__(message)
        self.errors = Errors().merge(errors)
