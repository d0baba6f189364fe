"""Pytest configuration and shared fixtures."""
import pytest
from concurrent.futures import Future
from typing import Any, List, Optional

from modelstate import BasePersistor, Field, Model, numericality
import modelstate.config as config_module
from modelstate.persistors import failed, resolved
from reactivecore import Computation


class Person(Model):
    """Test model - age must be a number >= 18."""
    name = Field()
    age = Field(numericality(minimum=18))


class RecordingPersistor(BasePersistor):
    """Persistor that records every call; fails changed() when ``fail_with`` is set."""

    instances: List['RecordingPersistor'] = []

    def __init__(self, model: Any):
        super().__init__(model)
        self.loaded_calls: List[Optional[str]] = []
        self.changed_calls: List[Optional[str]] = []
        self.fail_with: Optional[BaseException] = None
        RecordingPersistor.instances.append(self)

    def loaded(self, initial_state: Optional[str] = None) -> None:
        self.loaded_calls.append(initial_state)

    def changed(self, attribute_name: Optional[str]) -> Optional[Future]:
        self.changed_calls.append(attribute_name)
        if self.fail_with is not None:
            return failed(self.fail_with)
        return resolved(attribute_name)


@pytest.fixture(autouse=True)
def reset_reactive_state():
    """Reset module-level state before and after each test."""
    original_options = config_module._default_model_options
    original_policy = config_module._size_notification_policy
    Computation.reset()
    RecordingPersistor.instances = []

    yield

    Computation.reset()
    config_module._default_model_options = original_options
    config_module._size_notification_policy = original_policy


@pytest.fixture
def persistor_options():
    """ModelOptions wired to RecordingPersistor."""
    from modelstate import ModelOptions
    return ModelOptions(persistor=RecordingPersistor)


@pytest.fixture
def loaded_person(persistor_options):
    """A persisted, valid Person (age 20)."""
    return Person({'name': 'Ada', 'age': 20}, persistor_options, 'loaded')
