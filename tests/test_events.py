"""Tests for event emission."""
import logging

from modelstate import Model
from reactivecore import Eventable


class Emitter(Eventable):
    pass


class TestEventable:

    def test_instance_listener(self):
        emitter = Emitter()
        received = []
        emitter.on('ping', received.append)

        emitter.trigger('ping', 1)
        assert received == [1]

    def test_off_removes_listener(self):
        emitter = Emitter()
        received = []
        emitter.on('ping', received.append)
        emitter.off('ping', received.append)

        emitter.trigger('ping', 1)
        assert received == []

    def test_class_listener_receives_instance(self):
        class Local(Eventable):
            pass

        received = []
        Local.on_class('ping', lambda instance, value: received.append((instance, value)))
        emitter = Local()

        emitter.trigger('ping', 'x')
        assert received == [(emitter, 'x')]

    def test_class_listeners_are_per_class(self):
        class Base(Eventable):
            pass

        class Child(Base):
            pass

        received = []
        Child.on_class('ping', lambda instance: received.append(type(instance)))

        Base().trigger('ping')
        Child().trigger('ping')
        assert received == [Child]

    def test_listener_errors_are_logged(self, caplog):
        emitter = Emitter()
        received = []

        def bad(*args):
            raise ValueError("listener failed")

        emitter.on('ping', bad)
        emitter.on('ping', received.append)
        with caplog.at_level(logging.WARNING):
            emitter.trigger('ping', 2)

        assert received == [2]
        assert "listener failed" in caplog.text


def test_model_triggers_new_on_construction():
    class Tracked(Model):
        pass

    created = []
    Tracked.on_class('new', lambda model, state: created.append((model, state)))

    model = Tracked({'title': 'x'})
    assert created == [(model, 'new')]
