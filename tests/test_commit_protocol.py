"""Tests for the commit protocol: validate -> revert | persist -> clear."""
import logging
from concurrent.futures import Future

import pytest

from modelstate import Field, Model, ModelOptions, PersistenceError, presence
from reactivecore import Computation, watch

from conftest import Person, RecordingPersistor


class TestNoOpAssignment:
    """Assigning the current value does nothing at all."""

    def test_no_persist_no_notify_no_validate(self, persistor_options):
        validations = []

        class Counted(Person):
            pass

        Counted.add_model_validation(lambda model: validations.append(model))
        model = Counted({'name': 'Ada', 'age': 20}, persistor_options, 'loaded')
        persistor = model.persistor
        validations.clear()
        reader = watch(lambda: model['age'])

        result = model.assign_attribute('age', 20)

        assert result is None
        assert persistor.changed_calls == []
        assert validations == []
        assert reader.invalidated is False
        assert not model.is_changed()

    def test_equal_mapping_is_noop(self):
        model = Model({'address': {'city': 'Paris'}})
        address = model['address']

        model['address'] = {'city': 'Paris'}

        assert model['address'] is address


class TestNewFlag:

    def test_new_until_first_commit(self, persistor_options):
        person = Person({'name': 'Ada', 'age': 20}, persistor_options)
        assert person.is_new is True

        person.name = 'Grace'
        assert person.is_new is False

    def test_loaded_model_is_not_new(self, loaded_person):
        assert loaded_person.is_new is False

    def test_failed_validation_keeps_new(self, persistor_options):
        person = Person({'name': 'Ada', 'age': 20}, persistor_options)

        person.age = 3
        assert person.is_new is True

    def test_mark_new(self, loaded_person):
        loaded_person.mark_new()
        assert loaded_person.is_new is True


class TestInitialValidation:

    def test_initial_invalid_state_is_reported_not_reverted(self, persistor_options):
        person = Person({'name': 'a', 'age': 5}, persistor_options)

        assert person.is_new is True
        assert 'age' in person.errors
        assert person.age == 5
        assert person.persistor.changed_calls == []
        assert person.persistor.loaded_calls == [None]

    def test_unrelated_commit_with_preexisting_error(self, persistor_options):
        person = Person({'name': 'a', 'age': 5}, persistor_options)

        person.name = 'b'

        assert person.name == 'b'
        assert person.persistor.changed_calls == ['name']


class TestRevertOnInvalid:

    def test_invalid_write_is_reverted(self, loaded_person):
        loaded_person.age = 10

        assert loaded_person.age == 20
        assert 'age' in loaded_person.errors
        assert loaded_person.persistor.changed_calls == []
        assert not loaded_person.is_changed()

    def test_revert_notifies_readers(self, loaded_person):
        reader = watch(lambda: loaded_person.age)

        loaded_person.age = 10
        Computation.flush()

        assert reader.run_count == 2
        assert loaded_person.age == 20

    def test_revert_restores_value_at_last_commit(self, loaded_person):
        with Model.no_save():
            loaded_person.age = 30
        loaded_person.age = 'old'

        assert loaded_person.age == 20
        assert loaded_person.errors['age'] == ['must be a number']

    def test_revert_removes_new_field(self, persistor_options):
        class Member(Person):
            nickname = Field(presence())

        member = Member({'name': 'Ada', 'age': 20}, persistor_options, 'loaded')
        member.nickname = ''

        assert 'nickname' not in member
        assert 'nickname' in member.errors

    def test_revert_restores_placeholder(self):
        def not_text(model, field_name, value):
            return 'must not be text' if isinstance(value, str) else None

        class Account(Model):
            profile = Field(not_text)

        account = Account({}, initial_state='loaded')
        placeholder = account['profile']

        account['profile'] = 'oops'

        assert account['profile'] is placeholder
        assert account.errors['profile'] == ['must not be text']
        account['profile']['bio'] = 'hello'
        assert account.to_dict() == {'profile': {'bio': 'hello'}}

    def test_next_valid_write_clears_errors(self, loaded_person):
        loaded_person.age = 10
        loaded_person.age = 40

        assert loaded_person.age == 40
        assert not loaded_person.errors
        assert loaded_person.persistor.changed_calls == ['age']


class TestPersistence:

    def test_commit_returns_persistor_future(self, loaded_person):
        result = loaded_person.assign_attribute('name', 'Grace')

        assert isinstance(result, Future)
        assert result.result() == 'name'
        assert loaded_person.persistor.changed_calls == ['name']

    def test_each_write_gets_its_own_future(self, loaded_person):
        first = loaded_person.assign_attribute('name', 'Grace')
        second = loaded_person.assign_attribute('age', 41)

        assert first is not second
        assert loaded_person.persistor.changed_calls == ['name', 'age']

    def test_no_save_validates_without_persisting(self, loaded_person):
        with Model.no_save():
            result = loaded_person.assign_attribute('name', 'Grace')

        assert result is None
        assert loaded_person.persistor.changed_calls == []
        assert loaded_person.is_changed('name')
        assert loaded_person.was('name') == 'Ada'

    def test_rejected_persistence_keeps_local_change(self, loaded_person):
        loaded_person.persistor.fail_with = PersistenceError('disk full', {'name': ['not saved']})

        result = loaded_person.assign_attribute('name', 'Grace')

        with pytest.raises(PersistenceError):
            result.result()
        assert loaded_person.name == 'Grace'
        assert loaded_person.is_new is False

    def test_persistor_raising_is_delivered_through_future(self, caplog):
        class Exploding(RecordingPersistor):
            def changed(self, attribute_name):
                raise RuntimeError('connection lost')

        model = Model({}, ModelOptions(persistor=Exploding))
        with caplog.at_level(logging.WARNING):
            result = model.assign_attribute('x', 1)

        assert isinstance(result.exception(), RuntimeError)
        assert "connection lost" in caplog.text

    def test_child_commits_through_its_own_persistor(self, persistor_options):
        root = Model({'address': {'city': 'Paris'}}, persistor_options)
        address = root['address']

        address['city'] = 'Lyon'

        assert address.persistor.changed_calls == ['city']
        assert root.persistor.changed_calls == []


class TestServerErrors:

    def test_server_errors_merged_and_cleared_on_write(self, loaded_person):
        loaded_person.server_errors.add('name', 'already taken')
        loaded_person.validate()
        assert loaded_person.errors['name'] == ['already taken']

        loaded_person.name = 'Grace'

        assert 'name' not in loaded_person.server_errors
        assert 'name' not in loaded_person.errors


class TestBufferCommit:

    def test_buffer_keeps_invalid_state(self, loaded_person):
        buffer = loaded_person.buffer()

        buffer.age = 3

        assert buffer.age == 3
        assert 'age' in buffer.errors
        assert buffer.persistor is None
