"""Tests for ArrayModel collections."""
from concurrent.futures import Future
from types import MappingProxyType

import pytest

from modelstate import ArrayModel, Field, Model, ModelOptions, presence
from reactivecore import watch


class Todo(Model):
    title = Field(presence())


class TestWrapping:

    def test_mapping_items_become_models(self):
        model = Model({'items': [{'title': 'a'}, {'title': 'b'}]})
        items = model['items']

        assert isinstance(items[0], Model)
        assert items[1]['title'] == 'b'
        assert items[1].path == ('items', '1')
        assert items[1].parent is items

    def test_nested_lists(self):
        items = ArrayModel([[1, 2], [3]])

        assert isinstance(items[0], ArrayModel)
        assert items.to_list() == [[1, 2], [3]]

    def test_free_model_is_linked(self):
        items = ArrayModel()
        todo = Model({'title': 'x'})

        items.append(todo)

        assert items[0] is todo
        assert todo.parent is items
        assert todo.path == ('0',)

    def test_read_only_mapping_items_become_models(self):
        items = ArrayModel([MappingProxyType({'title': 'a'})])

        items.append(MappingProxyType({'title': 'b'}))

        assert isinstance(items[0], Model)
        assert isinstance(items[1], Model)
        assert items.to_list() == [{'title': 'a'}, {'title': 'b'}]

    def test_class_paths_use_singular_name(self):
        root = Model({}, ModelOptions(class_paths={'todo': Todo}))

        root['todos'].append({'title': 'write docs'})

        assert type(root['todos'][0]) is Todo


class TestMutation:

    def test_append_returns_future_with_item(self):
        items = ArrayModel()

        result = items.append({'title': 'a'})

        assert isinstance(result, Future)
        assert result.result() is items[0]

    def test_append_notifies_readers(self):
        items = ArrayModel()
        reader = watch(lambda: len(items))

        items.append(1)

        assert reader.invalidated is True

    def test_delete_at(self):
        items = ArrayModel(['a', 'b', 'c'])

        assert items.delete_at(1) == 'b'
        assert items == ['a', 'c']

    def test_remove(self):
        items = ArrayModel(['a', 'b'])
        items.remove('a')

        assert items == ['b']
        with pytest.raises(ValueError):
            items.remove('a')

    def test_clear_notifies_readers(self):
        items = ArrayModel(['a'])
        reader = watch(lambda: list(items))

        items.clear()

        assert len(items) == 0
        assert reader.invalidated is True


class TestReads:

    def test_iteration_and_membership(self):
        items = ArrayModel([1, 2, 3])

        assert list(items) == [1, 2, 3]
        assert 2 in items
        assert 4 not in items

    def test_membership_of_models_by_value(self):
        items = ArrayModel([{'title': 'a'}])

        assert {'title': 'a'} in items

    def test_equality(self):
        items = ArrayModel([1, 2])

        assert items == [1, 2]
        assert items == (1, 2)
        assert items != ArrayModel([1, 2])
        assert items == items

    def test_to_list_is_plain(self):
        items = ArrayModel([{'tags': ['x']}])

        assert items.to_list() == [{'tags': ['x']}]
        assert type(items.to_list()[0]) is dict


class TestPlaceholderAppend:

    def test_lazy_plural_read_then_append(self):
        root = Model()

        root['items'].append({'title': 'x'})

        assert root.to_dict() == {'items': [{'title': 'x'}]}

    def test_shift_operator_appends_through_placeholder(self):
        root = Model()

        result = root['todo_list'] << {'title': 'x'}

        assert isinstance(result, Future)
        assert result.result() is root['todo_list'][0]
        assert root.to_dict() == {'todo_list': [{'title': 'x'}]}

    def test_shift_operator_on_collection(self):
        items = ArrayModel()

        items << 'a'

        assert items == ['a']
