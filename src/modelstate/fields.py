"""
Declared fields and the per-class accessor map.

A Model subclass declares fields as class attributes:

    class Person(Model):
        name = Field(presence())
        age = Field(numericality(minimum=18))

Each Field is a descriptor routing attribute access to read_attribute /
assign_attribute. When the class is created, its fields and any property
setters are collected into an explicit accessor map, looked up by name during
mass assignment so computed setters can intercept incoming values.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from modelstate.errors import InvalidFieldName

RESERVED_FIELD_NAMES = frozenset({'attributes', 'parent', 'path', 'options', 'persistor'})


class Field:
    """Descriptor for a declared model field, carrying its validation rules."""

    def __init__(self, *validators: Callable[..., Any]):
        self.validators: Tuple[Callable[..., Any], ...] = validators
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return instance.read_attribute(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.assign_attribute(self.name, value)

    def __repr__(self) -> str:
        return f"Field({self.name!r})"


@dataclass(frozen=True)
class Accessor:
    """Getter/setter pair for one name. ``setter`` is None for read-only names."""
    name: str
    getter: Callable[[Any], Any]
    setter: Optional[Callable[[Any, Any], None]]


def build_accessor_map(cls: type) -> Dict[str, Accessor]:
    """Collect Field descriptors and settable properties across the MRO.

    Subclass definitions shadow base ones.
    """
    accessors: Dict[str, Accessor] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if isinstance(attr, Field):
                if name in RESERVED_FIELD_NAMES:
                    raise InvalidFieldName(name)
                accessors[name] = Accessor(name, _field_getter(attr), _field_setter(attr))
            elif isinstance(attr, property) and attr.fset is not None and name not in RESERVED_FIELD_NAMES:
                accessors[name] = Accessor(name, attr.fget, attr.fset)
            elif name in accessors:
                # Plain attribute in a subclass hides an inherited accessor
                del accessors[name]
    return accessors


def _field_getter(field: Field) -> Callable[[Any], Any]:
    return lambda instance: instance.read_attribute(field.name)


def _field_setter(field: Field) -> Callable[[Any, Any], None]:
    return lambda instance, value: instance.assign_attribute(field.name, value)
