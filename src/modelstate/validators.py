"""
Built-in validation rules.

A rule is any callable ``rule(model, field_name, value)`` returning None when
the value is acceptable, or a message (or iterable of messages) otherwise.
"""

import numbers
import re
from typing import Any, Callable, Optional, Pattern, Union

Rule = Callable[[Any, str, Any], Any]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if getattr(value, 'is_nil', None) is not None and value.is_nil():
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return len(value) == 0
    except TypeError:
        return False


def presence(message: str = 'must be specified') -> Rule:
    def rule(model, field_name, value):
        if _is_blank(value):
            return message
        return None
    return rule


def length(minimum: Optional[int] = None, maximum: Optional[int] = None) -> Rule:
    def rule(model, field_name, value):
        size = 0 if _is_blank(value) else len(value)
        if minimum is not None and size < minimum:
            return f'must be at least {minimum} characters'
        if maximum is not None and size > maximum:
            return f'must be less than {maximum} characters'
        return None
    return rule


def numericality(minimum: Optional[numbers.Real] = None,
                 maximum: Optional[numbers.Real] = None,
                 allow_none: bool = False) -> Rule:
    """Value must be a number (bool excluded), optionally within [minimum, maximum]."""
    def rule(model, field_name, value):
        if value is None and allow_none:
            return None
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            return 'must be a number'
        messages = []
        if minimum is not None and value < minimum:
            messages.append(f'number must be greater than or equal to {minimum}')
        if maximum is not None and value > maximum:
            messages.append(f'number must be less than or equal to {maximum}')
        return messages or None
    return rule


def format_of(pattern: Union[str, Pattern[str]], message: str = 'is invalid') -> Rule:
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    def rule(model, field_name, value):
        if not isinstance(value, str) or not regex.search(value):
            return message
        return None
    return rule
