"""
Process-wide defaults for modelstate.

- Default ModelOptions used when a root model is built without options
  (e.g. to give every root the same persistor factory)
- Size notification policy for lazily materialised fields:
    "auto": defer to the next loop tick when an asyncio loop is running
    "immediate": always notify synchronously
"""

import logging
from typing import Optional

from modelstate.options import ModelOptions

logger = logging.getLogger(__name__)

SIZE_NOTIFICATION_POLICIES = ('auto', 'immediate')

_default_model_options: Optional[ModelOptions] = None
_size_notification_policy: str = 'auto'


def set_default_model_options(options: Optional[ModelOptions]) -> None:
    """Set the options used by models constructed without any. None restores the built-in default."""
    global _default_model_options
    _default_model_options = options


def get_default_model_options() -> ModelOptions:
    return _default_model_options if _default_model_options is not None else ModelOptions()


def set_size_notification_policy(policy: str) -> None:
    """Choose how lazy reads announce the new key. See module docstring."""
    global _size_notification_policy
    if policy not in SIZE_NOTIFICATION_POLICIES:
        raise ValueError(f"Unknown size notification policy {policy!r}, expected one of {SIZE_NOTIFICATION_POLICIES}")
    _size_notification_policy = policy
    logger.debug(f"Size notification policy set to {policy!r}")


def get_size_notification_policy() -> str:
    return _size_notification_policy
