"""
Text templating - fills {namespace.key|default} placeholders from persisted state.

Supported forms:
    {user.name}
    {user.name|friend}
    {task.activeDays:activeDays:join|every day}
"""

import re
from typing import Optional

from ..helpers import stringify
from ..state import StateStore
from .formatter import FormatterRegistry

TEMPLATE_PATTERN = re.compile(r'\{([^{}:|]+)(?::([^{}|]+))?(?:\|([^{}]*))?\}')


class TextTemplater:
    """
    Replaces placeholders with stored values.
    A placeholder with neither a stored value nor a default is left unchanged.
    """

    def __init__(self, state: StateStore, formatters: Optional[FormatterRegistry] = None):
        self.state = state
        self.formatters = formatters or FormatterRegistry()

    def process(self, text: str) -> str:
        if not text or '{' not in text:
            return text
        return TEMPLATE_PATTERN.sub(self._replace, text)

    def _replace(self, match: re.Match) -> str:
        key = match.group(1).strip()
        formatter = match.group(2)
        fallback = match.group(3)

        value = self.state.get(key)
        if value is not None:
            if formatter is None:
                return stringify(value)
            formatted = self.formatters.format(formatter, value)
            if formatted is not None:
                return formatted

        if fallback is not None:
            if formatter is not None:
                return self.formatters.format_fallback(formatter, fallback)
            return fallback

        return match.group(0)
