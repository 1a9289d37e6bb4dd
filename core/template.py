"""``{{dotted.path}}`` substitution for rule commands and environments."""
from __future__ import annotations

from typing import Any, Iterable, Mapping
import re


_PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


class TemplateError(ValueError):
    """Raised when a placeholder cannot be resolved."""


class TemplateResolver:
    """Substitutes placeholders with values looked up in a nested mapping.

    Substituted values are inserted verbatim: a value that itself contains
    ``{{...}}`` is not expanded again.
    """

    def __init__(self, context: Mapping[str, Any]) -> None:
        self.context = context

    def resolve(self, text: str) -> str:
        return _PLACEHOLDER_PATTERN.sub(lambda match: self.lookup(match.group(1).strip()), text)

    def lookup(self, path: str) -> str:
        current: Any = self.context
        for part in path.split("."):
            if not isinstance(current, Mapping) or part not in current:
                raise TemplateError(f"Cannot resolve path '{path}' in template context")
            current = current[part]
        if isinstance(current, Mapping):
            raise TemplateError(f"Path '{path}' names a table, not a value")
        return str(current)


def extract_placeholders(values: Iterable[str]) -> set[str]:
    """Collect the placeholder paths referenced by ``values``."""

    return {
        match.group(1).strip()
        for value in values
        for match in _PLACEHOLDER_PATTERN.finditer(value)
        if match.group(1).strip()
    }


__all__ = ["TemplateError", "TemplateResolver", "extract_placeholders"]
