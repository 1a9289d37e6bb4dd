"""Lifecycle actions understood by the orchestrator."""
from __future__ import annotations

from enum import Enum
from typing import Dict, List

from .errors import UnknownAction


class Action(str, Enum):
    FETCH_DEPENDENCIES = "fetch-dependencies"
    BUILD = "build"
    BUILD_RELEASE = "build-release"
    TEST = "test"
    LINT = "lint"
    CLEAN = "clean"
    DEEP_CLEAN = "deep-clean"

    @classmethod
    def parse(cls, name: "str | Action") -> "Action":
        """Return the action for ``name``, accepting Makefile-style spellings."""

        if isinstance(name, Action):
            return name
        text = str(name).strip().lower()
        normalized = text.replace("_", "-")
        for action in cls:
            if normalized == action.value:
                return action
        alias = _ALIASES.get(text) or _ALIASES.get(normalized)
        if alias is not None:
            return alias
        raise UnknownAction(str(name), [action.value for action in cls])

    @classmethod
    def aliases(cls) -> Dict["Action", List[str]]:
        """Alternate spellings per action, used for CLI sub-command aliases."""

        grouped: Dict[Action, List[str]] = {action: [] for action in cls}
        spellings = [(action.value, action) for action in cls] + list(_ALIASES.items())
        for spelling, action in spellings:
            for candidate in (spelling, spelling.replace("-", "_")):
                if candidate != action.value and candidate not in grouped[action]:
                    grouped[action].append(candidate)
        return grouped


_ALIASES: Dict[str, Action] = {
    "deps": Action.FETCH_DEPENDENCIES,
    "very-clean": Action.DEEP_CLEAN,
}


__all__ = ["Action"]
