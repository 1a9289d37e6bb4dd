"""Pattern rule table: how each action maps onto a per-package command."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping
import os
import shlex

from core.config_loader import normalize_string_list
from core.template import TemplateError, TemplateResolver

from .actions import Action
from .errors import ConfigurationError, UnknownAction

NO_PREREQUISITE_ACTIONS = frozenset({Action.CLEAN, Action.DEEP_CLEAN})
"""Cleaning must work on packages that were never built."""


@dataclass(frozen=True, slots=True)
class EnvironmentSettings:
    """Names and values of the variables overlaid on build-type commands."""

    profile_variable: str = "MIX_ENV"
    build_root_variable: str = "MIX_BUILD_ROOT"
    build_root: str | None = "../_build"


@dataclass(frozen=True, slots=True)
class WorkspaceContext:
    root: Path
    packages_dir: str

    def package_dir(self, package: str) -> Path:
        return self.root / self.packages_dir / package

    def to_mapping(self) -> Dict[str, str]:
        return {
            "root": str(self.root),
            "packages_dir": str(self.root / self.packages_dir),
        }


@dataclass(frozen=True, slots=True)
class RuleTemplate:
    """Command, environment overlay and prerequisite for one action.

    Every rule describes an idempotent non-artifact target: it is always
    scheduled when requested and never skipped as up to date.
    """

    action: Action
    command: tuple[str, ...]
    workspace: WorkspaceContext
    prerequisite: Action | None = None
    requires_bootstrap: bool = False
    uses_build_environment: bool = False
    profile: str | None = None
    environment: Mapping[str, str] = field(default_factory=dict)
    description: str = ""
    settings: EnvironmentSettings = field(default_factory=EnvironmentSettings)
    phony: bool = True

    def _resolver(self, package: str) -> TemplateResolver:
        context = {
            "package": {"name": package, "dir": str(self.workspace.package_dir(package))},
            "workspace": self.workspace.to_mapping(),
            "env": dict(os.environ),
        }
        return TemplateResolver(context)

    def command_for(self, package: str) -> List[str]:
        resolver = self._resolver(package)
        try:
            return [resolver.resolve(part) for part in self.command]
        except TemplateError as exc:
            raise ConfigurationError(f"rules.{self.action.value}.command: {exc}") from exc

    def command_string(self, package: str) -> str:
        return " ".join(shlex.quote(part) for part in self.command_for(package))

    def environment_for(self, package: str) -> Dict[str, str]:
        overlay: Dict[str, str] = {}
        if self.uses_build_environment:
            if self.settings.build_root:
                overlay[self.settings.build_root_variable] = self.settings.build_root
            if self.profile:
                overlay[self.settings.profile_variable] = self.profile
        if self.environment:
            resolver = self._resolver(package)
            try:
                for key, value in self.environment.items():
                    overlay[key] = resolver.resolve(value)
            except TemplateError as exc:
                raise ConfigurationError(f"rules.{self.action.value}.environment: {exc}") from exc
        return overlay

    @classmethod
    def from_mapping(
        cls,
        action: Action,
        data: Mapping[str, Any],
        *,
        workspace: WorkspaceContext,
        settings: EnvironmentSettings,
    ) -> "RuleTemplate":
        label = f"rules.{action.value}"
        try:
            command = normalize_string_list(data.get("command"), field_name=f"{label}.command")
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc
        if not command:
            raise ConfigurationError(f"{label}.command must not be empty")

        raw_prerequisite = data.get("prerequisite")
        prerequisite: Action | None = None
        if raw_prerequisite:
            try:
                prerequisite = Action.parse(str(raw_prerequisite))
            except UnknownAction as exc:
                raise ConfigurationError(f"{label}.prerequisite: {exc}") from exc

        environment_section = data.get("environment") or {}
        if not isinstance(environment_section, Mapping):
            raise ConfigurationError(f"{label}.environment must be a table")
        environment = {str(key): str(value) for key, value in environment_section.items()}

        profile = data.get("profile")
        return cls(
            action=action,
            command=tuple(command),
            workspace=workspace,
            prerequisite=prerequisite,
            requires_bootstrap=bool(data.get("bootstrap", False)),
            uses_build_environment=bool(data.get("build_environment", False)),
            profile=str(profile) if profile else None,
            environment=environment,
            description=str(data.get("description") or action.value),
            settings=settings,
        )


class RuleTable:
    """Static registry of one :class:`RuleTemplate` per :class:`Action`."""

    def __init__(self, rules: Iterable[RuleTemplate]) -> None:
        self._rules: Dict[Action, RuleTemplate] = {}
        for rule in rules:
            if rule.action in self._rules:
                raise ConfigurationError(f"Duplicate rule for action '{rule.action.value}'")
            self._rules[rule.action] = rule
        self._validate()

    def _validate(self) -> None:
        missing = [action.value for action in Action if action not in self._rules]
        if missing:
            raise ConfigurationError(f"Missing rules for actions: {', '.join(missing)}")

        for action in NO_PREREQUISITE_ACTIONS:
            if self._rules[action].prerequisite is not None:
                raise ConfigurationError(f"rules.{action.value} must not declare a prerequisite")

        for action in self._rules:
            self.prerequisite_chain(action)

    def rule_for(self, action: "Action | str") -> RuleTemplate:
        resolved = Action.parse(action)
        try:
            return self._rules[resolved]
        except KeyError:  # pragma: no cover - every action is validated at construction
            raise UnknownAction(resolved.value, [a.value for a in self._rules]) from None

    def prerequisite_chain(self, action: "Action | str") -> List[Action]:
        """Return prerequisites of ``action`` nearest first."""

        current = Action.parse(action)
        chain: List[Action] = []
        visiting = [current]
        while True:
            prerequisite = self._rules[current].prerequisite
            if prerequisite is None:
                return chain
            if prerequisite in visiting:
                cycle = " -> ".join(item.value for item in [*visiting, prerequisite])
                raise ConfigurationError(f"Circular rule prerequisite detected: {cycle}")
            visiting.append(prerequisite)
            chain.append(prerequisite)
            current = prerequisite

    def __iter__(self):
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        workspace: WorkspaceContext,
        settings: EnvironmentSettings,
    ) -> "RuleTable":
        rules: List[RuleTemplate] = []
        for key, value in data.items():
            try:
                action = Action.parse(str(key))
            except UnknownAction as exc:
                raise ConfigurationError(f"rules: {exc}") from exc
            if not isinstance(value, Mapping):
                raise ConfigurationError(f"rules.{key} must be a table")
            rules.append(RuleTemplate.from_mapping(action, value, workspace=workspace, settings=settings))
        return cls(rules)


__all__ = [
    "EnvironmentSettings",
    "NO_PREREQUISITE_ACTIONS",
    "RuleTable",
    "RuleTemplate",
    "WorkspaceContext",
]
