"""Configuration loading for the orchestrator workspace."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence

from core.config_loader import (
    ConfigFileError,
    existing_directories,
    find_config_file,
    load_config_file,
    merge_mappings,
    normalize_string_list,
)

from .defaults import DEFAULT_CONFIGURATION
from .errors import ConfigurationError, UnknownPackage
from .rules import EnvironmentSettings, RuleTable, WorkspaceContext

CONFIG_STEM = "config"


def _string_list(value: Any, field_name: str) -> List[str]:
    try:
        return normalize_string_list(value, field_name=field_name)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"[{name}] must be a table")
    return section


@dataclass(slots=True)
class GlobalConfig:
    log_level: str = "info"
    log_file: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GlobalConfig":
        global_section = _section(data, "global")
        return cls(
            log_level=str(global_section.get("log_level", "info")).lower(),
            log_file=str(global_section.get("log_file")) if global_section.get("log_file") else None,
        )


@dataclass(slots=True)
class PackageRegistry:
    """Ordered, duplicate-free set of package names known to the workspace."""

    names: tuple[str, ...]
    workspace: WorkspaceContext
    shared_dir_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for name in self.names:
            if name in seen:
                raise ConfigurationError(f"Package '{name}' is listed more than once")
            seen.add(name)

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __iter__(self):
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def select(self, requested: Iterable[str] | None = None) -> List[str]:
        """Return the packages to act on, in the order they were requested.

        An empty or missing request selects every package in registry order.
        """

        names = [name for name in (requested or []) if name]
        if not names:
            return list(self.names)
        selected: List[str] = []
        for name in names:
            if name not in self.names:
                raise UnknownPackage(name, self.names)
            if name not in selected:
                selected.append(name)
        return selected

    def package_dir(self, name: str) -> Path:
        if name not in self.names:
            raise UnknownPackage(name, self.names)
        return self.workspace.package_dir(name)

    def shared_dirs(self) -> List[Path]:
        base = self.workspace.root / self.workspace.packages_dir
        return [base / name for name in self.shared_dir_names]


@dataclass(slots=True)
class ToolSpec:
    name: str
    command: List[str]
    check: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "ToolSpec":
        command = _string_list(data.get("command"), f"tools.{name}.command")
        if not command:
            raise ConfigurationError(f"tools.{name}.command must not be empty")
        check = _string_list(data.get("check"), f"tools.{name}.check")
        return cls(name=name, command=command, check=check)


@dataclass(slots=True)
class DelegateSettings:
    name: str
    command: List[str]
    cwd: str = "."

    @property
    def enabled(self) -> bool:
        return bool(self.command)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DelegateSettings":
        return cls(
            name=str(data.get("name") or "delegate"),
            command=_string_list(data.get("command"), "delegate.command"),
            cwd=str(data.get("cwd") or "."),
        )


@dataclass(slots=True)
class ConfigurationStore:
    root: Path
    global_config: GlobalConfig
    registry: PackageRegistry
    rules: RuleTable
    tools: List[ToolSpec]
    delegate: DelegateSettings
    config_files: tuple[Path, ...] = field(default_factory=tuple)

    @classmethod
    def from_directory(cls, root: Path) -> "ConfigurationStore":
        return cls.from_directories(root, [root / "config"])

    @classmethod
    def from_directories(cls, root: Path, directories: Iterable[Path]) -> "ConfigurationStore":
        data: Mapping[str, Any] = DEFAULT_CONFIGURATION
        config_files: List[Path] = []
        for config_dir in existing_directories(root, directories):
            try:
                path = find_config_file(config_dir, CONFIG_STEM)
                if path is None:
                    continue
                data = merge_mappings(data, load_config_file(path))
            except ConfigFileError as exc:
                raise ConfigurationError(str(exc)) from exc
            config_files.append(path)

        return cls.from_mapping(root, data, config_files=tuple(config_files))

    @classmethod
    def from_mapping(
        cls,
        root: Path,
        data: Mapping[str, Any],
        *,
        config_files: Sequence[Path] = (),
    ) -> "ConfigurationStore":
        workspace_section = _section(data, "workspace")
        packages_dir = str(workspace_section.get("packages_dir") or ".")
        workspace = WorkspaceContext(root=root, packages_dir=packages_dir)

        registry = PackageRegistry(
            names=tuple(_string_list(workspace_section.get("packages"), "workspace.packages")),
            workspace=workspace,
            shared_dir_names=tuple(_string_list(workspace_section.get("shared_dirs"), "workspace.shared_dirs")),
        )

        build_root = workspace_section.get("build_root")
        settings = EnvironmentSettings(
            profile_variable=str(workspace_section.get("profile_variable") or "MIX_ENV"),
            build_root_variable=str(workspace_section.get("build_root_variable") or "MIX_BUILD_ROOT"),
            build_root=str(build_root) if build_root else None,
        )
        rules = RuleTable.from_mapping(_section(data, "rules"), workspace=workspace, settings=settings)

        tools: List[ToolSpec] = []
        for name, value in _section(data, "tools").items():
            if not isinstance(value, Mapping):
                raise ConfigurationError(f"tools.{name} must be a table")
            tools.append(ToolSpec.from_mapping(str(name), value))

        return cls(
            root=root,
            global_config=GlobalConfig.from_mapping(data),
            registry=registry,
            rules=rules,
            tools=tools,
            delegate=DelegateSettings.from_mapping(_section(data, "delegate")),
            config_files=tuple(config_files),
        )

    def list_packages(self) -> Iterable[str]:
        return iter(self.registry)

    def delegate_dir(self) -> Path:
        return (self.root / self.delegate.cwd).resolve()


__all__ = [
    "ConfigurationStore",
    "DelegateSettings",
    "GlobalConfig",
    "PackageRegistry",
    "ToolSpec",
]
