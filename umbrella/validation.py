"""Configuration validation helpers."""
from __future__ import annotations

from typing import Iterable, List

from core.template import extract_placeholders

from .config_loader import ConfigurationStore

_KNOWN_PLACEHOLDERS = frozenset({"package.name", "package.dir", "workspace.root", "workspace.packages_dir"})


def _placeholder_errors(label: str, values: Iterable[str]) -> List[str]:
    errors: List[str] = []
    for path in sorted(extract_placeholders(values)):
        if path in _KNOWN_PLACEHOLDERS or path.startswith("env."):
            continue
        errors.append(f"{label} references unknown placeholder '{{{{{path}}}}}'")
    return errors


def validate_store_structure(store: ConfigurationStore) -> list[str]:
    """Return configuration errors that loading alone does not catch."""

    errors: list[str] = []
    if not len(store.registry):
        errors.append("workspace.packages must list at least one package")

    for rule in store.rules:
        label = f"rules.{rule.action.value}"
        errors.extend(_placeholder_errors(f"{label}.command", rule.command))
        errors.extend(_placeholder_errors(f"{label}.environment", rule.environment.values()))
    return errors


def missing_package_directories(store: ConfigurationStore) -> list[str]:
    """Return warnings for registry entries without a working directory on disk."""

    warnings: list[str] = []
    for name in store.registry:
        path = store.registry.package_dir(name)
        if not path.is_dir():
            warnings.append(f"Package '{name}' has no directory at {path}")
    if store.delegate.enabled and not store.delegate_dir().is_dir():
        warnings.append(f"Delegate '{store.delegate.name}' directory {store.delegate_dir()} does not exist")
    return warnings


__all__ = ["missing_package_directories", "validate_store_structure"]
