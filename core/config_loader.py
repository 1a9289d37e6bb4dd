"""Reading workspace configuration files and combining them with defaults."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence
import json
import tomllib

import yaml


Decoder = Callable[[Any], Any]

DECODERS: Dict[str, tuple[str, Decoder]] = {
    ".toml": ("rb", tomllib.load),
    ".json": ("r", json.load),
    ".yaml": ("r", yaml.safe_load),
    ".yml": ("r", yaml.safe_load),
}
"""File suffix -> (open mode, decoder)."""

_DECODE_ERRORS = (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError)


class ConfigFileError(ValueError):
    """Raised when a configuration file cannot be read as a mapping."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Invalid configuration file '{path}': {reason}")
        self.path = path
        self.reason = reason


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Decode ``path``; an empty document yields an empty mapping."""

    suffix = path.suffix.lower()
    if suffix not in DECODERS:
        raise ConfigFileError(path, f"unsupported extension, expected one of {', '.join(sorted(DECODERS))}")
    mode, decoder = DECODERS[suffix]

    try:
        with path.open(mode, **({} if "b" in mode else {"encoding": "utf-8"})) as handle:
            data = decoder(handle)
    except _DECODE_ERRORS as exc:
        raise ConfigFileError(path, str(exc).strip()) from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigFileError(path, "the document root must be a table")
    return data


def find_config_file(directory: Path, stem: str) -> Path | None:
    """Return the single ``<stem>.<format>`` file in ``directory``, if any."""

    candidates = [directory / f"{stem}{suffix}" for suffix in DECODERS]
    found = [path for path in candidates if path.is_file()]
    if len(found) > 1:
        names = "' and '".join(path.name for path in found)
        raise ConfigFileError(directory, f"'{names}' both define '{stem}'; keep only one format")
    return found[0] if found else None


def existing_directories(root: Path, directories: Iterable[Path]) -> List[Path]:
    """Resolve ``directories`` against ``root``, dropping duplicates and absent ones."""

    result: List[Path] = []
    for raw in directories:
        path = raw if raw.is_absolute() else (root / raw).resolve()
        if path.is_dir() and path not in result:
            result.append(path)
    return result


def merge_mappings(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge ``overlay`` over ``base``; tables merge, everything else is replaced."""

    result: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            result[key] = merge_mappings(existing, value)
        else:
            result[key] = value
    return result


def normalize_string_list(value: Any, *, field_name: str) -> List[str]:
    """Accept a string or a list of strings and return the non-blank entries."""

    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, Sequence):
        raise TypeError(f"{field_name} must be a string or list of strings")
    if not all(isinstance(item, str) for item in value):
        raise TypeError(f"{field_name} entries must be strings")
    return [item.strip() for item in value if item.strip()]


__all__ = [
    "ConfigFileError",
    "DECODERS",
    "existing_directories",
    "find_config_file",
    "load_config_file",
    "merge_mappings",
    "normalize_string_list",
]
