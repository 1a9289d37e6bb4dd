"""Shared core utilities for command execution, configuration and templating."""

from .template import TemplateError, TemplateResolver, extract_placeholders
from .command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    merge_environment,
)
from .config_loader import (
    ConfigFileError,
    DECODERS,
    existing_directories,
    find_config_file,
    load_config_file,
    merge_mappings,
    normalize_string_list,
)

__all__ = [
    "TemplateError",
    "TemplateResolver",
    "extract_placeholders",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "merge_environment",
    "ConfigFileError",
    "DECODERS",
    "existing_directories",
    "find_config_file",
    "load_config_file",
    "merge_mappings",
    "normalize_string_list",
]
