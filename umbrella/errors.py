"""Error taxonomy for the orchestrator."""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:  # pragma: no cover
    from .graph import Target


class OrchestratorError(RuntimeError):
    """Base class for every error raised by the orchestrator."""


class ConfigurationError(OrchestratorError, ValueError):
    """Raised when the workspace configuration is invalid."""


class UnknownAction(OrchestratorError, LookupError):
    """Raised when an action name is not part of the supported enumeration."""

    def __init__(self, name: str, supported: Iterable[str]) -> None:
        available = ", ".join(supported) or "<none>"
        super().__init__(f"Unknown action '{name}'. Supported actions: {available}")
        self.name = name


class UnknownPackage(OrchestratorError, LookupError):
    """Raised when a package name is not part of the registry."""

    def __init__(self, name: str, available: Iterable[str]) -> None:
        listing = ", ".join(available) or "<none>"
        super().__init__(f"Package '{name}' not found. Available packages: {listing}")
        self.name = name


class GraphCycleError(OrchestratorError):
    """Raised when a target graph contains a cycle."""


class TargetFailure(OrchestratorError):
    """A target could not be completed; aborts the run."""

    def __init__(self, target: "Target", reason: str) -> None:
        super().__init__(f"{target.name} failed: {reason}")
        self.target = target
        self.reason = reason


class ToolBootstrapFailure(TargetFailure):
    """The shared build tools could not be installed."""

    def __init__(self, target: "Target", tool: str, reason: str) -> None:
        super().__init__(target, f"tool '{tool}': {reason}")
        self.tool = tool


class TargetExecutionFailure(TargetFailure):
    """A package command exited with a failure."""


class DelegateFailure(TargetFailure):
    """The external build system's clean step failed."""


__all__ = [
    "ConfigurationError",
    "DelegateFailure",
    "GraphCycleError",
    "OrchestratorError",
    "TargetExecutionFailure",
    "TargetFailure",
    "ToolBootstrapFailure",
    "UnknownAction",
    "UnknownPackage",
]
