"""Declarative multi-package build orchestrator."""

from .actions import Action
from .cli import main
from .config_loader import ConfigurationStore, PackageRegistry
from .executor import Executor, RunResult, TargetStatus
from .graph import GraphExpander, Target, TargetGraph, TargetKind
from .rules import RuleTable, RuleTemplate

__all__ = [
    "Action",
    "ConfigurationStore",
    "Executor",
    "GraphExpander",
    "PackageRegistry",
    "RuleTable",
    "RuleTemplate",
    "RunResult",
    "Target",
    "TargetGraph",
    "TargetKind",
    "TargetStatus",
    "main",
]
