"""Target graph construction.

A target pairs an :class:`Action` with a package, or is one of the shared
pseudo-targets (tool bootstrap, the external delegate and the shared
directory removal that only ``deep-clean`` schedules). The expander turns a
requested action and an ordered package list into a DAG whose edges point
from a target to its prerequisites.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

from .actions import Action
from .errors import GraphCycleError
from .rules import RuleTable


class TargetKind(str, Enum):
    BOOTSTRAP = "bootstrap"
    PACKAGE = "package"
    DELEGATE = "delegate"
    SHARED_CLEANUP = "shared-cleanup"


TargetKey = Tuple[str, str, str]


@dataclass(frozen=True, slots=True)
class Target:
    kind: TargetKind
    action: Action | None = None
    package: str | None = None
    idempotent_non_artifact: bool = True

    def __post_init__(self) -> None:
        if self.kind is TargetKind.PACKAGE and (self.action is None or not self.package):
            raise ValueError("Package targets need both an action and a package")

    @property
    def key(self) -> TargetKey:
        action = self.action.value if self.action is not None else ""
        return (self.kind.value, action, self.package or "")

    @property
    def name(self) -> str:
        if self.kind is TargetKind.BOOTSTRAP:
            return "bootstrap"
        if self.kind is TargetKind.DELEGATE:
            return "deep-clean:delegate"
        if self.kind is TargetKind.SHARED_CLEANUP:
            return "deep-clean:shared-directories"
        action = self.action.value if self.action is not None else ""
        return f"{action}({self.package})"

    def __str__(self) -> str:
        return self.name


BOOTSTRAP_TARGET = Target(TargetKind.BOOTSTRAP)
DELEGATE_TARGET = Target(TargetKind.DELEGATE, action=Action.DEEP_CLEAN)
SHARED_CLEANUP_TARGET = Target(TargetKind.SHARED_CLEANUP, action=Action.DEEP_CLEAN)


def package_target(action: Action, package: str) -> Target:
    return Target(TargetKind.PACKAGE, action=action, package=package)


class TargetGraph:
    """Insertion-ordered DAG over targets; edges point at prerequisites."""

    def __init__(self) -> None:
        self._targets: Dict[TargetKey, Target] = {}
        self._prerequisites: Dict[TargetKey, List[TargetKey]] = {}
        self._roots: List[TargetKey] = []

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, target: object) -> bool:
        return isinstance(target, Target) and target.key in self._targets

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    @property
    def roots(self) -> List[Target]:
        """Targets that were requested directly, in request order."""
        return [self._targets[key] for key in self._roots]

    def add_target(self, target: Target) -> Target:
        existing = self._targets.get(target.key)
        if existing is not None:
            return existing
        self._targets[target.key] = target
        self._prerequisites[target.key] = []
        return target

    def mark_root(self, target: Target) -> None:
        self.add_target(target)
        if target.key not in self._roots:
            self._roots.append(target.key)

    def add_edge(self, target: Target, prerequisite: Target) -> None:
        self.add_target(target)
        self.add_target(prerequisite)
        edges = self._prerequisites[target.key]
        if prerequisite.key not in edges:
            edges.append(prerequisite.key)

    def prerequisites(self, target: Target) -> List[Target]:
        return [self._targets[key] for key in self._prerequisites.get(target.key, [])]

    def topological_order(self) -> List[Target]:
        """Prerequisites first; ties follow insertion order, so the result is stable."""

        order: List[Target] = []
        visited: set[TargetKey] = set()
        visiting: List[TargetKey] = []

        def visit(key: TargetKey) -> None:
            if key in visited:
                return
            if key in visiting:
                cycle = " -> ".join(self._targets[item].name for item in [*visiting, key])
                raise GraphCycleError(f"Circular target dependency detected: {cycle}")
            visiting.append(key)
            for prerequisite in self._prerequisites[key]:
                visit(prerequisite)
            visiting.pop()
            visited.add(key)
            order.append(self._targets[key])

        for key in self._roots:
            visit(key)
        for key in self._targets:
            visit(key)
        return order


class GraphExpander:
    """Instantiates one target per (action, package) and wires prerequisites."""

    def __init__(self, rules: RuleTable, *, delegate_enabled: bool = True) -> None:
        self._rules = rules
        self._delegate_enabled = delegate_enabled

    def expand(self, action: "Action | str", packages: Sequence[str]) -> TargetGraph:
        requested = Action.parse(action)
        # Validates the action before anything is built.
        self._rules.rule_for(requested)
        graph = TargetGraph()
        if not packages:
            return graph

        roots: List[Target] = []
        for package in packages:
            target = self._resolve(graph, requested, package)
            graph.mark_root(target)
            roots.append(target)

        if requested is Action.DEEP_CLEAN:
            self._attach_deep_clean_steps(graph, roots)
        return graph

    def _resolve(self, graph: TargetGraph, action: Action, package: str) -> Target:
        target = package_target(action, package)
        if target in graph:
            return target
        graph.add_target(target)

        rule = self._rules.rule_for(action)
        if rule.requires_bootstrap:
            graph.add_edge(target, BOOTSTRAP_TARGET)
        if rule.prerequisite is not None:
            prerequisite = self._resolve(graph, rule.prerequisite, package)
            graph.add_edge(target, prerequisite)
        return target

    def _attach_deep_clean_steps(self, graph: TargetGraph, package_targets: Iterable[Target]) -> None:
        # Package cleans, then the delegate, then the shared directories.
        last: Target | None = None
        if self._delegate_enabled:
            for target in package_targets:
                graph.add_edge(DELEGATE_TARGET, target)
            graph.mark_root(DELEGATE_TARGET)
            last = DELEGATE_TARGET

        if last is not None:
            graph.add_edge(SHARED_CLEANUP_TARGET, last)
        else:
            for target in package_targets:
                graph.add_edge(SHARED_CLEANUP_TARGET, target)
        graph.mark_root(SHARED_CLEANUP_TARGET)


__all__ = [
    "BOOTSTRAP_TARGET",
    "DELEGATE_TARGET",
    "GraphExpander",
    "SHARED_CLEANUP_TARGET",
    "Target",
    "TargetGraph",
    "TargetKey",
    "TargetKind",
    "package_target",
]
