"""Sequential, fail-fast execution of a target graph."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from core.command_runner import CommandError, CommandRunner

from .bootstrap import ToolBootstrapper
from .config_loader import ConfigurationStore
from .console import Console
from .delegate import ExternalDelegate
from .errors import ConfigurationError, TargetExecutionFailure, TargetFailure
from .graph import Target, TargetGraph, TargetKey, TargetKind


class TargetStatus(str, Enum):
    NOT_YET_RUN = "not-yet-run"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class TargetOutcome:
    target: Target
    status: TargetStatus = TargetStatus.NOT_YET_RUN
    reason: str | None = None


@dataclass(slots=True)
class RunResult:
    outcomes: List[TargetOutcome] = field(default_factory=list)
    executed: List[str] = field(default_factory=list)
    failure: TargetFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None and all(
            outcome.status is TargetStatus.SUCCEEDED for outcome in self.outcomes
        )

    @property
    def failed_target(self) -> Target | None:
        for outcome in self.outcomes:
            if outcome.status is TargetStatus.FAILED:
                return outcome.target
        return None

    def status_of(self, name: str) -> TargetStatus:
        for outcome in self.outcomes:
            if outcome.target.name == name:
                return outcome.status
        raise KeyError(name)

    def summary_lines(self) -> List[str]:
        lines: List[str] = []
        attempted = [o for o in self.outcomes if o.status is not TargetStatus.NOT_YET_RUN]
        lines.append(f"Attempted {len(attempted)} of {len(self.outcomes)} target(s)")
        for outcome in self.outcomes:
            line = f"  {outcome.status.value:<12} {outcome.target.name}"
            if outcome.reason:
                line = f"{line}: {outcome.reason.splitlines()[0]}"
            lines.append(line)
        failed = self.failed_target
        if failed is not None:
            lines.append(f"Run aborted by {failed.name}")
        else:
            lines.append("All targets succeeded")
        return lines


class Executor:
    """Runs targets one at a time in topological order, stopping on the first failure.

    Targets that already succeeded through this executor are not run again,
    which keeps the shared bootstrap step to a single execution per run even
    when several graphs are executed.
    """

    def __init__(
        self,
        store: ConfigurationStore,
        runner: CommandRunner,
        *,
        bootstrapper: ToolBootstrapper | None = None,
        delegate: ExternalDelegate | None = None,
        console: Console | None = None,
    ) -> None:
        self._store = store
        self._runner = runner
        self._console = console or Console("none")
        self._bootstrapper = bootstrapper or ToolBootstrapper(
            store.tools, runner, workspace=store.root, console=self._console
        )
        self._delegate = delegate or ExternalDelegate(
            store.delegate, runner, cwd=store.delegate_dir(), console=self._console
        )
        self._completed: set[TargetKey] = set()

    def run(self, graph: TargetGraph) -> RunResult:
        order = graph.topological_order()
        result = RunResult(outcomes=[TargetOutcome(target) for target in order])
        outcomes: Dict[TargetKey, TargetOutcome] = {o.target.key: o for o in result.outcomes}

        for target in order:
            outcome = outcomes[target.key]
            if target.key in self._completed:
                self._console.debug(f"Skipping {target.name}: already completed")
                outcome.status = TargetStatus.SUCCEEDED
                continue

            self._console.info(f"Running {target.name}")
            result.executed.append(target.name)
            try:
                self._execute(target)
            except TargetFailure as exc:
                outcome.status = TargetStatus.FAILED
                outcome.reason = exc.reason
                result.failure = exc
                self._console.error(str(exc))
                break

            outcome.status = TargetStatus.SUCCEEDED
            self._completed.add(target.key)

        return result

    def _execute(self, target: Target) -> None:
        if target.kind is TargetKind.BOOTSTRAP:
            self._bootstrapper.ensure_tools_installed()
        elif target.kind is TargetKind.PACKAGE:
            self._run_package_target(target)
        elif target.kind is TargetKind.DELEGATE:
            self._delegate.invoke_external_deep_clean()
        elif target.kind is TargetKind.SHARED_CLEANUP:
            self._remove_shared_directories(target)
        else:  # pragma: no cover
            raise ValueError(f"Unsupported target kind: {target.kind}")

    def _run_package_target(self, target: Target) -> None:
        action, package = target.action, target.package
        if action is None or package is None:
            raise ValueError(f"Package target {target.name} lacks an action or package")
        rule = self._store.rules.rule_for(action)
        cwd = self._store.registry.package_dir(package)
        try:
            command = rule.command_for(package)
            environment = rule.environment_for(package)
        except ConfigurationError as exc:
            raise TargetExecutionFailure(target, str(exc)) from exc

        self._console.debug(f"{target.name}: {self._runner.format_command(command)} (cwd={cwd})")
        try:
            self._runner.run(
                command,
                cwd=cwd,
                env=environment or None,
                note=f"{rule.description} {package}",
                stream=True,
            )
        except CommandError as exc:
            raise TargetExecutionFailure(target, str(exc)) from exc

    def _remove_shared_directories(self, target: Target) -> None:
        paths = self._store.registry.shared_dirs()
        if not paths:
            return
        try:
            self._runner.run(
                ["rm", "-rf", *(str(path) for path in paths)],
                cwd=self._store.root,
                note="Remove shared directories",
                stream=True,
            )
        except CommandError as exc:
            raise TargetExecutionFailure(target, str(exc)) from exc


__all__ = ["Executor", "RunResult", "TargetOutcome", "TargetStatus"]
