"""Installation of the shared build tools every dependency fetch relies on."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from core.command_runner import CommandError, CommandRunner

from .config_loader import ToolSpec
from .console import Console
from .errors import ToolBootstrapFailure
from .graph import BOOTSTRAP_TARGET


class ToolBootstrapper:
    """Ensures each configured tool is installed, at most once per instance.

    A tool whose ``check`` command exits 0 is already present and is left
    alone. Install commands themselves are expected to be "if missing"
    operations, so re-running them across separate runs is harmless.
    """

    def __init__(
        self,
        tools: Iterable[ToolSpec],
        runner: CommandRunner,
        *,
        workspace: Path,
        console: Console | None = None,
    ) -> None:
        self._tools = list(tools)
        self._runner = runner
        self._workspace = workspace
        self._console = console or Console("none")
        self._completed = False
        self.installed: List[str] = []

    @property
    def completed(self) -> bool:
        return self._completed

    def ensure_tools_installed(self) -> None:
        if self._completed:
            self._console.debug("Build tools already ensured in this run")
            return

        for tool in self._tools:
            if tool.check and self._is_present(tool):
                self._console.debug(f"Tool '{tool.name}' already installed")
                continue
            self._console.info(f"Ensuring tool '{tool.name}' is installed")
            try:
                self._runner.run(
                    tool.command,
                    cwd=self._workspace,
                    note=f"Install {tool.name}",
                    stream=True,
                )
            except CommandError as exc:
                raise ToolBootstrapFailure(BOOTSTRAP_TARGET, tool.name, str(exc)) from exc
            self.installed.append(tool.name)

        self._completed = True

    def _is_present(self, tool: ToolSpec) -> bool:
        result = self._runner.run(
            tool.check,
            cwd=self._workspace,
            check=False,
            note=f"Check {tool.name}",
        )
        return result.returncode == 0


__all__ = ["ToolBootstrapper"]
