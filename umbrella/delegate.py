"""Delegation into the sibling build system during deep-clean."""
from __future__ import annotations

from pathlib import Path

from core.command_runner import CommandError, CommandRunner

from .config_loader import DelegateSettings
from .console import Console
from .errors import DelegateFailure
from .graph import DELEGATE_TARGET


class ExternalDelegate:
    """Runs the external build system's own deep-clean entry point.

    Only the exit status matters; the delegate's structure is opaque.
    """

    def __init__(
        self,
        settings: DelegateSettings,
        runner: CommandRunner,
        *,
        cwd: Path,
        console: Console | None = None,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self._cwd = cwd
        self._console = console or Console("none")

    @property
    def enabled(self) -> bool:
        return self._settings.enabled

    def invoke_external_deep_clean(self) -> None:
        if not self.enabled:
            self._console.debug("No external delegate configured")
            return
        self._console.info(f"Delegating deep clean to '{self._settings.name}'")
        try:
            self._runner.run(
                self._settings.command,
                cwd=self._cwd,
                note=f"Deep clean {self._settings.name}",
                stream=True,
            )
        except CommandError as exc:
            raise DelegateFailure(DELEGATE_TARGET, str(exc)) from exc


__all__ = ["ExternalDelegate"]
