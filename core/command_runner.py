"""Utilities for executing shell commands with optional dry-run support."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Sequence
import os
import shlex
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    streamed: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    """Raised when a command fails."""

    def __init__(self, result: CommandResult):
        message = f"Command failed with exit code {result.returncode}: {' '.join(map(shlex.quote, result.command))}"
        if result.streamed:
            message = f"{message}\nstdout/stderr already streamed above."
        elif result.stdout or result.stderr:
            message = (
                f"{message}\n"
                f"stdout: {result.stdout}\n"
                f"stderr: {result.stderr}"
            )
        super().__init__(message)
        self.result = result


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(part) for part in command)


def merge_environment(overlay: Mapping[str, str] | None, base: Mapping[str, str] | None = None) -> Dict[str, str]:
    """Return ``base`` (the inherited environment by default) with ``overlay`` applied on top."""

    merged = dict(os.environ if base is None else base)
    if overlay:
        merged.update(overlay)
    return merged


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        return merge_environment(env)

    def _finalize(self, result: CommandResult, *, check: bool) -> CommandResult:
        if check and result.returncode != 0:
            raise CommandError(result)
        return result

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        merged_env = self._merge_environment(env)
        try:
            if not stream:
                process = subprocess.run(
                    command,
                    cwd=str(cwd) if cwd else None,
                    env=merged_env,
                    capture_output=True,
                    text=True,
                    check=False,
                )
                return self._finalize(
                    CommandResult(
                        command=command,
                        returncode=process.returncode,
                        stdout=process.stdout,
                        stderr=process.stderr,
                    ),
                    check=check,
                )

            process = subprocess.run(
                command,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                check=False,
            )
        except OSError as exc:
            # The process never started; report it with the shell's exit codes.
            returncode = 127 if isinstance(exc, FileNotFoundError) else 126
            return self._finalize(
                CommandResult(command=command, returncode=returncode, stdout="", stderr=str(exc)),
                check=check,
            )

        return self._finalize(
            CommandResult(
                command=command,
                returncode=process.returncode,
                stdout="",
                stderr="",
                streamed=True,
            ),
            check=check,
        )


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str]
    note: str | None
    stream: bool


Responder = Callable[[RecordedCommand], int]
"""Callable returning the exit code a recorded command should report."""


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them.

    ``responder`` lets callers simulate failures: it receives each recorded
    command and returns the exit code to report. Without one every command
    succeeds.
    """

    def __init__(self, responder: Responder | None = None) -> None:
        self.commands: List[RecordedCommand] = []
        self._responder = responder

    @staticmethod
    def _record_entry(
        *,
        command: Sequence[str],
        cwd: Path | None,
        env: Mapping[str, str] | None,
        note: str | None,
        stream: bool,
    ) -> RecordedCommand:
        return RecordedCommand(
            command=list(command),
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env else {},
            note=note,
            stream=stream,
        )

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        record = self._record_entry(command=command, cwd=cwd, env=env, note=note, stream=stream)
        self.commands.append(record)
        returncode = self._responder(record) if self._responder is not None else 0
        result = CommandResult(command=command, returncode=returncode, stdout="", stderr="")
        if check and returncode != 0:
            raise CommandError(result)
        return result

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(self.commands)

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            cmd = self.format_command(record.command)
            cwd = record.cwd or default_cwd
            note = record.note
            parts: List[str] = ["[dry-run]"]
            if note:
                parts.append(note)
            if cwd:
                parts.append(f"(cwd={cwd})")
            if record.env:
                assignments = " ".join(f"{key}={shlex.quote(value)}" for key, value in sorted(record.env.items()))
                parts.append(assignments)
            parts.append(cmd)
            yield " ".join(parts)


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "Responder",
    "SubprocessCommandRunner",
    "merge_environment",
]
