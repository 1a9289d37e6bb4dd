"""Command line interface for the umbrella orchestrator."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List
import sys

from core.command_runner import CommandRunner, RecordingCommandRunner, SubprocessCommandRunner

from .actions import Action
from .config_loader import ConfigurationStore
from .console import Console
from .errors import OrchestratorError
from .executor import Executor
from .graph import GraphExpander
from .validation import missing_package_directories, validate_store_structure

_ACTION_HELP = {
    Action.FETCH_DEPENDENCIES: "Fetch package dependencies",
    Action.BUILD: "Build packages",
    Action.BUILD_RELEASE: "Build packages with the release profile",
    Action.TEST: "Build and test packages",
    Action.LINT: "Build and lint packages",
    Action.CLEAN: "Clean package build outputs",
    Action.DEEP_CLEAN: "Remove dependencies and build outputs, including the delegate's",
}


def _emit_dry_run_output(runner: RecordingCommandRunner, *, workspace: Path) -> None:
    for line in runner.iter_formatted(workspace=workspace):
        print(line)


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="umbrella", description="Declarative multi-package build orchestrator")
    parser.add_argument("--workspace", type=Path, help="Workspace root (defaults to the current directory)")
    parser.add_argument("--log-level", choices=list(Console.LEVELS), help="Override global.log_level")
    parser.add_argument("--verbose", action="store_true", help="Enable debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    aliases = Action.aliases()
    for action in Action:
        action_parser = subparsers.add_parser(action.value, aliases=aliases[action], help=_ACTION_HELP[action])
        action_parser.add_argument("packages", nargs="*", metavar="PACKAGE", help="Packages to act on; omit for all")
        action_parser.add_argument("--dry-run", action="store_true", help="Print commands without executing them")
        action_parser.set_defaults(action=action.value)

    plan_parser = subparsers.add_parser("plan", help="Show the target order for an action without running it")
    plan_parser.add_argument("action", help="Action to expand")
    plan_parser.add_argument("packages", nargs="*", metavar="PACKAGE", help="Packages to act on; omit for all")

    subparsers.add_parser("list", help="List known packages")
    subparsers.add_parser("validate", help="Validate configuration files")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    workspace = (args.workspace or Path.cwd()).resolve()

    try:
        if args.command == "list":
            return _handle_list(args, workspace)
        if args.command == "validate":
            return _handle_validate(args, workspace)
        if args.command == "plan":
            return _handle_plan(args, workspace)
        return _handle_run(args, workspace)
    except (OrchestratorError, ValueError, TypeError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


def _make_console(args: Namespace, store: ConfigurationStore) -> Console:
    level = store.global_config.log_level
    if getattr(args, "log_level", None):
        level = args.log_level
    if getattr(args, "verbose", False):
        level = "debug"
    log_file = store.global_config.log_file
    log_path = None
    if log_file:
        log_path = Path(log_file).expanduser()
        if not log_path.is_absolute():
            log_path = store.root / log_path
    return Console(level, log_file=log_path)


def _handle_run(args: Namespace, workspace: Path) -> int:
    store = ConfigurationStore.from_directory(workspace)
    console = _make_console(args, store)
    action = Action.parse(args.action)
    packages = store.registry.select(args.packages)

    runner: CommandRunner
    if args.dry_run:
        runner = RecordingCommandRunner()
    else:
        runner = SubprocessCommandRunner()

    expander = GraphExpander(store.rules, delegate_enabled=store.delegate.enabled)
    graph = expander.expand(action, packages)
    if not len(graph):
        print(f"Nothing to do for '{action.value}'")
        return 0

    executor = Executor(store, runner, console=console)
    result = executor.run(graph)

    if isinstance(runner, RecordingCommandRunner):
        _emit_dry_run_output(runner, workspace=workspace)
    for line in result.summary_lines():
        print(line)
    return 0 if result.succeeded else 1


def _handle_plan(args: Namespace, workspace: Path) -> int:
    store = ConfigurationStore.from_directory(workspace)
    action = Action.parse(args.action)
    packages = store.registry.select(args.packages)
    graph = GraphExpander(store.rules, delegate_enabled=store.delegate.enabled).expand(action, packages)
    for index, target in enumerate(graph.topological_order(), start=1):
        prerequisites = ", ".join(item.name for item in graph.prerequisites(target))
        suffix = f" <- {prerequisites}" if prerequisites else ""
        print(f"{index:>3}. {target.name}{suffix}")
    return 0


def _handle_list(args: Namespace, workspace: Path) -> int:
    store = ConfigurationStore.from_directory(workspace)
    rows: List[tuple[str, str]] = [
        (name, str(store.registry.package_dir(name))) for name in store.list_packages()
    ]
    width = max([len("Package"), *(len(name) for name, _ in rows)])
    print(f"{'Package':<{width}}  Directory")
    for name, directory in rows:
        print(f"{name:<{width}}  {directory}")
    return 0


def _handle_validate(args: Namespace, workspace: Path) -> int:
    store = ConfigurationStore.from_directory(workspace)
    console = _make_console(args, store)
    errors = validate_store_structure(store)
    for warning in missing_package_directories(store):
        console.info(f"Warning: {warning}")
    if errors:
        raise ValueError("; ".join(errors))
    print("Validation successful")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
