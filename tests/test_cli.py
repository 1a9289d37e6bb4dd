from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
import io
import json
import os
import sys
import tempfile
import textwrap
import unittest
from unittest.mock import patch

from umbrella import cli


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name)
        self.config_dir = self.workspace / "config"
        self.config_dir.mkdir()
        (self.config_dir / "config.toml").write_text(
            textwrap.dedent(
                """
                [global]
                log_level = "none"

                [workspace]
                packages_dir = "pkgs"
                packages = ["alpha", "beta"]
                """
            )
        )
        for name in ("alpha", "beta"):
            (self.workspace / "pkgs" / name).mkdir(parents=True)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _main(self, *argv: str) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            exit_code = cli.main(["--workspace", str(self.workspace), *argv])
        return exit_code, stdout.getvalue(), stderr.getvalue()


class RunCommandTests(CliTestCase):
    def test_dry_run_prints_commands_in_order(self) -> None:
        exit_code, output, _ = self._main("build", "--dry-run")
        self.assertEqual(exit_code, 0)
        lines = [line for line in output.splitlines() if line.startswith("[dry-run]")]
        self.assertEqual(len(lines), 6)
        self.assertIn("mix local.hex --force --if-missing", lines[0])
        self.assertIn("mix local.rebar --force --if-missing", lines[1])
        self.assertIn(f"(cwd={self.workspace.resolve() / 'pkgs' / 'alpha'}) mix deps.get", lines[2])
        self.assertIn("MIX_BUILD_ROOT=../_build mix compile", lines[3])
        self.assertIn("beta", lines[4])
        self.assertIn("All targets succeeded", output)

    def test_dry_run_with_package_subset_and_alias(self) -> None:
        exit_code, output, _ = self._main("build_release", "beta", "--dry-run")
        self.assertEqual(exit_code, 0)
        self.assertIn("MIX_BUILD_ROOT=../_build MIX_ENV=prod mix compile", output)
        self.assertNotIn("alpha", output)

    def test_deep_clean_dry_run_includes_delegate_and_shared_removal(self) -> None:
        exit_code, output, _ = self._main("very_clean", "alpha", "--dry-run")
        self.assertEqual(exit_code, 0)
        dry_lines = [line for line in output.splitlines() if line.startswith("[dry-run]")]
        self.assertIn("rm -rf deps _build", dry_lines[0])
        self.assertIn("make -C ../rust very_clean", dry_lines[1])
        self.assertIn(str(self.workspace.resolve() / "pkgs" / "_deps"), dry_lines[2])

    def test_unknown_package_exits_with_usage_error(self) -> None:
        exit_code, output, errors = self._main("test", "gamma", "--dry-run")
        self.assertEqual(exit_code, 2)
        self.assertIn("Package 'gamma' not found", errors)
        self.assertNotIn("[dry-run]", output)

    def test_real_run_reports_failing_target(self) -> None:
        python = sys.executable
        (self.config_dir / "config.toml").unlink()
        (self.config_dir / "config.json").write_text(
            json.dumps(
                {
                    "global": {"log_level": "none"},
                    "workspace": {"packages_dir": "pkgs", "packages": ["alpha", "beta"]},
                    "tools": {
                        "hex": {"command": [python, "-c", "pass"]},
                        "rebar": {"command": [python, "-c", "pass"]},
                    },
                    "rules": {
                        "fetch-dependencies": {"command": [python, "-c", "pass"]},
                        "build": {
                            "command": [
                                python,
                                "-c",
                                "import os, sys; sys.exit(os.path.basename(os.getcwd()) == 'beta')",
                            ]
                        },
                        "test": {"command": [python, "-c", "pass"]},
                    },
                }
            )
        )
        exit_code, output, _ = self._main("test")
        self.assertEqual(exit_code, 1)
        self.assertIn("succeeded    test(alpha)", output)
        self.assertIn("failed       build(beta)", output)
        self.assertIn("not-yet-run  test(beta)", output)
        self.assertIn("Run aborted by build(beta)", output)

    def test_real_clean_run_succeeds(self) -> None:
        python = sys.executable
        (self.config_dir / "config.toml").write_text(
            textwrap.dedent(
                f"""
                [global]
                log_level = "none"

                [workspace]
                packages_dir = "pkgs"
                packages = ["alpha", "beta"]

                [rules.clean]
                command = ["{python}", "-c", "open('cleaned', 'w').close()"]
                """
            )
        )
        exit_code, _, _ = self._main("clean")
        self.assertEqual(exit_code, 0)
        self.assertTrue((self.workspace / "pkgs" / "alpha" / "cleaned").exists())
        self.assertTrue((self.workspace / "pkgs" / "beta" / "cleaned").exists())


class PlanListValidateTests(CliTestCase):
    def test_plan_prints_target_order(self) -> None:
        exit_code, output, _ = self._main("plan", "lint", "beta")
        self.assertEqual(exit_code, 0)
        lines = output.splitlines()
        self.assertEqual(lines[0].strip(), "1. bootstrap")
        self.assertEqual(lines[1].strip(), "2. fetch-dependencies(beta) <- bootstrap")
        self.assertEqual(lines[3].strip(), "4. lint(beta) <- build(beta)")

    def test_plan_unknown_action(self) -> None:
        exit_code, _, errors = self._main("plan", "deploy")
        self.assertEqual(exit_code, 2)
        self.assertIn("Unknown action 'deploy'", errors)

    def test_list_shows_packages_and_directories(self) -> None:
        exit_code, output, _ = self._main("list")
        self.assertEqual(exit_code, 0)
        self.assertIn("Package", output)
        self.assertIn(str(self.workspace.resolve() / "pkgs" / "beta"), output)

    def test_validate_success(self) -> None:
        exit_code, output, _ = self._main("validate")
        self.assertEqual(exit_code, 0)
        self.assertIn("Validation successful", output)

    def test_validate_reports_unknown_placeholder(self) -> None:
        with (self.config_dir / "config.toml").open("a") as handle:
            handle.write('\n[rules.build]\ncommand = ["mix", "compile", "{{package.version}}"]\n')
        exit_code, _, errors = self._main("validate")
        self.assertEqual(exit_code, 2)
        self.assertIn("package.version", errors)

    def test_malformed_yaml_reports_error(self) -> None:
        (self.config_dir / "config.toml").unlink()
        (self.config_dir / "config.yaml").write_text("workspace: [unclosed\n")
        exit_code, output, errors = self._main("list")
        self.assertEqual(exit_code, 2)
        self.assertTrue(errors.startswith("Error: Invalid configuration file"))
        self.assertEqual(output, "")

    def test_unresolvable_placeholder_is_reported_against_its_target(self) -> None:
        with (self.config_dir / "config.toml").open("a") as handle:
            handle.write('\n[rules.clean]\ncommand = ["echo", "{{env.UMBRELLA_UNSET_VARIABLE}}"]\n')
        with patch.dict("os.environ"):
            os.environ.pop("UMBRELLA_UNSET_VARIABLE", None)
            exit_code, output, _ = self._main("clean", "--dry-run")
        self.assertEqual(exit_code, 1)
        self.assertIn("failed       clean(alpha)", output)
        self.assertIn("Run aborted by clean(alpha)", output)

    def test_run_logs_to_configured_file(self) -> None:
        (self.config_dir / "config.toml").unlink()
        (self.config_dir / "config.json").write_text(
            json.dumps(
                {
                    "global": {"log_level": "none", "log_file": "logs/run.log"},
                    "workspace": {"packages_dir": "pkgs", "packages": ["alpha"]},
                }
            )
        )
        exit_code, _, _ = self._main("--log-level", "info", "clean", "--dry-run")
        self.assertEqual(exit_code, 0)
        log_text = (self.workspace.resolve() / "logs" / "run.log").read_text()
        self.assertIn("[INFO] Running clean(alpha)", log_text)


if __name__ == "__main__":
    unittest.main()
