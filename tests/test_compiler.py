from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence
import shutil
import tempfile
import unittest
from unittest.mock import patch

from core.command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)
from deodar.compiler import AssetCompiler, output_path, write_global_shims
from tests.helpers import make_plugin, quiet_console


class FailingCommandRunner(CommandRunner):
    def __init__(self) -> None:
        self.calls = 0

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
    ) -> CommandResult:
        self.calls += 1
        raise CommandError(CommandResult(command=command, returncode=1, stdout="", stderr="syntax error"))


class ShimCapturingRunner(RecordingCommandRunner):
    """Reads alias targets while the temporary shim directory still exists."""

    def __init__(self) -> None:
        super().__init__()
        self.shim_sources: dict[str, str] = {}

    def run(self, command, **kwargs) -> CommandResult:  # type: ignore[override]
        for part in command:
            if part.startswith("--alias:"):
                module, _, target = part[len("--alias:"):].partition("=")
                self.shim_sources[module] = Path(target).read_text()
        return super().run(command, **kwargs)


class OutputPathTests(unittest.TestCase):
    def test_source_outputs_go_to_sibling_build(self) -> None:
        self.assertEqual(
            output_path(Path("/p/source/app.scss"), "../build", True),
            Path("/p/build/app.build.css"),
        )

    def test_block_outputs_go_to_nested_build(self) -> None:
        self.assertEqual(
            output_path(Path("/p/blocks/acf/hero/hero.js"), "build", False),
            Path("/p/blocks/acf/hero/build/hero.build.js"),
        )


class AssetCompilerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = make_plugin(Path(self.temp_dir.name))
        (self.root / "source").mkdir()
        self.style = self.root / "source" / "app.scss"
        self.script = self.root / "source" / "app.js"
        self.style.write_text(".x { color: red; }\n")
        self.script.write_text("import $ from 'jquery'\n$('body')\n")
        patcher = patch.dict("os.environ", {"DEODAR_SASS": "sass-bin", "DEODAR_ESBUILD": "esbuild-bin"})
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _compiler(self, runner: CommandRunner) -> AssetCompiler:
        return AssetCompiler(root=self.root, runner=runner, console=quiet_console())

    def test_development_style_command_has_source_map(self) -> None:
        runner = RecordingCommandRunner()
        out = output_path(self.style, "../build", True)
        outcome = self._compiler(runner).compile_one(self.style, out, True, False, {})
        self.assertTrue(outcome.succeeded)
        self.assertIsNone(outcome.error_detail)
        command = runner.commands[0].command
        self.assertEqual(command[0], "sass-bin")
        self.assertIn("--source-map", command)
        self.assertIn("--style=expanded", command)
        self.assertEqual(command[-2:], [str(self.style), str(out)])
        self.assertTrue(out.parent.is_dir())

    def test_production_style_command_is_compressed(self) -> None:
        runner = RecordingCommandRunner()
        out = output_path(self.style, "../build", True)
        self._compiler(runner).compile_one(self.style, out, True, True, {})
        command = runner.commands[0].command
        self.assertIn("--style=compressed", command)
        self.assertIn("--no-source-map", command)

    def test_script_command_bundles_iife_and_aliases_externals(self) -> None:
        runner = ShimCapturingRunner()
        out = output_path(self.script, "../build", False)
        outcome = self._compiler(runner).compile_one(self.script, out, False, True, {"jquery": "jQuery"})
        self.assertTrue(outcome.succeeded)
        command = runner.commands[0].command
        self.assertEqual(command[0], "esbuild-bin")
        self.assertIn("--bundle", command)
        self.assertIn("--format=iife", command)
        self.assertIn("--minify", command)
        self.assertNotIn("--sourcemap", command)
        self.assertIn(f"--outfile={out}", command)
        self.assertIn("window.jQuery", runner.shim_sources["jquery"])
        self.assertIn("export default globalValue", runner.shim_sources["jquery"])

    def test_development_script_has_sourcemap(self) -> None:
        runner = RecordingCommandRunner()
        out = output_path(self.script, "../build", False)
        self._compiler(runner).compile_one(self.script, out, False, False, {})
        command = runner.commands[0].command
        self.assertIn("--sourcemap", command)
        self.assertNotIn("--minify", command)

    def test_failures_are_reported_not_raised(self) -> None:
        runner = FailingCommandRunner()
        out = output_path(self.style, "../build", True)
        outcome = self._compiler(runner).compile_one(self.style, out, True, False, {})
        self.assertFalse(outcome.succeeded)
        self.assertIn("syntax error", outcome.error_detail)
        self.assertEqual(outcome.source_path, self.style)
        self.assertEqual(outcome.output_path, out)

    def test_missing_tool_is_a_failed_outcome(self) -> None:
        with patch.dict("os.environ", {"DEODAR_ESBUILD": str(self.root / "no-such-esbuild")}):
            compiler = self._compiler(SubprocessCommandRunner())
        out = output_path(self.script, "../build", False)
        outcome = compiler.compile_one(self.script, out, False, False, {})
        self.assertFalse(outcome.succeeded)

    def test_write_global_shims_names_are_safe(self) -> None:
        with tempfile.TemporaryDirectory() as directory:
            shims = write_global_shims(Path(directory), {"@wordpress/element": "wp.element"})
            path = shims["@wordpress/element"]
            self.assertEqual(path.parent, Path(directory))
            self.assertNotIn("/", path.name)
            self.assertIn("window.wp.element", path.read_text())


@unittest.skipUnless(shutil.which("sass"), "Dart Sass is not installed")
class SassRoundTripTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = make_plugin(Path(self.temp_dir.name))
        (self.root / "source").mkdir()
        self.style = self.root / "source" / "app.scss"
        self.style.write_text("/* banner comment */\n.x { color: red; }\n")
        self.compiler = AssetCompiler(root=self.root, runner=SubprocessCommandRunner(), console=quiet_console())
        self.out = output_path(self.style, "../build", True)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_development_output_keeps_declarations_and_map(self) -> None:
        outcome = self.compiler.compile_one(self.style, self.out, True, False, {})
        self.assertTrue(outcome.succeeded, outcome.error_detail)
        self.assertIn("color: red", self.out.read_text())
        self.assertTrue(self.out.with_name(self.out.name + ".map").exists())

    def test_production_output_drops_comments(self) -> None:
        outcome = self.compiler.compile_one(self.style, self.out, True, True, {})
        self.assertTrue(outcome.succeeded, outcome.error_detail)
        self.assertNotIn("/*", self.out.read_text())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
