"""Contract tests for the documentation pipeline entry point."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from run_pipeline import main, parse_args, run

FIXTURE_PROJECT = (
    Path(__file__).resolve().parents[2] / "extraction" / "tests" / "fixtures" / "plugin" / "UnrealDoc.toml"
)


class TestPipelineContracts(unittest.TestCase):
    def test_parse_args_defaults(self) -> None:
        args = parse_args([])
        self.assertEqual(args.input, "./UnrealDoc.toml")
        self.assertIsNone(args.output)
        self.assertIsNone(args.run_report_dir)
        self.assertFalse(args.continue_on_error)

    def test_run_json_backend(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            report = run(parse_args(["-i", str(FIXTURE_PROJECT), "-o", tmpdir]))
            payload = json.loads((Path(tmpdir) / "documentation.json").read_text(encoding="utf-8"))

        self.assertEqual(report["backend"], "json")
        self.assertEqual(report["document"]["classes"], 1)
        self.assertEqual(report["document"]["pages"], 5)
        self.assertEqual(report["extraction"]["headers_processed"], 1)
        self.assertEqual([s["name"] for s in payload["structs"]], ["FInventorySlot"])
        self.assertIn("give_item", payload["snippets"])

    def test_main_writes_run_report(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            reports = Path(tmpdir) / "reports"
            main(["-i", str(FIXTURE_PROJECT), "-o", str(Path(tmpdir) / "docs"),
                  "--run-report-dir", str(reports)])

            written = list(reports.glob("run_*.json"))
            self.assertEqual(len(written), 1)
            payload = json.loads(written[0].read_text(encoding="utf-8"))

        self.assertEqual(payload["status"], "success")
        self.assertEqual(payload["document"]["enums"], 1)

    def test_missing_project_exits_non_zero(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(["-i", "/definitely/missing/UnrealDoc.toml"])
        self.assertEqual(ctx.exception.code, 1)

    def test_parse_error_exits_non_zero(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "Source").mkdir()
            (root / "Source" / "Broken.h").write_text("struct A {", encoding="utf-8")
            (root / "UnrealDoc.toml").write_text(
                'input_dirs = ["Source"]\noutput_dir = "docs"\n', encoding="utf-8"
            )
            reports = root / "reports"

            with self.assertRaises(SystemExit) as ctx:
                main(["-i", str(root / "UnrealDoc.toml"), "--run-report-dir", str(reports)])

            payload = json.loads(next(reports.glob("run_*.json")).read_text(encoding="utf-8"))

        self.assertEqual(ctx.exception.code, 1)
        self.assertEqual(payload["status"], "failed")
        self.assertIn("Broken.h", payload["error"])


if __name__ == "__main__":
    unittest.main()
