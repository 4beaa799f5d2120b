"""Tests for project config loading."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from core.project_config import (
    SITE_URL_ENV,
    Backend,
    ConfigValidationError,
    Settings,
    apply_environment_overrides,
    load_project_config,
)


class TestProjectConfig(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def test_load_toml_resolves_relative_paths(self) -> None:
        path = self._write(
            "Plugin/UnrealDoc.toml",
            'input_dirs = ["Source", "/abs/Other"]\n'
            'output_dir = "../docs"\n'
            'backend = "MdBook"\n'
            "[settings]\n"
            "document_protected = true\n"
            "[backend_mdbook]\n"
            'title = "Plugin"\n'
            'authors = ["Me"]\n'
            'header = "header.md"\n'
            "build = true\n",
        )
        config = load_project_config(path)

        self.assertEqual(config.input_dirs, [self.root / "Plugin" / "Source", Path("/abs/Other")])
        self.assertEqual(config.output_dir, self.root / "Plugin" / ".." / "docs")
        self.assertEqual(config.backend, Backend.MDBOOK)
        self.assertEqual(config.settings, Settings(document_protected=True))
        self.assertEqual(config.backend_mdbook.title, "Plugin")
        self.assertEqual(config.backend_mdbook.authors, ["Me"])
        self.assertEqual(config.backend_mdbook.header, self.root / "Plugin" / "header.md")
        self.assertIsNone(config.backend_mdbook.footer)
        self.assertTrue(config.backend_mdbook.build)
        self.assertFalse(config.backend_mdbook.cleanup)

    def test_defaults(self) -> None:
        path = self._write("UnrealDoc.toml", 'output_dir = "docs"\n')
        config = load_project_config(path)

        self.assertEqual(config.input_dirs, [])
        self.assertEqual(config.backend, Backend.JSON)
        self.assertEqual(config.settings, Settings())
        self.assertIsNone(config.backend_mdbook)

    def test_output_override(self) -> None:
        path = self._write("UnrealDoc.toml", 'output_dir = "docs"\n')
        config = load_project_config(path, output_dir="/tmp/elsewhere")
        self.assertEqual(config.output_dir, Path("/tmp/elsewhere"))

    def test_yaml_and_json(self) -> None:
        yaml_path = self._write("a.yaml", "input_dirs: [Source]\noutput_dir: out\nbackend: json\n")
        json_path = self._write("b.json", '{"input_dirs": ["Source"], "output_dir": "out"}')

        self.assertEqual(load_project_config(yaml_path).input_dirs, [self.root / "Source"])
        self.assertEqual(load_project_config(json_path).output_dir, self.root / "out")

    def test_dependencies_append_input_dirs(self) -> None:
        self._write("Core/UnrealDoc.toml", 'input_dirs = ["Source"]\noutput_dir = "ignored"\n')
        path = self._write(
            "Game/UnrealDoc.toml",
            'input_dirs = ["Source"]\n'
            'output_dir = "docs"\n'
            'dependencies = ["../Core/UnrealDoc.toml"]\n',
        )
        config = load_project_config(path)

        self.assertEqual(
            config.input_dirs,
            [
                self.root / "Game" / "Source",
                self.root / "Game" / ".." / "Core" / "Source",
            ],
        )
        self.assertEqual(config.output_dir, self.root / "Game" / "docs")

    def test_dependency_cycle_raises(self) -> None:
        self._write("A.toml", 'output_dir = "docs"\ndependencies = ["B.toml"]\n')
        path = self._write("B.toml", 'output_dir = "docs"\ndependencies = ["A.toml"]\n')
        with self.assertRaises(ConfigValidationError):
            load_project_config(path)

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(ConfigValidationError):
            load_project_config(self.root / "missing.toml")

    def test_malformed_file_raises(self) -> None:
        path = self._write("UnrealDoc.toml", "output_dir = \n")
        with self.assertRaises(ConfigValidationError):
            load_project_config(path)

    def test_missing_output_dir_raises(self) -> None:
        path = self._write("UnrealDoc.toml", 'input_dirs = ["Source"]\n')
        with self.assertRaises(ConfigValidationError):
            load_project_config(path)

    def test_invalid_backend_raises(self) -> None:
        path = self._write("UnrealDoc.toml", 'output_dir = "docs"\nbackend = "pdf"\n')
        with self.assertRaises(ConfigValidationError):
            load_project_config(path)

    def test_input_dirs_must_be_list(self) -> None:
        path = self._write("UnrealDoc.toml", 'output_dir = "docs"\ninput_dirs = "Source"\n')
        with self.assertRaises(ConfigValidationError):
            load_project_config(path)

    def test_site_url_override(self) -> None:
        path = self._write(
            "UnrealDoc.toml",
            'output_dir = "docs"\n[backend_mdbook]\nsite_url = "/old/"\n',
        )
        config = load_project_config(path)
        with mock.patch.dict(os.environ, {SITE_URL_ENV: "/new/"}):
            overridden = apply_environment_overrides(config)

        self.assertEqual(overridden.backend_mdbook.site_url, "/new/")
        self.assertEqual(config.backend_mdbook.site_url, "/old/")

    def test_site_url_override_without_book_options(self) -> None:
        path = self._write("UnrealDoc.toml", 'output_dir = "docs"\n')
        config = load_project_config(path)
        with mock.patch.dict(os.environ, {SITE_URL_ENV: "/new/"}):
            self.assertIs(apply_environment_overrides(config), config)


if __name__ == "__main__":
    unittest.main()
