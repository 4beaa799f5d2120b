"""Project configuration contract for documentation runs.

A project file (``UnrealDoc.toml`` by default, YAML and JSON are accepted as
well) names the input directories, the output directory, the renderer
backend and the export settings. Other project files can be listed under
``dependencies``; their input directories are appended to this project's.
"""

from __future__ import annotations

import enum
import json
import logging
import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_PROJECT_FILE = "UnrealDoc.toml"
SITE_URL_ENV = "UNREAL_DOC_MDBOOK_SITE_URL"


class ConfigValidationError(RuntimeError):
    """Raised when a project file is missing or malformed."""


class Backend(str, enum.Enum):
    """Renderer the resolved document is handed to."""

    JSON = "json"
    MDBOOK = "mdbook"

    @classmethod
    def parse(cls, raw: Any) -> "Backend":
        text = str(raw).strip().lower()
        for backend in cls:
            if backend.value == text:
                return backend
        raise ConfigValidationError(
            f"Unknown backend '{raw}', expected one of: "
            + ", ".join(b.value for b in cls)
        )


@dataclass(frozen=True)
class Settings:
    """Export policy applied while declarations are admitted."""

    show_all: bool = False
    document_protected: bool = False
    document_private: bool = False


@dataclass(frozen=True)
class BackendMdBook:
    """Markdown book renderer options."""

    title: str = "Documentation"
    authors: list[str] = field(default_factory=list)
    language: str = "en"
    multilingual: bool = False
    build: bool = False
    cleanup: bool = False
    header: Path | None = None
    footer: Path | None = None
    assets: Path | None = None
    site_url: str | None = None


@dataclass(frozen=True)
class ProjectConfig:
    """Top-level project payload with paths resolved."""

    input_dirs: list[Path]
    output_dir: Path
    backend: Backend = Backend.JSON
    settings: Settings = field(default_factory=Settings)
    dependencies: list[Path] = field(default_factory=list)
    backend_mdbook: BackendMdBook | None = None


def _expect_dict(payload: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ConfigValidationError(f"{ctx} must be an object")
    return payload


def _expect_list(payload: Any, ctx: str) -> list[Any]:
    if not isinstance(payload, list):
        raise ConfigValidationError(f"{ctx} must be a list")
    return payload


def _load_project_payload(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigValidationError(f"Input config file not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            payload = json.loads(text)
        elif suffix in {".yaml", ".yml"}:
            payload = yaml.safe_load(text)
        else:
            payload = tomllib.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as exc:
        raise ConfigValidationError(
            f"Could not parse config file {path}: {exc}"
        ) from exc
    return _expect_dict(payload, f"config file {path}")


def _resolve(base_dir: Path, raw: Any) -> Path:
    path = Path(str(raw))
    return path if path.is_absolute() else base_dir / path


def _optional_path(base_dir: Path, raw: Any) -> Path | None:
    if raw is None or str(raw).strip() == "":
        return None
    return _resolve(base_dir, raw)


def parse_settings(payload: dict[str, Any]) -> Settings:
    """Build export settings from a ``settings`` table."""
    return Settings(
        show_all=bool(payload.get("show_all", False)),
        document_protected=bool(payload.get("document_protected", False)),
        document_private=bool(payload.get("document_private", False)),
    )


def parse_backend_mdbook(payload: dict[str, Any], base_dir: Path) -> BackendMdBook:
    """Build markdown book options from a ``backend_mdbook`` table."""
    authors = [str(a) for a in _expect_list(payload.get("authors", []), "backend_mdbook.authors")]
    site_url = payload.get("site_url")
    return BackendMdBook(
        title=str(payload.get("title", "Documentation")),
        authors=authors,
        language=str(payload.get("language", "en")),
        multilingual=bool(payload.get("multilingual", False)),
        build=bool(payload.get("build", False)),
        cleanup=bool(payload.get("cleanup", False)),
        header=_optional_path(base_dir, payload.get("header")),
        footer=_optional_path(base_dir, payload.get("footer")),
        assets=_optional_path(base_dir, payload.get("assets")),
        site_url=str(site_url) if site_url is not None else None,
    )


def load_project_config(
    path: str | os.PathLike[str],
    output_dir: str | os.PathLike[str] | None = None,
    _visited: frozenset[Path] = frozenset(),
) -> ProjectConfig:
    """Load a project file and resolve its paths.

    Relative paths are resolved against the directory holding the project
    file. ``output_dir`` overrides the configured output directory. Input
    directories of every dependency project are appended after this
    project's own, recursively.

    Raises:
        ConfigValidationError: If the file is missing, unreadable, malformed,
            or a dependency cycle is found.
    """
    config_path = Path(path)
    key = config_path.resolve()
    if key in _visited:
        raise ConfigValidationError(f"Dependency cycle through config file: {config_path}")

    payload = _load_project_payload(config_path)
    base_dir = config_path.parent

    input_dirs = [
        _resolve(base_dir, p)
        for p in _expect_list(payload.get("input_dirs", []), "input_dirs")
    ]

    if output_dir is not None:
        resolved_output = _resolve(base_dir, output_dir)
    elif payload.get("output_dir") is not None:
        resolved_output = _resolve(base_dir, payload["output_dir"])
    else:
        raise ConfigValidationError(f"output_dir is required in {config_path}")

    dependencies = [
        _resolve(base_dir, p)
        for p in _expect_list(payload.get("dependencies", []), "dependencies")
    ]
    for dependency in dependencies:
        logger.debug("Loading dependency project %s", dependency)
        inherited = load_project_config(
            dependency,
            output_dir=resolved_output,
            _visited=_visited | {key},
        )
        input_dirs.extend(inherited.input_dirs)

    mdbook_payload = payload.get("backend_mdbook")
    backend_mdbook = (
        parse_backend_mdbook(_expect_dict(mdbook_payload, "backend_mdbook"), base_dir)
        if mdbook_payload is not None
        else None
    )

    return ProjectConfig(
        input_dirs=input_dirs,
        output_dir=resolved_output,
        backend=Backend.parse(payload.get("backend", Backend.JSON.value)),
        settings=parse_settings(_expect_dict(payload.get("settings", {}), "settings")),
        dependencies=dependencies,
        backend_mdbook=backend_mdbook,
    )


def apply_environment_overrides(config: ProjectConfig) -> ProjectConfig:
    """Apply ``UNREAL_DOC_MDBOOK_SITE_URL`` to the markdown book options."""
    site_url = os.getenv(SITE_URL_ENV)
    if site_url is None or config.backend_mdbook is None:
        return config
    logger.info("Using site url from %s", SITE_URL_ENV)
    return replace(
        config,
        backend_mdbook=replace(config.backend_mdbook, site_url=site_url),
    )
