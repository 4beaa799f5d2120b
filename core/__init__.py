"""Core shared contracts and utilities."""

from core.structured_logging import (
    configure_structured_logging,
    get_run_id,
    phase_scope,
    set_run_id,
    source_scope,
)
from core.project_config import (
    Backend,
    BackendMdBook,
    ConfigValidationError,
    ProjectConfig,
    Settings,
    apply_environment_overrides,
    load_project_config,
)
from core.run_artifacts import build_run_report, write_run_report

__all__ = [
    "configure_structured_logging",
    "get_run_id",
    "phase_scope",
    "set_run_id",
    "source_scope",
    "Backend",
    "BackendMdBook",
    "ConfigValidationError",
    "ProjectConfig",
    "Settings",
    "apply_environment_overrides",
    "load_project_config",
    "build_run_report",
    "write_run_report",
]
