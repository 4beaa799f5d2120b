#!/usr/bin/env python3
"""
Top-level pipeline orchestrator for header documentation.

Loads a project file, extracts every header and book page of its input
directories into one document, resolves proxies, self names and ordering,
then hands the document to the configured renderer.

Usage:
    python run_pipeline.py
    python run_pipeline.py -i Plugins/MyPlugin/UnrealDoc.toml
    python run_pipeline.py -i UnrealDoc.toml -o docs --run-report-dir output/run_reports
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.project_config import (
    DEFAULT_PROJECT_FILE,
    Backend,
    ConfigValidationError,
    ProjectConfig,
    apply_environment_overrides,
    load_project_config,
)
from core.run_artifacts import build_run_report, write_run_report
from core.structured_logging import configure_structured_logging, phase_scope, set_run_id
from extraction.extractor import build_document
from extraction.models import Document
from extraction.parser import GrammarError
from extraction.resolution import resolve_document

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Reflection-annotated C++ header documentation generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python run_pipeline.py -i UnrealDoc.toml\n"
            "  python run_pipeline.py -i UnrealDoc.toml -o docs\n"
        )
    )

    parser.add_argument(
        "-i", "--input",
        default=f"./{DEFAULT_PROJECT_FILE}",
        help=f"Path to the project config file. Default: ./{DEFAULT_PROJECT_FILE}"
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output directory, overrides output_dir of the project file."
    )
    parser.add_argument(
        "--run-report-dir",
        default=None,
        help="If set, write a JSON run report into this directory."
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        default=False,
        help="Log headers that cannot be parsed and keep going."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging."
    )

    return parser.parse_args(argv)


def render(document: Document, config: ProjectConfig, root: Path) -> None:
    """Dispatch the resolved document to the configured backend."""
    if config.backend is Backend.JSON:
        from rendering.json_backend import bake_json

        bake_json(document, config)
    elif config.backend is Backend.MDBOOK:
        from rendering.mdbook import bake_mdbook

        bake_mdbook(document, config, root)


def run(args: argparse.Namespace) -> Dict[str, Any]:
    """Run extraction, resolution and rendering for one project file.

    Returns:
        The run report.

    Raises:
        ConfigValidationError: If the project file is missing or malformed.
        GrammarError: If a header cannot be parsed.
        FileNotFoundError: If an input directory does not exist.
    """
    config_path = Path(args.input)
    config = apply_environment_overrides(load_project_config(config_path, args.output))

    logger.info(f"Project file     : {config_path.resolve()}")
    logger.info(f"Input dirs       : {', '.join(str(d) for d in config.input_dirs)}")
    logger.info(f"Output dir       : {config.output_dir}")
    logger.info(f"Backend          : {config.backend.value}")

    t0 = time.time()
    with phase_scope("extract"):
        document, stats = build_document(
            config.input_dirs, config.settings, continue_on_error=args.continue_on_error
        )

    with phase_scope("resolve"):
        resolve_document(document)
        logger.info("Resolved document: %s", document.counts())

    with phase_scope("render"):
        render(document, config, config_path.parent)

    return build_run_report(
        document_counts=document.counts(),
        extraction_stats=stats.to_dict(),
        backend=config.backend.value,
        output_dir=str(config.output_dir),
        duration_seconds=time.time() - t0,
    )


def _write_report(report: Dict[str, Any], run_id: str, report_dir: Optional[str]) -> None:
    if report_dir is None:
        return
    report_path = write_run_report(report, run_id, report_dir)
    logger.info("Run report written: %s", report_path)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the pipeline."""
    args = parse_args(argv)
    configure_structured_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    run_id = set_run_id()

    logger.info("Run ID: %s", run_id)
    report: Dict[str, Any] = {"status": "failed"}

    try:
        report = run(args)
        report["status"] = "success"
        logger.info("Documentation finished in %.2fs", report["duration_seconds"])
        _write_report(report, run_id, args.run_report_dir)

    except ConfigValidationError as e:
        logger.error(f"Config error: {e}")
        report["error"] = str(e)
        _write_report(report, run_id, args.run_report_dir)
        sys.exit(1)
    except GrammarError as e:
        logger.error(f"Parse error: {e}")
        report["error"] = str(e)
        _write_report(report, run_id, args.run_report_dir)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error(f"File error: {e}")
        report["error"] = str(e)
        _write_report(report, run_id, args.run_report_dir)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        report["error"] = str(e)
        _write_report(report, run_id, args.run_report_dir)
        sys.exit(1)


if __name__ == "__main__":
    main()
