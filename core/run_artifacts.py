"""Run report helpers for documentation runs."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Mapping


def build_run_report(
    document_counts: Mapping[str, int],
    extraction_stats: Mapping[str, int],
    backend: str,
    output_dir: str,
    duration_seconds: float,
) -> dict[str, Any]:
    """Assemble the JSON-serializable summary of one run."""
    return {
        "backend": backend,
        "output_dir": output_dir,
        "duration_seconds": round(duration_seconds, 3),
        "document": dict(document_counts),
        "extraction": dict(extraction_stats),
    }


def write_run_report(
    report: dict[str, Any],
    run_id: str,
    output_dir: str = "output/run_reports",
) -> str:
    """Write a JSON run report named after ``run_id`` and return its path."""
    os.makedirs(output_dir, exist_ok=True)
    payload = dict(report)
    payload.setdefault("run_id", run_id)
    payload.setdefault("timestamp_utc", datetime.now(timezone.utc).isoformat())
    path = os.path.join(output_dir, f"run_{run_id}.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    return path
