"""
JSON renderer for the resolved document.
"""

import json
import logging
import os

from core.project_config import ProjectConfig
from extraction.models import Document

logger = logging.getLogger(__name__)

JSON_OUTPUT_FILE = "documentation.json"


def bake_json(document: Document, config: ProjectConfig) -> str:
    """Write ``documentation.json`` into the configured output directory.

    Returns:
        Path of the written file.
    """
    output_dir = str(config.output_dir)
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, JSON_OUTPUT_FILE)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"Wrote JSON documentation to {path}")
    return path
