"""
High-level orchestrator for document extraction.

This module provides the entry points that read headers and book pages from
input directories and fold them into one Document.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional, Tuple

from core.project_config import Settings
from core.structured_logging import source_scope
from extraction.config import (
    BOOK_INDEX_FILE,
    BOOK_PAGE_EXTENSIONS,
    HEADER_EXTENSIONS,
    SKIPPED_DIRECTORIES,
    UTF8_BOM,
)
from extraction.models import Document, Element, ElementKind, StructClassMode
from extraction.parser import GrammarError, parse_source
from extraction.traversal import extract_elements_from_tree, register_directives

logger = logging.getLogger(__name__)


class ExtractionStats:
    """Statistics for an extraction operation."""

    def __init__(self):
        self.headers_processed = 0
        self.headers_failed = 0
        self.pages_loaded = 0
        self.elements_admitted = 0
        self.overwrites = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert stats to dictionary."""
        return {
            "headers_processed": self.headers_processed,
            "headers_failed": self.headers_failed,
            "pages_loaded": self.pages_loaded,
            "elements_admitted": self.elements_admitted,
            "overwrites": self.overwrites,
        }

    def __str__(self) -> str:
        return (
            f"ExtractionStats(headers={self.headers_processed}, "
            f"failed={self.headers_failed}, pages={self.pages_loaded}, "
            f"elements={self.elements_admitted}, overwrites={self.overwrites})"
        )


def read_source(file_path: str) -> str:
    """Read a UTF-8 input file, dropping a leading byte order mark.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        logger.error(f"File not found: {file_path}")
        raise
    if content.startswith(UTF8_BOM):
        content = content[len(UTF8_BOM):]
    return content


def _admit(items: List, item, label: str, stats: Optional[ExtractionStats]) -> None:
    """Append ``item``, replacing any same-named entry already present."""
    duplicates = [existing for existing in items if existing.name == item.name]
    if duplicates:
        logger.warning("Overwriting existing %s: %s", label, item.name)
        items[:] = [existing for existing in items if existing.name != item.name]
        if stats is not None:
            stats.overwrites += 1
    items.append(item)


def admit_element(
    document: Document,
    element: Element,
    settings: Settings,
    stats: Optional[ExtractionStats] = None,
) -> bool:
    """Insert a file-scope element into the document if it is exportable.

    Properties at file scope are never admitted.

    Returns:
        True if the element was added to the document.
    """
    if element.kind in (ElementKind.NONE, ElementKind.PROPERTY):
        return False
    item = element.item
    if not item.can_export(settings):
        return False

    if element.kind is ElementKind.ENUM:
        _admit(document.enums, item, "enum", stats)
    elif element.kind is ElementKind.STRUCT_CLASS:
        if item.mode is StructClassMode.STRUCT:
            _admit(document.structs, item, "struct", stats)
        else:
            _admit(document.classes, item, "class", stats)
    elif element.kind is ElementKind.FUNCTION:
        _admit(document.functions, item, "function", stats)

    if stats is not None:
        stats.elements_admitted += 1
    return True


def document_header(
    source: str,
    document: Document,
    settings: Settings,
    path: Optional[str] = None,
    stats: Optional[ExtractionStats] = None,
) -> int:
    """Parse header text and fold its declarations into ``document``.

    Snippets and proxies are registered first, then every file-scope element
    is admitted in source order.

    Returns:
        Number of admitted elements.

    Raises:
        GrammarError: If the text does not match the structure grammar.
    """
    tree = parse_source(source, path)
    register_directives(tree.children, settings, document)

    admitted = 0
    for element in extract_elements_from_tree(tree, source, settings):
        if admit_element(document, element, settings, stats):
            admitted += 1
    return admitted


def extract_file(
    file_path: str,
    document: Document,
    settings: Settings,
    stats: Optional[ExtractionStats] = None,
) -> int:
    """Extract all declarations of a single header file.

    Returns:
        Number of admitted elements.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a header.
        GrammarError: If the header cannot be parsed.
    """
    ext = os.path.splitext(file_path)[1]
    if ext not in HEADER_EXTENSIONS:
        raise ValueError(
            f"File {file_path} is not a header file. "
            f"Expected one of: {HEADER_EXTENSIONS}"
        )

    with source_scope(os.path.basename(file_path)):
        source = read_source(file_path)
        admitted = document_header(source, document, settings, file_path, stats)
    logger.debug("Admitted %d elements from %s", admitted, file_path)
    return admitted


def is_book_page(file_name: str) -> bool:
    return (
        os.path.splitext(file_name)[1] in BOOK_PAGE_EXTENSIONS
        or file_name == BOOK_INDEX_FILE
    )


def page_key(file_path: str, root: str) -> str:
    """Key of a book page: its ``/``-separated path relative to ``root``."""
    return os.path.relpath(file_path, root).replace(os.sep, "/").replace("\\", "/")


def discover_input_files(directory: str) -> Tuple[List[str], List[str]]:
    """Recursively discover headers and book pages in lexicographic order.

    Returns:
        A tuple of (header paths, page paths).

    Example:
        >>> headers, pages = discover_input_files("Source/MyPlugin")
    """
    headers = []
    pages = []
    directory = os.path.abspath(directory)

    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(
            d for d in dirs if not d.startswith(".") and d not in SKIPPED_DIRECTORIES
        )
        for file in sorted(files):
            path = os.path.join(root, file)
            if os.path.splitext(file)[1] in HEADER_EXTENSIONS:
                headers.append(path)
            elif is_book_page(file):
                pages.append(path)

    logger.info(f"Found {len(headers)} headers and {len(pages)} pages in {directory}")
    return sorted(headers), sorted(pages)


def extract_directory(
    directory: str,
    document: Document,
    settings: Settings,
    stats: Optional[ExtractionStats] = None,
    continue_on_error: bool = False,
) -> ExtractionStats:
    """Fold every header and book page under ``directory`` into ``document``.

    Args:
        directory: Root input directory.
        document: Document receiving declarations, pages, snippets and proxies.
        settings: Export settings.
        stats: Statistics to accumulate into; a new object when None.
        continue_on_error: If True, log unparsable headers and move on.
            If False, the first error aborts the run.

    Raises:
        FileNotFoundError: If directory does not exist.
        GrammarError: If a header cannot be parsed and continue_on_error is False.
    """
    directory = os.path.abspath(directory)
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Directory not found: {directory}")

    stats = stats if stats is not None else ExtractionStats()
    headers, pages = discover_input_files(directory)

    for file_path in headers:
        try:
            extract_file(file_path, document, settings, stats)
            stats.headers_processed += 1
        except GrammarError as e:
            logger.error(f"Could not parse header {file_path}: {e}")
            stats.headers_failed += 1
            if not continue_on_error:
                raise

    for file_path in pages:
        document.book[page_key(file_path, directory)] = read_source(file_path)
        stats.pages_loaded += 1

    logger.info(f"Extraction of {directory} complete: {stats}")
    return stats


def build_document(
    input_dirs: Iterable[str],
    settings: Settings,
    continue_on_error: bool = False,
) -> Tuple[Document, ExtractionStats]:
    """Extract every input directory, in order, into a fresh Document.

    The document is returned unresolved; see ``extraction.resolution``.
    """
    document = Document()
    stats = ExtractionStats()
    for directory in input_dirs:
        extract_directory(str(directory), document, settings, stats, continue_on_error)
    return document, stats
