"""
Layer 1: Extraction Engine

Lark-based parser for reflection-annotated C++ headers. Extracts enums,
structs, classes, properties and functions with their doc comments,
specifiers, snippets and proxy declarations into one Document.
"""

from extraction.models import (
    Argument,
    Document,
    Element,
    ElementKind,
    Enum,
    Function,
    Property,
    Proxy,
    Specifiers,
    StructClass,
    Visibility,
)
from extraction.parser import GrammarError, parse_declaration, parse_source
from extraction.traversal import extract_elements_from_tree, register_directives
from extraction.extractor import (
    ExtractionStats,
    build_document,
    discover_input_files,
    document_header,
    extract_directory,
    extract_file,
)
from extraction.resolution import resolve_document

__all__ = [
    # Data models
    "Argument",
    "Document",
    "Element",
    "ElementKind",
    "Enum",
    "Function",
    "Property",
    "Proxy",
    "Specifiers",
    "StructClass",
    "Visibility",
    "ExtractionStats",
    # Low-level parsing
    "GrammarError",
    "parse_source",
    "parse_declaration",
    # Mid-level extraction
    "extract_elements_from_tree",
    "register_directives",
    # High-level orchestration
    "document_header",
    "extract_file",
    "extract_directory",
    "discover_input_files",
    "build_document",
    "resolve_document",
]
