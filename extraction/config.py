"""
Configuration constants for header documentation extraction.

Defines input file filters, comment markers and the grammar rule names the
classifier dispatches on.
"""

from typing import FrozenSet, Set, Tuple

# Header files parsed for declarations
HEADER_EXTENSIONS: Set[str] = {
    ".h",
}

# Book pages are loaded verbatim into the document
BOOK_PAGE_EXTENSIONS: Set[str] = {
    ".md",
}
BOOK_INDEX_FILE: str = "index.txt"

# Directories never descended into while discovering inputs
SKIPPED_DIRECTORIES: Set[str] = {
    "__pycache__",
    "node_modules",
    "Binaries",
    "Intermediate",
    "Saved",
}

# Placeholder replaced with the owning type name in doc comments
SELF_NAME_PLACEHOLDER: str = "$Self$"

# Byte order mark stripped from the beginning of input files
UTF8_BOM: str = "\ufeff"

# Comment markers
DOC_COMMENT_MARKER: str = "///"
DIRECTIVE_MARKER: str = "////"

# Statement heads whose block items belong to the enclosing scope
TRANSPARENT_SCOPE_KEYWORDS: FrozenSet[str] = frozenset({
    "namespace",
    "extern",
})

# Declaration grammar rules mapped to struct/class modes
STRUCT_CLASS_RULES: Tuple[str, ...] = (
    "element_struct",
    "element_class",
)
