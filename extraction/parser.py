"""
Lark parser initialization and parsing utilities.

Two LALR grammars live in ``extraction/grammar``:

- ``structure.lark`` splits a header into items (doc comment runs, inline
  directives, visibility labels, statements and nested blocks). Text it
  rejects raises :class:`GrammarError`.
- ``declaration.lark`` labels the head of one statement (enum, struct,
  class, property, function). Heads it rejects are simply not declarations,
  so :func:`parse_declaration` returns None for them.
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

logger = logging.getLogger(__name__)

GRAMMAR_DIR = Path(__file__).with_name("grammar")
STRUCTURE_GRAMMAR_PATH = GRAMMAR_DIR / "structure.lark"
DECLARATION_GRAMMAR_PATH = GRAMMAR_DIR / "declaration.lark"

# Tokens after which an identifier names the declared entity rather than
# continuing its type
_TYPE_ENDINGS = frozenset({"IDENT", "_STAR", "_AMP", "_AMP2", "_MORE", "_ELLIPSIS"})
_NAME_FOLLOWERS = frozenset({"_LSQB", "_EQUAL", "_COMMA", "_RPAR", "_COLON"})
_ELABORATED_KEYWORDS = frozenset({"CLASS", "STRUCT"})
_ELABORATED_FOLLOWERS = frozenset({"_STAR", "_AMP", "_AMP2", "_MORE", "_COMMA", "_RPAR"})


class GrammarError(ValueError):
    """Raised when header text does not match the structure grammar."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.path = path
        self.line = line
        self.column = column
        location = path or "<text>"
        if line is not None and line > 0:
            location += f":{line}:{column}"
        super().__init__(f"Could not parse header content at {location}\n{message}")


class DeclarationPostLex:
    """Retag identifiers so the declaration grammar can split types from names.

    An identifier becomes NAME when it is followed by ``(``, or when it
    follows a type-ending token and is followed by a declarator terminator
    (``[ = , ) :`` or the end of the head). ``class X*``-style elaborated
    type specifiers are demoted to plain identifiers first.
    """

    always_accept = ()

    def process(self, stream: Iterable[Token]) -> Iterator[Token]:
        tokens = list(stream)
        types = [token.type for token in tokens]

        for i, type_ in enumerate(types[:-2]):
            if (
                type_ in _ELABORATED_KEYWORDS
                and types[i + 1] == "IDENT"
                and types[i + 2] in _ELABORATED_FOLLOWERS
            ):
                types[i] = "IDENT"

        for i, token in enumerate(tokens):
            type_ = types[i]
            if type_ == "IDENT":
                following = types[i + 1] if i + 1 < len(types) else None
                previous = types[i - 1] if i > 0 else None
                if following == "_LPAR" or (
                    (following is None or following in _NAME_FOLLOWERS)
                    and previous in _TYPE_ENDINGS
                ):
                    type_ = "NAME"
            if type_ != token.type:
                token = Token.new_borrow_pos(type_, token.value, token)
            yield token


def create_structure_parser() -> Lark:
    """Create the parser for whole header files and proxy content.

    Example:
        >>> parser = create_structure_parser()
        >>> parser.parse("struct A { int B; };", start="file").data
        'file'
    """
    parser = Lark(
        STRUCTURE_GRAMMAR_PATH.read_text(encoding="utf-8"),
        parser="lalr",
        lexer="basic",
        start=["file", "element"],
        propagate_positions=True,
        maybe_placeholders=False,
    )
    logger.debug("Created structure grammar parser")
    return parser


def create_declaration_parser() -> Lark:
    """Create the parser for statement heads and enum bodies."""
    parser = Lark(
        DECLARATION_GRAMMAR_PATH.read_text(encoding="utf-8"),
        parser="lalr",
        lexer="basic",
        start=["declaration", "enum_body"],
        propagate_positions=True,
        maybe_placeholders=False,
        postlex=DeclarationPostLex(),
    )
    logger.debug("Created declaration grammar parser")
    return parser


# Module-level parsers, grammars are compiled once per process
STRUCTURE_PARSER = create_structure_parser()
DECLARATION_PARSER = create_declaration_parser()


def parse_source(source: str, path: Optional[str] = None) -> Tree:
    """Parse the text of a header file into a ``file`` tree.

    Args:
        source: Header text, BOM already stripped.
        path: File path used in error messages.

    Returns:
        The ``file`` tree; its children are the top-level items.

    Raises:
        GrammarError: If the text is not structurally valid (e.g. unbalanced
            braces or an unterminated directive).
    """
    try:
        tree = STRUCTURE_PARSER.parse(source, start="file")
    except UnexpectedInput as exc:
        raise GrammarError(str(exc), path, exc.line, exc.column) from exc
    logger.debug("Parsed %d characters of %s", len(source), path or "<text>")
    return tree


def parse_element_source(source: str) -> Tree:
    """Parse a single declaration, as found inside a proxy directive.

    Raises:
        GrammarError: If the text is not one optionally documented statement.
    """
    try:
        return STRUCTURE_PARSER.parse(source, start="element")
    except UnexpectedInput as exc:
        raise GrammarError(str(exc), "<proxy>", exc.line, exc.column) from exc


def parse_declaration(head_source: str) -> Optional[Tree]:
    """Label a statement head with the declaration grammar.

    Returns:
        The ``declaration`` tree, or None when the head is not a recognized
        declaration.
    """
    try:
        return DECLARATION_PARSER.parse(head_source, start="declaration")
    except UnexpectedInput as exc:
        logger.debug("Not a declaration: %r (%s)", head_source[:80], exc.__class__.__name__)
        return None


def parse_enum_body(body_source: str) -> Optional[Tree]:
    """Parse the braced variant list of an enum, or return None."""
    try:
        return DECLARATION_PARSER.parse(body_source, start="enum_body")
    except UnexpectedInput as exc:
        logger.debug("Unrecognized enum body (%s)", exc.__class__.__name__)
        return None


def node_text(node, source: str) -> str:
    """Return the exact source slice covered by a tree or token."""
    if isinstance(node, Token):
        return source[node.start_pos:node.end_pos]
    if node.meta.empty:
        return ""
    return source[node.meta.start_pos:node.meta.end_pos]


def child_tree(node: Tree, data: str) -> Optional[Tree]:
    """Return the first direct subtree labeled ``data``."""
    for child in node.children:
        if isinstance(child, Tree) and child.data == data:
            return child
    return None


def child_trees(node: Tree) -> List[Tree]:
    """Return the direct subtrees of ``node``, skipping tokens."""
    return [child for child in node.children if isinstance(child, Tree)]


def first_token(node: Tree) -> Optional[Token]:
    """Return the first token below ``node`` in source order."""
    for child in node.children:
        if isinstance(child, Token):
            return child
        found = first_token(child)
        if found is not None:
            return found
    return None
