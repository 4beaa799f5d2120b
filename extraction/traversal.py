"""
Element classification and declaration building.

Walks the items produced by the structure grammar, labels every statement
head with the declaration grammar and builds typed records from the labeled
fragments. Snippet and proxy directives are registered on the document by a
separate walk, independent of the container they appear in.
"""

import logging
import re
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from lark import Token, Tree

from core.project_config import Settings
from extraction.config import (
    DIRECTIVE_MARKER,
    DOC_COMMENT_MARKER,
    STRUCT_CLASS_RULES,
    TRANSPARENT_SCOPE_KEYWORDS,
)
from extraction.models import (
    Argument,
    Attribute,
    Document,
    Element,
    ElementKind,
    Enum,
    Function,
    Property,
    PropertyArray,
    Proxy,
    Specifiers,
    StructClass,
    StructClassMode,
    Visibility,
)
from extraction.parser import (
    child_tree,
    child_trees,
    first_token,
    node_text,
    parse_declaration,
    parse_element_source,
    parse_enum_body,
)

logger = logging.getLogger(__name__)

_DIRECTIVE_TAGS_RE = re.compile(r"\[\s*(?:proxy|inject)\s*:(?P<tags>[^\]]*)\]")
_SNIPPET_ID_RE = re.compile(r"\[\s*snippet\s*:\s*(?P<id>[^\]]*?)\s*\]")
_TAG_SEPARATOR_RE = re.compile(r"[\s,]+")
_SPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Comments and directives
# ---------------------------------------------------------------------------


def parse_doc_comments(text: str) -> str:
    """Reduce a run of ``///`` lines to one text block.

    The text after the marker is trimmed on every line; lines without a
    marker (blank lines inside the run) become empty lines.

    Example:
        >>> parse_doc_comments("/// Hello\\n///\\n///   World")
        'Hello\\n\\nWorld'
    """
    lines = []
    for line in text.splitlines():
        index = line.find(DOC_COMMENT_MARKER)
        lines.append(line[index + len(DOC_COMMENT_MARKER):].strip() if index >= 0 else "")
    return "\n".join(lines)


def dedent_snippet(content: str) -> str:
    """Strip the common leading whitespace of every line of a snippet.

    The indentation level is the minimum leading-whitespace count over all
    lines, computed once and sliced off each line.
    """
    lines = content.splitlines()
    level = min((len(line) - len(line.lstrip()) for line in lines), default=0)
    return "\n".join(line[level:] for line in lines)


def parse_tags(text: str) -> Set[str]:
    """Extract the tag set of a ``[proxy: ...]`` or ``[inject: ...]`` directive."""
    match = _DIRECTIVE_TAGS_RE.search(text)
    if match is None:
        return set()
    return {tag for tag in _TAG_SEPARATOR_RE.split(match.group("tags")) if tag}


def _directive_body(text: str) -> List[str]:
    """Return the lines between the opening and closing directive markers."""
    lines = text.splitlines()
    return lines[1:-1] if len(lines) >= 2 else []


def parse_snippet(text: str) -> Tuple[str, str]:
    """Split snippet directive text into its id and dedented content."""
    lines = text.splitlines()
    match = _SNIPPET_ID_RE.search(lines[0]) if lines else None
    snippet_id = match.group("id") if match is not None else ""
    return snippet_id, dedent_snippet("\n".join(_directive_body(text)))


def parse_proxy_content(text: str) -> str:
    """Collect the declaration lines of a proxy directive, markers stripped."""
    content = []
    for line in _directive_body(text):
        stripped = line.strip()
        if stripped.startswith(DIRECTIVE_MARKER):
            content.append(stripped[len(DIRECTIVE_MARKER):])
    return "\n".join(content)


def iter_items(items: Iterable) -> Iterator[Tuple[Tree, Optional[str]]]:
    """Yield ``(item, doc_comments)`` for every non-comment structure item.

    ``doc_comments`` is the normalized doc comment run directly preceding
    the item, or None. A run is consumed by the item that follows it.
    """
    doc_comments = None
    for item in items:
        if not isinstance(item, Tree):
            continue
        if item.data == "doc_comment_lines":
            doc_comments = parse_doc_comments(str(item.children[0]))
            continue
        yield item, doc_comments
        doc_comments = None


# ---------------------------------------------------------------------------
# Declaration builders
# ---------------------------------------------------------------------------


def parse_identifier(node: Optional[Tree]) -> str:
    if node is None:
        return ""
    token = first_token(node)
    return str(token) if token is not None else ""


def _parse_attribute(node: Tree, source: str) -> Optional[Attribute]:
    if node.data == "specifier_single":
        return Attribute.single(str(node.children[0]))
    if node.data == "specifier_pair":
        value = child_tree(node, "specifier_value")
        return Attribute.pair(str(node.children[0]), node_text(value, source).strip())
    return None


def parse_specifiers(node: Tree, source: str) -> Specifiers:
    """Build specifiers from a ``UENUM(...)``-style macro node.

    Entries of a ``meta = (...)`` sub-block go to ``meta``; everything else
    goes to ``attributes``.
    """
    result = Specifiers()
    block = child_tree(node, "specifiers")
    if block is None:
        return result
    for entry in child_trees(block):
        if entry.data == "specifier_meta":
            for meta_entry in child_trees(entry):
                attribute = _parse_attribute(meta_entry, source)
                if attribute is not None:
                    result.meta.append(attribute)
        else:
            attribute = _parse_attribute(entry, source)
            if attribute is not None:
                result.attributes.append(attribute)
    return result


def parse_enum_variants(body_source: str) -> List[str]:
    """Return enum variant names in source order."""
    tree = parse_enum_body(body_source)
    if tree is None:
        logger.warning("Could not read enum variants from: %s", _SPACE_RE.sub(" ", body_source)[:80])
        return []
    return [
        parse_identifier(child_tree(variant, "identifier"))
        for variant in child_trees(tree)
        if variant.data == "enum_variant"
    ]


def parse_element_enum(
    node: Tree,
    head_source: str,
    body_source: str,
    doc_comments: Optional[str],
) -> Enum:
    result = Enum(doc_comments=doc_comments)
    for child in child_trees(node):
        if child.data == "uenum":
            result.specifiers = parse_specifiers(child, head_source)
        elif child.data == "enum_signature":
            result.name = parse_identifier(child_tree(child, "identifier"))
    result.variants = parse_enum_variants(body_source)
    return result


def parse_inheritances(
    node: Tree,
    source: str,
    default_visibility: Visibility,
) -> List[Tuple[Visibility, str]]:
    """Return ``(visibility, base)`` pairs in declaration order."""
    result = []
    for inheritance in child_trees(node):
        visibility = default_visibility
        keyword = child_tree(inheritance, "visibility")
        if keyword is not None:
            visibility = Visibility.from_keyword(str(keyword.children[0])) or default_visibility
        base = node_text(child_tree(inheritance, "value_type"), source).strip()
        result.append((visibility, base))
    return result


def parse_struct_class_signature(node: Tree, source: str, result: StructClass) -> None:
    for child in child_trees(node):
        if child.data == "template_declaration":
            result.template = node_text(child, source).strip()
        elif child.data == "api":
            result.api = str(child.children[0])
        elif child.data == "identifier":
            result.name = parse_identifier(child)
        elif child.data == "inheritances":
            result.inherits = parse_inheritances(child, source, result.mode.default_visibility())


def parse_struct_class_body(
    items: Iterable,
    result: StructClass,
    source: str,
    settings: Settings,
) -> None:
    """Fill properties, methods and inject tags from a struct/class body.

    The current visibility starts at the mode's default and changes at each
    access label. Members are kept only when exportable on their own.
    """
    visibility = result.mode.default_visibility()
    for item, doc_comments in iter_items(items):
        if item.data == "visibility":
            visibility = Visibility.from_keyword(str(item.children[0])) or visibility
        elif item.data == "inject":
            result.injects.update(parse_tags(str(item.children[0])))
        elif item.data == "statement":
            element = parse_element(item, visibility, source, settings, doc_comments)
            if element.kind is ElementKind.PROPERTY:
                if element.item.can_export(settings):
                    result.properties.append(element.item)
            elif element.kind is ElementKind.FUNCTION:
                if element.item.can_export(settings):
                    result.methods.append(element.item)


def parse_element_struct_class(
    node: Tree,
    head_source: str,
    block: Tree,
    source: str,
    settings: Settings,
    doc_comments: Optional[str],
) -> StructClass:
    mode = StructClassMode.STRUCT if node.data == STRUCT_CLASS_RULES[0] else StructClassMode.CLASS
    result = StructClass(mode=mode, doc_comments=doc_comments)
    for child in child_trees(node):
        if child.data in ("ustruct", "uclass"):
            result.specifiers = parse_specifiers(child, head_source)
        elif child.data in ("struct_signature", "class_signature"):
            parse_struct_class_signature(child, head_source, result)
    parse_struct_class_body(block.children, result, source, settings)
    return result


def _parse_declaration_specifiers(node: Optional[Tree]) -> Tuple[bool, bool]:
    """Return ``(is_static, is_virtual)`` for a declaration specifier list."""
    if node is None:
        return False, False
    kinds = {child.data for child in child_trees(node)}
    return "staticness" in kinds, "virtualness" in kinds


def parse_property_signature(node: Tree, source: str, result: Property) -> None:
    for child in child_trees(node):
        if child.data == "declaration_specifiers":
            result.is_static, _ = _parse_declaration_specifiers(child)
        elif child.data == "value_type":
            result.value_type = node_text(child, source).strip()
        elif child.data == "declarator_name":
            result.name = str(child.children[0])
        elif child.data == "property_array":
            size = child_tree(child, "array_size")
            result.array = (
                PropertyArray.sized(node_text(size, source).strip())
                if size is not None
                else PropertyArray.unsized()
            )
        elif child.data == "default_value":
            result.default_value = node_text(child, source).strip()


def parse_element_property(
    node: Tree,
    head_source: str,
    visibility: Visibility,
    doc_comments: Optional[str],
    initializer: Optional[str] = None,
) -> Property:
    """Build a property; ``initializer`` is the text of a braced initializer."""
    result = Property(visibility=visibility, doc_comments=doc_comments)
    for child in child_trees(node):
        if child.data == "uproperty":
            result.specifiers = parse_specifiers(child, head_source)
        elif child.data == "property_signature":
            parse_property_signature(child, head_source, result)
    if result.default_value is None and initializer is not None:
        result.default_value = initializer.strip()
    return result


def parse_function_argument(node: Tree, source: str) -> Argument:
    result = Argument()
    for child in child_trees(node):
        if child.data == "doc_comment_lines":
            result.doc_comments = parse_doc_comments(str(child.children[0]))
        elif child.data == "value_type":
            result.value_type = node_text(child, source).strip()
        elif child.data == "argument_name":
            result.name = str(child.children[0])
        elif child.data == "default_value":
            result.default_value = node_text(child, source).strip()
    return result


def parse_function_signature(node: Tree, source: str, result: Function) -> None:
    for child in child_trees(node):
        if child.data == "template_declaration":
            result.template = node_text(child, source).strip()
        elif child.data == "declaration_specifiers":
            result.is_static, result.is_virtual = _parse_declaration_specifiers(child)
        elif child.data == "value_type":
            result.return_type = node_text(child, source).strip()
        elif child.data == "function_name":
            result.name = _SPACE_RE.sub(" ", str(child.children[0]).strip())
        elif child.data == "function_arguments":
            result.arguments = [
                parse_function_argument(argument, source)
                for argument in child_trees(child)
            ]
        elif child.data == "constness":
            result.is_const_this = True
        elif child.data == "overrideness":
            result.is_override = True


def parse_element_function(
    node: Tree,
    head_source: str,
    visibility: Visibility,
    doc_comments: Optional[str],
) -> Function:
    result = Function(visibility=visibility, doc_comments=doc_comments)
    for child in child_trees(node):
        if child.data == "ufunction":
            result.specifiers = parse_specifiers(child, head_source)
        elif child.data == "function_signature":
            parse_function_signature(child, head_source, result)
    return result


# ---------------------------------------------------------------------------
# Element classification
# ---------------------------------------------------------------------------


def is_transparent_scope(statement: Tree) -> bool:
    """True for ``namespace X { ... }`` and ``extern "C" { ... }`` statements."""
    head = child_tree(statement, "head")
    if head is None or child_tree(statement, "block") is None:
        return False
    token = first_token(head)
    return token is not None and str(token) in TRANSPARENT_SCOPE_KEYWORDS


def parse_element(
    statement: Tree,
    visibility: Visibility,
    source: str,
    settings: Settings,
    doc_comments: Optional[str] = None,
) -> Element:
    """Classify one statement into an Element.

    Args:
        statement: A ``statement`` or ``tail`` node of the structure grammar.
        visibility: Visibility active where the statement appears.
        source: Text the structure tree was parsed from.
        settings: Export settings, used to filter members of nested bodies.
        doc_comments: Doc comment run preceding the statement, if any.

    Returns:
        The classified element; ``Element.none()`` for anything that is not a
        recognized declaration, including enum and struct/class forward
        declarations.
    """
    head = child_tree(statement, "head")
    if head is None:
        return Element.none()
    head_source = node_text(head, source)
    declaration = parse_declaration(head_source)
    if declaration is None:
        return Element.none()

    block = child_tree(statement, "block")
    node = declaration.children[0]

    if node.data == "element_enum":
        if block is None:
            return Element.none()
        return Element.from_enum(
            parse_element_enum(node, head_source, node_text(block, source), doc_comments)
        )
    if node.data in STRUCT_CLASS_RULES:
        if block is None:
            return Element.none()
        return Element.from_struct_class(
            parse_element_struct_class(node, head_source, block, source, settings, doc_comments)
        )
    if node.data == "element_property":
        initializer = node_text(block, source) if block is not None else None
        return Element.from_property(
            parse_element_property(node, head_source, visibility, doc_comments, initializer)
        )
    if node.data == "element_function":
        return Element.from_function(
            parse_element_function(node, head_source, visibility, doc_comments)
        )
    return Element.none()


def iter_elements(items: Iterable, source: str, settings: Settings) -> Iterator[Element]:
    """Classify the file-scope statements of ``items`` in source order.

    Items of namespace and ``extern "C"`` blocks are treated as file scope.
    """
    for item, doc_comments in iter_items(items):
        if item.data != "statement":
            continue
        if is_transparent_scope(item):
            yield from iter_elements(child_tree(item, "block").children, source, settings)
            continue
        yield parse_element(item, Visibility.PUBLIC, source, settings, doc_comments)


def extract_elements_from_tree(tree: Tree, source: str, settings: Settings) -> List[Element]:
    """Return every non-empty file-scope element of a parsed header."""
    return [
        element
        for element in iter_elements(tree.children, source, settings)
        if element.kind is not ElementKind.NONE
    ]


# ---------------------------------------------------------------------------
# Proxy and snippet registry
# ---------------------------------------------------------------------------


def register_snippet(item: Tree, document: Document) -> None:
    snippet_id, content = parse_snippet(str(item.children[0]))
    if snippet_id in document.snippets:
        logger.warning("Overwriting existing snippet: %s", snippet_id)
    document.snippets[snippet_id] = content


def register_proxy(
    item: Tree,
    doc_comments: Optional[str],
    settings: Settings,
    document: Document,
) -> None:
    """Re-parse a proxy directive and queue its declaration for injection.

    Proxies without a preceding doc comment run, and proxies whose content is
    neither a function nor a property, are dropped.

    Raises:
        GrammarError: If the proxy content is not a single statement.
    """
    text = str(item.children[0])
    tags = parse_tags(text)
    content = parse_proxy_content(text)
    if doc_comments is None:
        logger.debug("Skipping undocumented proxy for tags %s", sorted(tags))
        return

    tree = parse_element_source(content)
    statement = next(
        (child for child in child_trees(tree) if child.data in ("statement", "tail")),
        None,
    )
    if statement is None:
        return
    element = parse_element(statement, Visibility.PUBLIC, content, settings, doc_comments)
    if element.kind is ElementKind.FUNCTION:
        document.proxy_functions.append(Proxy(tags=tags, item=element.item))
    elif element.kind is ElementKind.PROPERTY:
        document.proxy_properties.append(Proxy(tags=tags, item=element.item))
    else:
        logger.debug("Ignoring proxy content that is not a function or property: %s", content)


def register_directives(items: Iterable, settings: Settings, document: Document) -> None:
    """Register every snippet and proxy found in ``items`` or nested blocks."""
    for item, doc_comments in iter_items(items):
        if item.data == "snippet":
            register_snippet(item, document)
        elif item.data == "proxy":
            register_proxy(item, doc_comments, settings, document)
        elif item.data == "statement":
            block = child_tree(item, "block")
            if block is not None:
                register_directives(block.children, settings, document)
