"""
Markdown book renderer.

Writes an mdBook project: ``book.toml``, one page per exported declaration,
per-kind listings, the book pages listed by ``index.txt`` files, and
``src/SUMMARY.md``. Every page is preprocessed so that code references and
snippet blocks are resolved against the document.
"""

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import tomlkit

from core.project_config import BackendMdBook, ProjectConfig
from extraction.models import (
    Argument,
    Document,
    Enum,
    Function,
    Property,
    Specifiers,
    StructClass,
    StructClassMode,
)

logger = logging.getLogger(__name__)

CREDIT_FOOTER = "_Documentation built with **`unreal-doc`**_"

_CODE_REFERENCE_RE = re.compile(r"\[`\s*(\w+)\s*:\s*(\w+)\s*(::\s*(\w+))?`\]\s*\(\s*\)")
_SNIPPET_BLOCK_RE = re.compile(r"```\s*snippet[\n\r]+([\s/]*)(\w+)[\r\n]+\s*```")

# (document attribute, reference kind, listing title, page directory)
_REFERENCE_SECTIONS = (
    ("enums", "enum", "Enums", "enums"),
    ("structs", "struct", "Structs", "structs"),
    ("classes", "class", "Classes", "classes"),
    ("functions", "function", "Functions", "functions"),
)


def _find_reference_path(document: Document, kind: str, name: str) -> Optional[str]:
    for attribute, reference_kind, _, directory in _REFERENCE_SECTIONS:
        if reference_kind != kind:
            continue
        if any(item.name == name for item in getattr(document, attribute)):
            return f"/reference/{directory}/{name}.md"
    return None


def replace_code_references(content: str, document: Document) -> str:
    """Turn ``[`kind: Name`]()`` references into links to reference pages.

    References to declarations missing from the document render as bold code.
    """

    def _replace(match: re.Match) -> str:
        kind = match.group(1).strip()
        name = match.group(2).strip()
        section = match.group(4).strip() if match.group(4) else None
        path = _find_reference_path(document, kind, name)
        label = f"{name}::{section}" if section else name
        if path is None:
            return f"**`{label}`**"
        if section:
            return f"[**`{label}`**]({path}#{section.lower()})"
        return f"[**`{label}`**]({path})"

    return _CODE_REFERENCE_RE.sub(_replace, content)


def replace_snippets(content: str, document: Document) -> str:
    """Expand ```` ```snippet ```` blocks into the registered snippet code."""

    def _replace(match: re.Match) -> str:
        prefix = match.group(1)
        name = match.group(2).strip()
        snippet = document.snippets.get(name)
        if snippet is None:
            logger.warning("Trying to inject non-existing snippet: %s", name)
            return f"```\n{prefix}Missing snippet: {name}\n{prefix}```"
        lines = "\n".join(f"{prefix}{line}" for line in snippet.splitlines())
        return f"```cpp\n{lines}\n{prefix}```"

    return _SNIPPET_BLOCK_RE.sub(_replace, content)


def preprocess_content(content: str, document: Document) -> str:
    return replace_snippets(replace_code_references(content, document), document)


def indent(level: int, content: str) -> str:
    if level <= 0:
        return content
    return "\n".join(" " * level + line for line in content.splitlines())


def bake_specifiers(specifiers: Specifiers) -> str:
    parts = ["**_Reflection-enabled_**\n"]
    for title, attributes in (
        ("Specifiers", specifiers.attributes),
        ("Meta Specifiers", specifiers.meta),
    ):
        if not attributes:
            continue
        parts.append(f"\n### {title}:\n")
        for attribute in attributes:
            if attribute.is_pair:
                parts.append(f"- **{attribute.key}** = _{attribute.value}_\n")
            else:
                parts.append(f"- **{attribute.key}**\n")
    parts.append("\n")
    return "".join(parts)


def _bake_details(signature: str, specifiers: Optional[Specifiers], doc_comments: Optional[str]) -> str:
    content = f"```cpp\n{signature}\n```\n\n"
    if specifiers is not None:
        content += "---\n\n" + bake_specifiers(specifiers)
    content += "---\n\n" + (doc_comments or "") + "\n\n"
    return content


def bake_enum(item: Enum) -> str:
    return f"# **Enum: `{item.name}`**\n\n" + _bake_details(
        item.signature(), item.specifiers, item.doc_comments
    )


def bake_argument(item: Argument) -> str:
    if item.name is not None:
        content = f"* ## __`{item.name}`__\n\n"
    else:
        content = "* _Unnamed_\n\n"
    details = f"```cpp\n{item.signature()}\n```\n\n{item.doc_comments or ''}\n\n"
    return content + indent(4, details) + "\n\n"


def bake_property(item: Property, member: bool) -> str:
    if member:
        content, level = f"* # __`{item.name}`__\n\n", 4
    else:
        content, level = f"# **Property: `{item.name}`**\n\n", 0
    details = _bake_details(item.signature(), item.specifiers, item.doc_comments)
    return content + indent(level, details) + "\n\n"


def bake_function(item: Function, member: bool) -> str:
    if member:
        content, level = f"* # __`{item.name}`__\n\n", 4
    else:
        content, level = f"# **Function: `{item.name}`**\n\n", 0

    details = f"```cpp\n{item.signature()}\n```\n\n"
    if member:
        details += "<details>\n\n"
    if item.specifiers is not None:
        details += "---\n\n" + bake_specifiers(item.specifiers)
    details += "---\n\n" + (item.doc_comments or "") + "\n\n"
    if item.arguments:
        details += "---\n\n# **Arguments**\n\n"
        details += "".join(bake_argument(argument) for argument in item.arguments)
        details += "\n\n"
    if member:
        details += "</details>\n\n"
    return content + indent(level, details) + "\n\n"


def bake_struct_class(item: StructClass) -> str:
    title = "Struct" if item.mode is StructClassMode.STRUCT else "Class"
    content = f"# **{title}: `{item.name}`**\n\n"
    content += _bake_details(item.signature(), item.specifiers, item.doc_comments)
    if item.properties:
        content += "---\n\n# **Properties**\n\n"
        content += "".join(bake_property(p, member=True) for p in item.properties)
        content += "\n\n"
    if item.methods:
        content += "---\n\n# **Methods**\n\n"
        content += "".join(bake_function(m, member=True) for m in item.methods)
        content += "\n\n"
    return content


def _bake_item(attribute: str, item) -> str:
    if attribute == "enums":
        return bake_enum(item)
    if attribute == "functions":
        return bake_function(item, member=False)
    return bake_struct_class(item)


def include_book_index(
    directory: Optional[str],
    pages: Dict[str, str],
    output_files: Dict[str, str],
    summary: List[str],
    level: int,
) -> None:
    """Copy the pages listed by ``{directory}/index.txt`` and extend the summary.

    Each index line is ``name`` or ``name: title``; ``#`` lines are comments.
    Names ending in ``.md`` are pages, other names are nested directories
    with their own ``index.txt``.
    """
    prefix = f"{directory}/" if directory else ""
    index = pages.get(f"{prefix}index.txt")
    if index is None:
        return

    intro = pages.get(f"{prefix}index.md")
    listing = f"{intro}\n\n" if intro is not None else ""
    listing += "# Pages\n\n"

    for raw_line in index.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if ":" in line:
            name, title = (part.strip() for part in line.split(":", 1))
        else:
            name, title = line, None
        path = f"{prefix}{name}"
        if name.endswith(".md"):
            content = pages.get(path)
            if content is None:
                logger.warning("Book index %sindex.txt lists missing page: %s", prefix, name)
                continue
            if title is None:
                first_line = content.splitlines()[0] if content else ""
                title = first_line.lstrip("#").strip() or name
            summary.append(f"{'  ' * level}- [{title}](book/{path})\n")
            output_files[f"src/book/{path}"] = content
            listing += f"- [{title}]({name})\n"
        else:
            summary.append(f"{'  ' * level}- [{title or name}](book/{path}/index.md)\n")
            include_book_index(path, pages, output_files, summary, level + 1)

    output_files[f"src/book/{prefix}index.md"] = listing


def write_manifest(output_dir: Path, options: BackendMdBook) -> Path:
    """Write ``book.toml`` for mdBook."""
    manifest = {
        "book": {
            "authors": list(options.authors),
            "language": options.language,
            "multilingual": options.multilingual,
            "src": "src",
            "title": options.title,
        },
        "output": {
            "html": {
                "theme": "ayu",
                "default-theme": "ayu",
                "preferred-dark-theme": "ayu",
                "mathjax-support": True,
                "no-section-label": True,
                "site-url": options.site_url or "/",
                "fold": {"enable": False, "level": 0},
            },
        },
    }
    path = output_dir / "book.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomlkit.dumps(manifest), encoding="utf-8")
    return path


def _read_decoration(root: Path, path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    return (root / path).read_text(encoding="utf-8")


def render_pages(document: Document) -> Dict[str, str]:
    """Build every page of the book, keyed by path relative to the output dir.

    ``src/SUMMARY.md`` is included and is the only page that is not
    preprocessed or decorated.
    """
    files: Dict[str, str] = {}
    summary = ["# Index\n\n", "[Documentation](documentation.md)\n"]

    intro = document.book.get("documentation.md")
    documentation = f"{intro}\n\n" if intro is not None else ""
    documentation += "# Contents\n"

    if "index.txt" in document.book:
        summary.append("\n- [Book](book/index.md)\n")
        documentation += "- [Book](/book/index.md)\n"
        include_book_index(None, document.book, files, summary, 1)

    summary.append("\n- [C++ API Reference](reference.md)\n")
    documentation += "- [C++ API Reference](/reference.md)\n"
    reference_listing = "# C++ API Reference\n"

    for attribute, _, title, directory in _REFERENCE_SECTIONS:
        items = getattr(document, attribute)
        if not items:
            continue
        summary.append(f"  - [{title}](reference/{directory}.md)\n")
        reference_listing += f"\n## {title}\n"
        listing = f"# {title}\n\n"
        for item in items:
            index_path = f"reference/{directory}/{item.name}.md"
            files[f"src/{index_path}"] = _bake_item(attribute, item)
            summary.append(f"    - [{item.name}]({index_path})\n")
            entry = f"- [`{item.name}`]({index_path})\n"
            listing += entry
            reference_listing += entry
        files[f"src/reference/{directory}.md"] = listing

    files["src/reference.md"] = reference_listing
    files["src/documentation.md"] = documentation
    files["src/SUMMARY.md"] = "".join(summary)
    return files


def copy_assets(source: Path, output_dir: Path) -> Path:
    """Copy the assets directory into ``src/assets`` of the book."""
    target = output_dir / "src" / "assets"
    shutil.copytree(source, target, dirs_exist_ok=True)
    logger.info(f"Copied assets from {source} to {target}")
    return target


def build_book(output_dir: Path) -> int:
    """Run ``mdbook build`` on the output directory and return its exit code."""
    try:
        completed = subprocess.run(["mdbook", "build", str(output_dir)], check=False)
    except FileNotFoundError:
        logger.error("mdbook executable not found; skipping book build")
        raise
    if completed.returncode != 0:
        logger.error(f"mdbook build failed with exit code {completed.returncode}")
    return completed.returncode


def bake_mdbook(document: Document, config: ProjectConfig, root: Path) -> List[Path]:
    """Write the markdown book for ``document``.

    Args:
        document: Resolved document.
        config: Project configuration; ``backend_mdbook`` defaults apply when
            it is unset.
        root: Directory of the project file, base for header, footer and
            assets paths that are still relative.

    Returns:
        Paths of all written pages.
    """
    options = config.backend_mdbook or BackendMdBook()
    output_dir = Path(config.output_dir)

    if options.cleanup and output_dir.exists():
        shutil.rmtree(output_dir)
        logger.info(f"Removed previous output {output_dir}")

    write_manifest(output_dir, options)

    header = _read_decoration(root, options.header)
    footer = _read_decoration(root, options.footer)
    header = f"{header}\n" if header is not None else ""
    footer = f"\n{footer}" if footer is not None else ""

    written = []
    files = render_pages(document)
    summary = files.pop("src/SUMMARY.md")
    for relative, content in files.items():
        content = preprocess_content(content, document)
        path = output_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{header}{content}{footer}\n---\n{CREDIT_FOOTER}", encoding="utf-8")
        written.append(path)

    summary_path = output_dir / "src" / "SUMMARY.md"
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    summary_path.write_text(summary, encoding="utf-8")
    written.append(summary_path)
    logger.info(f"Wrote {len(written)} book pages to {output_dir}")

    if options.assets is not None:
        copy_assets(root / options.assets, output_dir)

    if options.build:
        build_book(output_dir)

    return written
