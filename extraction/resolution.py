"""
Resolution passes run once over an assembled Document.

Order matters: proxies are injected first so that injected members take part
in self-name substitution, and sorting runs last.
"""

import copy
import logging
from typing import List

from extraction.models import (
    Document,
    Function,
    Property,
    Proxy,
    StructClass,
    replace_self_names,
)

logger = logging.getLogger(__name__)


def _inject_into(
    host: StructClass,
    functions: List[Proxy[Function]],
    properties: List[Proxy[Property]],
) -> int:
    tags = host.injects
    host.injects = set()
    if not tags:
        return 0
    injected = 0
    for proxy in functions:
        if proxy.matches(tags):
            host.methods.append(copy.deepcopy(proxy.item))
            injected += 1
    for proxy in properties:
        if proxy.matches(tags):
            host.properties.append(copy.deepcopy(proxy.item))
            injected += 1
    return injected


def resolve_injects(document: Document) -> int:
    """Move queued proxy declarations into every struct/class tagged for them.

    Both proxy queues and every host's tag set are emptied, so running this
    again changes nothing. Proxies that match no host are dropped.

    Returns:
        Number of members injected.
    """
    functions = document.proxy_functions
    properties = document.proxy_properties
    document.proxy_functions = []
    document.proxy_properties = []

    injected = 0
    for host in document.structs + document.classes:
        injected += _inject_into(host, functions, properties)

    if functions or properties:
        logger.info(
            "Injected %d members from %d proxies",
            injected,
            len(functions) + len(properties),
        )
    return injected


def _resolve_function_docs(function: Function, owner: str) -> None:
    if function.doc_comments is not None:
        function.doc_comments = replace_self_names(function.doc_comments, owner)
    for argument in function.arguments:
        if argument.doc_comments is not None:
            argument.doc_comments = replace_self_names(argument.doc_comments, owner)


def resolve_self_names_in_docs(document: Document) -> None:
    """Replace the self-name placeholder in doc comments with the owner name.

    Free functions have no owner, so their docs keep the placeholder.
    """
    for item in document.enums:
        if item.doc_comments is not None:
            item.doc_comments = replace_self_names(item.doc_comments, item.name)

    for item in document.structs + document.classes:
        if item.doc_comments is not None:
            item.doc_comments = replace_self_names(item.doc_comments, item.name)
        for prop in item.properties:
            if prop.doc_comments is not None:
                prop.doc_comments = replace_self_names(prop.doc_comments, item.name)
        for method in item.methods:
            _resolve_function_docs(method, item.name)


def sort_items_by_name(document: Document) -> None:
    """Order members, then top-level lists, by name (stable)."""
    for item in document.structs + document.classes:
        item.properties.sort(key=lambda p: p.name)
        item.methods.sort(key=lambda m: m.name)

    document.enums.sort(key=lambda e: e.name)
    document.structs.sort(key=lambda s: s.name)
    document.classes.sort(key=lambda c: c.name)
    document.functions.sort(key=lambda f: f.name)


def resolve_document(document: Document) -> Document:
    """Run inject resolution, self-name substitution and sorting, in that order."""
    resolve_injects(document)
    resolve_self_names_in_docs(document)
    sort_items_by_name(document)
    return document
