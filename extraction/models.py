"""
Data models for extracted header declarations.

Every record is created once while a header is parsed, mutated only by the
resolution passes, and serialized through ``to_dict``.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Set, Tuple, TypeVar, Union

from core.project_config import Settings
from extraction.config import SELF_NAME_PLACEHOLDER


def replace_self_names(content: str, owner: str) -> str:
    """Replace every self-name placeholder in ``content`` with ``owner``."""
    return content.replace(SELF_NAME_PLACEHOLDER, owner)


class Visibility(str, enum.Enum):
    """Access level of a member or an inheritance entry."""

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    @classmethod
    def from_keyword(cls, keyword: str) -> Optional["Visibility"]:
        """Map an access keyword (optionally followed by ``:``) to a Visibility.

        Returns None for anything that is not an access keyword.
        """
        text = keyword.strip().rstrip(":").strip()
        for visibility in cls:
            if visibility.value == text:
                return visibility
        return None

    def can_export(self, settings: Settings) -> bool:
        if self is Visibility.PUBLIC:
            return True
        if self is Visibility.PROTECTED:
            return settings.document_protected
        return settings.document_private

    def signature(self) -> str:
        return self.value


@dataclass(frozen=True)
class Attribute:
    """One specifier entry: a bare identifier or a ``key = value`` pair."""

    key: str
    value: Optional[str] = None

    @classmethod
    def single(cls, name: str) -> "Attribute":
        return cls(key=name)

    @classmethod
    def pair(cls, key: str, value: str) -> "Attribute":
        return cls(key=key, value=value)

    @property
    def is_pair(self) -> bool:
        return self.value is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_pair:
            return {"Pair": {"key": self.key, "value": self.value}}
        return {"Single": self.key}


@dataclass
class Specifiers:
    """Reflection specifier block: direct attributes and ``meta`` attributes."""

    attributes: List[Attribute] = field(default_factory=list)
    meta: List[Attribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": [a.to_dict() for a in self.attributes],
            "meta": [a.to_dict() for a in self.meta],
        }


def _optional_dict(value: Optional[Specifiers]) -> Optional[Dict[str, Any]]:
    return value.to_dict() if value is not None else None


@dataclass
class Enum:
    """Enum declaration with its variant names in source order."""

    name: str = ""
    variants: List[str] = field(default_factory=list)
    specifiers: Optional[Specifiers] = None
    doc_comments: Optional[str] = None

    def can_export(self, settings: Settings) -> bool:
        return settings.show_all or self.doc_comments is not None

    def signature(self) -> str:
        variants = ",\n".join(f"    {v}" for v in self.variants)
        return f"enum class {self.name} : uint8 {{\n{variants}\n}};"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "variants": list(self.variants),
            "doc_comments": self.doc_comments,
            "specifiers": _optional_dict(self.specifiers),
        }


class StructClassMode(str, enum.Enum):
    """Keyword a record type was declared with."""

    STRUCT = "struct"
    CLASS = "class"

    def default_visibility(self) -> Visibility:
        return Visibility.PUBLIC if self is StructClassMode.STRUCT else Visibility.PRIVATE

    def signature(self) -> str:
        return self.value


class ArrayMode(str, enum.Enum):
    NONE = "none"
    UNSIZED = "unsized"
    SIZED = "sized"


@dataclass(frozen=True)
class PropertyArray:
    """Array declarator of a property: absent, ``[]`` or ``[size]``."""

    mode: ArrayMode = ArrayMode.NONE
    size: Optional[str] = None

    @classmethod
    def unsized(cls) -> "PropertyArray":
        return cls(mode=ArrayMode.UNSIZED)

    @classmethod
    def sized(cls, size: str) -> "PropertyArray":
        return cls(mode=ArrayMode.SIZED, size=size)

    def signature(self) -> str:
        if self.mode is ArrayMode.UNSIZED:
            return "[]"
        if self.mode is ArrayMode.SIZED:
            return f"[{self.size}]"
        return ""

    def to_dict(self) -> Union[str, Dict[str, str]]:
        if self.mode is ArrayMode.SIZED:
            return {"sized": self.size or ""}
        return self.mode.value


@dataclass
class Property:
    """Data member declaration."""

    name: str = ""
    value_type: str = ""
    array: PropertyArray = field(default_factory=PropertyArray)
    default_value: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    specifiers: Optional[Specifiers] = None
    doc_comments: Optional[str] = None

    def can_export(self, settings: Settings) -> bool:
        return self.doc_comments is not None and self.visibility.can_export(settings)

    def signature(self) -> str:
        result = f"{self.visibility.signature()}:\n"
        if self.is_static:
            result += "static "
        result += f"{self.value_type} {self.name}{self.array.signature()};"
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value_type": self.value_type,
            "array": self.array.to_dict(),
            "default_value": self.default_value,
            "visibility": self.visibility.value,
            "is_static": self.is_static,
            "doc_comments": self.doc_comments,
            "specifiers": _optional_dict(self.specifiers),
        }


@dataclass
class Argument:
    """Function parameter."""

    value_type: str = ""
    name: Optional[str] = None
    default_value: Optional[str] = None
    doc_comments: Optional[str] = None

    def signature(self) -> str:
        result = self.value_type
        if self.name is not None:
            result += f" {self.name}"
        if self.default_value is not None:
            result += f" = {self.default_value}"
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value_type": self.value_type,
            "default_value": self.default_value,
            "doc_comments": self.doc_comments,
        }


@dataclass
class Function:
    """Free function or method declaration."""

    name: str = ""
    return_type: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    template: Optional[str] = None
    arguments: List[Argument] = field(default_factory=list)
    is_static: bool = False
    is_virtual: bool = False
    is_const_this: bool = False
    is_override: bool = False
    specifiers: Optional[Specifiers] = None
    doc_comments: Optional[str] = None

    def can_export(self, settings: Settings) -> bool:
        return self.doc_comments is not None and self.visibility.can_export(settings)

    def signature(self) -> str:
        parts = [f"{self.visibility.signature()}:\n"]
        if self.template is not None:
            parts.append(f"{self.template}\n")
        if self.is_static:
            parts.append("static ")
        if self.is_virtual:
            parts.append("virtual ")
        if self.return_type is not None:
            parts.append(f"{self.return_type} ")
        parts.append(f"{self.name}(")
        last = len(self.arguments) - 1
        for i, argument in enumerate(self.arguments):
            parts.append(f"\n    {argument.signature()}")
            parts.append("," if i < last else "\n")
        parts.append(")")
        if self.is_const_this:
            parts.append(" const")
        if self.is_override:
            parts.append(" override")
        parts.append(";")
        return "".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "return_type": self.return_type,
            "visibility": self.visibility.value,
            "template": self.template,
            "arguments": [a.to_dict() for a in self.arguments],
            "is_static": self.is_static,
            "is_virtual": self.is_virtual,
            "is_const_this": self.is_const_this,
            "is_override": self.is_override,
            "doc_comments": self.doc_comments,
            "specifiers": _optional_dict(self.specifiers),
        }


@dataclass
class StructClass:
    """Struct or class declaration with its exported members.

    ``injects`` holds the tags of proxies this type receives; it is emptied
    by inject resolution and never serialized.
    """

    name: str = ""
    mode: StructClassMode = StructClassMode.STRUCT
    template: Optional[str] = None
    api: Optional[str] = None
    inherits: List[Tuple[Visibility, str]] = field(default_factory=list)
    specifiers: Optional[Specifiers] = None
    doc_comments: Optional[str] = None
    properties: List[Property] = field(default_factory=list)
    methods: List[Function] = field(default_factory=list)
    injects: Set[str] = field(default_factory=set)

    def can_export(self, settings: Settings) -> bool:
        return (
            settings.show_all
            or self.doc_comments is not None
            or any(p.can_export(settings) for p in self.properties)
            or any(m.can_export(settings) for m in self.methods)
        )

    def signature(self) -> str:
        result = ""
        if self.template is not None:
            result += f"{self.template}\n"
        result += f"{self.mode.signature()} "
        if self.api is not None:
            result += f"{self.api} "
        result += self.name
        for i, (visibility, base) in enumerate(self.inherits):
            prefix = ": " if i == 0 else ", "
            result += f"\n    {prefix}{visibility.signature()} {base}"
        return result + ";"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "mode": self.mode.value,
            "template": self.template,
            "api": self.api,
            "inherits": [[v.value, base] for v, base in self.inherits],
            "properties": [p.to_dict() for p in self.properties],
            "methods": [m.to_dict() for m in self.methods],
            "doc_comments": self.doc_comments,
            "specifiers": _optional_dict(self.specifiers),
        }


T = TypeVar("T", Function, Property)


@dataclass
class Proxy(Generic[T]):
    """Detached declaration waiting to be injected into tagged hosts."""

    tags: Set[str]
    item: T

    def matches(self, tags: Set[str]) -> bool:
        return not self.tags.isdisjoint(tags)


class ElementKind(enum.Enum):
    NONE = "none"
    ENUM = "enum"
    STRUCT_CLASS = "struct_class"
    PROPERTY = "property"
    FUNCTION = "function"


@dataclass(frozen=True)
class Element:
    """Result of classifying one statement: exactly one kind and its record."""

    kind: ElementKind = ElementKind.NONE
    item: Union[None, Enum, StructClass, Property, Function] = None

    @classmethod
    def none(cls) -> "Element":
        return cls()

    @classmethod
    def from_enum(cls, item: Enum) -> "Element":
        return cls(ElementKind.ENUM, item)

    @classmethod
    def from_struct_class(cls, item: StructClass) -> "Element":
        return cls(ElementKind.STRUCT_CLASS, item)

    @classmethod
    def from_property(cls, item: Property) -> "Element":
        return cls(ElementKind.PROPERTY, item)

    @classmethod
    def from_function(cls, item: Function) -> "Element":
        return cls(ElementKind.FUNCTION, item)


@dataclass
class Document:
    """Aggregate of every exported declaration, book page and snippet.

    ``proxy_functions`` and ``proxy_properties`` only live until inject
    resolution drains them.
    """

    enums: List[Enum] = field(default_factory=list)
    structs: List[StructClass] = field(default_factory=list)
    classes: List[StructClass] = field(default_factory=list)
    functions: List[Function] = field(default_factory=list)
    book: Dict[str, str] = field(default_factory=dict)
    snippets: Dict[str, str] = field(default_factory=dict)
    proxy_functions: List[Proxy[Function]] = field(default_factory=list)
    proxy_properties: List[Proxy[Property]] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "enums": len(self.enums),
            "structs": len(self.structs),
            "classes": len(self.classes),
            "functions": len(self.functions),
            "pages": len(self.book),
            "snippets": len(self.snippets),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enums": [e.to_dict() for e in self.enums],
            "structs": [s.to_dict() for s in self.structs],
            "classes": [c.to_dict() for c in self.classes],
            "functions": [f.to_dict() for f in self.functions],
            "book": dict(self.book),
            "snippets": dict(self.snippets),
        }
