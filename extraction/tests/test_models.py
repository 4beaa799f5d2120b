"""
Unit tests for models.py

Tests export predicates, signature projection and serialization shapes.
"""

import unittest

from core.project_config import Settings
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
    replace_self_names,
)


class TestVisibility(unittest.TestCase):
    """Test visibility parsing and export predicate."""

    def test_from_keyword(self):
        self.assertEqual(Visibility.from_keyword("public:"), Visibility.PUBLIC)
        self.assertEqual(Visibility.from_keyword(" protected : "), Visibility.PROTECTED)
        self.assertEqual(Visibility.from_keyword("private"), Visibility.PRIVATE)
        self.assertIsNone(Visibility.from_keyword("friend"))

    def test_can_export(self):
        default = Settings()
        self.assertTrue(Visibility.PUBLIC.can_export(default))
        self.assertFalse(Visibility.PROTECTED.can_export(default))
        self.assertFalse(Visibility.PRIVATE.can_export(default))
        self.assertTrue(Visibility.PROTECTED.can_export(Settings(document_protected=True)))
        self.assertTrue(Visibility.PRIVATE.can_export(Settings(document_private=True)))

    def test_default_member_visibility(self):
        self.assertEqual(StructClassMode.STRUCT.default_visibility(), Visibility.PUBLIC)
        self.assertEqual(StructClassMode.CLASS.default_visibility(), Visibility.PRIVATE)


class TestExportPredicates(unittest.TestCase):
    """Test can_export of every record kind."""

    def test_undocumented_never_exported_without_show_all(self):
        settings = Settings(document_protected=True, document_private=True)
        self.assertFalse(Enum(name="E").can_export(settings))
        self.assertFalse(StructClass(name="S").can_export(settings))
        self.assertFalse(Property(name="P").can_export(settings))
        self.assertFalse(Function(name="F").can_export(settings))

    def test_show_all(self):
        settings = Settings(show_all=True)
        self.assertTrue(Enum(name="E").can_export(settings))
        self.assertTrue(StructClass(name="S").can_export(settings))

    def test_documented_member_visibility(self):
        prop = Property(name="P", doc_comments="Doc", visibility=Visibility.PROTECTED)
        self.assertFalse(prop.can_export(Settings()))
        self.assertTrue(prop.can_export(Settings(document_protected=True)))

    def test_struct_exported_through_member(self):
        item = StructClass(
            name="AFoo",
            mode=StructClassMode.CLASS,
            methods=[Function(name="DoThing", doc_comments="Doc")],
        )
        self.assertTrue(item.can_export(Settings()))


class TestSignatures(unittest.TestCase):
    """Test C++-like signature projection."""

    def test_enum(self):
        item = Enum(name="EStatus", variants=["Idle", "Done"])
        self.assertEqual(item.signature(), "enum class EStatus : uint8 {\n    Idle,\n    Done\n};")

    def test_struct(self):
        item = StructClass(
            name="FSlot",
            api="INV_API",
            template="template <typename T>",
            inherits=[(Visibility.PUBLIC, "FBase"), (Visibility.PRIVATE, "FOther")],
        )
        self.assertEqual(
            item.signature(),
            "template <typename T>\nstruct INV_API FSlot\n    : public FBase\n    , private FOther;",
        )

    def test_property(self):
        item = Property(name="Values", value_type="int32", array=PropertyArray.sized("4"), is_static=True)
        self.assertEqual(item.signature(), "public:\nstatic int32 Values[4];")

    def test_unsized_property(self):
        item = Property(name="Name", value_type="char", array=PropertyArray.unsized(),
                        visibility=Visibility.PRIVATE)
        self.assertEqual(item.signature(), "private:\nchar Name[];")

    def test_function(self):
        item = Function(
            name="Add",
            return_type="int32",
            arguments=[Argument("int32", "A"), Argument("int32", "B", "0")],
            is_virtual=True,
            is_const_this=True,
            is_override=True,
        )
        self.assertEqual(
            item.signature(),
            "public:\nvirtual int32 Add(\n    int32 A,\n    int32 B = 0\n) const override;",
        )

    def test_function_without_arguments(self):
        item = Function(name="Reset", return_type="void", visibility=Visibility.PROTECTED)
        self.assertEqual(item.signature(), "protected:\nvoid Reset();")

    def test_unnamed_argument(self):
        self.assertEqual(Argument("float").signature(), "float")


class TestSerialization(unittest.TestCase):
    """Test to_dict shapes."""

    def test_attributes(self):
        self.assertEqual(Attribute.single("BlueprintType").to_dict(), {"Single": "BlueprintType"})
        self.assertEqual(
            Attribute.pair("Category", '"Inv"').to_dict(),
            {"Pair": {"key": "Category", "value": '"Inv"'}},
        )

    def test_property_array(self):
        self.assertEqual(PropertyArray().to_dict(), "none")
        self.assertEqual(PropertyArray.unsized().to_dict(), "unsized")
        self.assertEqual(PropertyArray.sized("N").to_dict(), {"sized": "N"})

    def test_struct_omits_injects(self):
        item = StructClass(name="S", injects={"tag"}, specifiers=Specifiers([Attribute.single("A")]))
        payload = item.to_dict()
        self.assertNotIn("injects", payload)
        self.assertEqual(payload["mode"], "struct")
        self.assertEqual(payload["specifiers"], {"attributes": [{"Single": "A"}], "meta": []})

    def test_document(self):
        document = Document(
            enums=[Enum(name="E")],
            snippets={"s": "code"},
            book={"index.txt": "a.md"},
            proxy_properties=[Proxy({"t"}, Property(name="P"))],
        )
        payload = document.to_dict()
        self.assertEqual(
            sorted(payload),
            ["book", "classes", "enums", "functions", "snippets", "structs"],
        )
        self.assertEqual(payload["enums"][0]["name"], "E")
        self.assertEqual(document.counts()["snippets"], 1)


class TestHelpers(unittest.TestCase):
    """Test small helpers."""

    def test_replace_self_names(self):
        self.assertEqual(replace_self_names("$Self$ and $Self$", "AFoo"), "AFoo and AFoo")
        self.assertEqual(replace_self_names("untouched", "AFoo"), "untouched")

    def test_proxy_matches(self):
        proxy = Proxy({"a", "b"}, Property(name="P"))
        self.assertTrue(proxy.matches({"b", "c"}))
        self.assertFalse(proxy.matches({"c"}))
        self.assertFalse(proxy.matches(set()))

    def test_element_constructors(self):
        self.assertEqual(Element.none().kind, ElementKind.NONE)
        self.assertIsNone(Element.none().item)
        self.assertEqual(Element.from_enum(Enum()).kind, ElementKind.ENUM)
        self.assertEqual(Element.from_function(Function()).kind, ElementKind.FUNCTION)


if __name__ == "__main__":
    unittest.main()
