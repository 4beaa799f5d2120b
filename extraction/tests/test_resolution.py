"""
Unit tests for resolution.py

Tests inject resolution, self-name substitution, sorting and the combined
pass over the fixture header.
"""

import unittest
from pathlib import Path

from core.project_config import Settings
from extraction.extractor import build_document
from extraction.models import (
    Argument,
    Document,
    Enum,
    Function,
    Property,
    Proxy,
    StructClass,
    StructClassMode,
)
from extraction.resolution import (
    resolve_document,
    resolve_injects,
    resolve_self_names_in_docs,
    sort_items_by_name,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "plugin"


def _serializable_document():
    return Document(
        structs=[
            StructClass(name="FA", injects={"serializable"}),
            StructClass(name="FB", injects={"other"}),
        ],
        classes=[
            StructClass(name="UC", mode=StructClassMode.CLASS, injects={"serializable", "x"}),
        ],
        proxy_properties=[
            Proxy({"serializable"}, Property(name="Id", doc_comments="Id of $Self$.")),
        ],
        proxy_functions=[
            Proxy({"x"}, Function(name="Save", doc_comments="Saves.")),
            Proxy({"unused"}, Function(name="Orphan", doc_comments="Never injected.")),
        ],
    )


class TestResolveInjects(unittest.TestCase):
    """Test tag-based member injection."""

    def test_injects_into_matching_hosts_only(self):
        document = _serializable_document()
        injected = resolve_injects(document)

        fa, fb = document.structs
        uc = document.classes[0]
        self.assertEqual(injected, 3)
        self.assertEqual([p.name for p in fa.properties], ["Id"])
        self.assertEqual(fb.properties, [])
        self.assertEqual([p.name for p in uc.properties], ["Id"])
        self.assertEqual([m.name for m in uc.methods], ["Save"])

    def test_queues_and_tags_drained(self):
        document = _serializable_document()
        resolve_injects(document)

        self.assertEqual(document.proxy_functions, [])
        self.assertEqual(document.proxy_properties, [])
        for host in document.structs + document.classes:
            self.assertEqual(host.injects, set())

    def test_second_run_is_noop(self):
        document = _serializable_document()
        resolve_injects(document)
        before = document.to_dict()

        self.assertEqual(resolve_injects(document), 0)
        self.assertEqual(document.to_dict(), before)

    def test_injected_copies_are_independent(self):
        document = _serializable_document()
        resolve_injects(document)

        fa_id = document.structs[0].properties[0]
        uc_id = document.classes[0].properties[0]
        self.assertIsNot(fa_id, uc_id)

    def test_injection_keeps_registration_order(self):
        host = StructClass(name="FA", injects={"t"}, properties=[Property(name="Z")])
        document = Document(
            structs=[host],
            proxy_properties=[
                Proxy({"t"}, Property(name="B")),
                Proxy({"t"}, Property(name="A")),
            ],
        )
        resolve_injects(document)
        self.assertEqual([p.name for p in host.properties], ["Z", "B", "A"])


class TestResolveSelfNames(unittest.TestCase):
    """Test self-name placeholder substitution."""

    def test_owner_names(self):
        method = Function(
            name="Get",
            doc_comments="Returns $Self$.",
            arguments=[Argument("int32", "I", doc_comments="Index into $Self$.")],
        )
        document = Document(
            enums=[Enum(name="EKind", doc_comments="$Self$ values, all of $Self$.")],
            structs=[
                StructClass(
                    name="FA",
                    doc_comments="The $Self$ type.",
                    properties=[Property(name="P", doc_comments="Owned by $Self$.")],
                    methods=[method],
                )
            ],
        )
        resolve_self_names_in_docs(document)

        self.assertEqual(document.enums[0].doc_comments, "EKind values, all of EKind.")
        fa = document.structs[0]
        self.assertEqual(fa.doc_comments, "The FA type.")
        self.assertEqual(fa.properties[0].doc_comments, "Owned by FA.")
        self.assertEqual(method.doc_comments, "Returns FA.")
        self.assertEqual(method.arguments[0].doc_comments, "Index into FA.")

    def test_free_functions_keep_placeholder(self):
        document = Document(
            functions=[
                Function(
                    name="F",
                    doc_comments="Uses $Self$.",
                    arguments=[Argument("int32", "A", doc_comments="$Self$ argument.")],
                )
            ]
        )
        resolve_self_names_in_docs(document)

        self.assertEqual(document.functions[0].doc_comments, "Uses $Self$.")
        self.assertEqual(document.functions[0].arguments[0].doc_comments, "$Self$ argument.")

    def test_text_without_placeholder_unchanged(self):
        document = Document(enums=[Enum(name="E", doc_comments="Plain text.")])
        resolve_self_names_in_docs(document)
        self.assertEqual(document.enums[0].doc_comments, "Plain text.")


class TestSortItems(unittest.TestCase):
    """Test ordering by name."""

    def test_sort(self):
        document = Document(
            enums=[Enum(name="EB"), Enum(name="EA")],
            structs=[
                StructClass(
                    name="FB",
                    properties=[Property(name="Y"), Property(name="X")],
                    methods=[Function(name="N"), Function(name="M")],
                ),
                StructClass(name="FA"),
            ],
            functions=[Function(name="G"), Function(name="F")],
        )
        sort_items_by_name(document)

        self.assertEqual([e.name for e in document.enums], ["EA", "EB"])
        self.assertEqual([s.name for s in document.structs], ["FA", "FB"])
        self.assertEqual([f.name for f in document.functions], ["F", "G"])
        fb = document.structs[1]
        self.assertEqual([p.name for p in fb.properties], ["X", "Y"])
        self.assertEqual([m.name for m in fb.methods], ["M", "N"])


class TestResolveDocument(unittest.TestCase):
    """Test the full resolution pipeline on the fixture plugin."""

    def setUp(self):
        document, _ = build_document([FIXTURES_DIR / "Source"], Settings())
        self.document = resolve_document(document)

    def test_proxy_injected_then_named(self):
        slot = self.document.structs[0]
        self.assertEqual([p.name for p in slot.properties], ["Count", "Guid", "ItemId"])
        guid = slot.properties[1]
        self.assertEqual(guid.value_type, "FGuid")
        self.assertEqual(guid.doc_comments, "Serializable identity of a FInventorySlot.")

    def test_class_members(self):
        inventory = self.document.classes[0]
        self.assertEqual(inventory.doc_comments, "Container of UInventory slots.")
        self.assertEqual([m.name for m in inventory.methods], ["AddItem", "Num"])
        self.assertEqual([p.name for p in inventory.properties], ["Slots"])
        self.assertEqual(
            inventory.methods[0].doc_comments,
            "Adds items to the first free slot of UInventory.",
        )

    def test_enum_and_free_function(self):
        self.assertEqual(self.document.enums[0].variants, ["Consumable", "Equipment", "Quest"])
        self.assertEqual(self.document.functions[0].doc_comments, "Returns true when $Self$ is empty.")

    def test_snippet_dedented(self):
        self.assertEqual(
            self.document.snippets["give_item"],
            "UInventory* Inventory = NewObject<UInventory>();\nInventory->AddItem(ItemId, 3);",
        )

    def test_proxy_queues_empty(self):
        self.assertEqual(self.document.proxy_functions, [])
        self.assertEqual(self.document.proxy_properties, [])


if __name__ == "__main__":
    unittest.main()
