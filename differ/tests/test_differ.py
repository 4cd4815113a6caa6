"""
Unit tests for differ.py

Tests change classification, entry ordering, symmetry, JSON document diffs
and snapshot handling.
"""

import json
import os
import tempfile
import unittest

from core.errors import UsageError
from differ.differ import (
    ADDED,
    ADDED_REQUIRED,
    MODIFIED,
    ORPHANED,
    REMOVED,
    compare_properties,
    diff,
    diff_documents,
    diff_resources,
    format_json,
    format_text,
    snapshot_kind,
)
from discovery.models import PropertyInfo
from discovery.scanner import scan_source


V1 = b'''
person = NodeType(label="Person", properties=[
    Property(name="id", type=STRING, required=True, unique=True),
    Property(name="age", type=INTEGER),
    Property(name="nickname"),
], indexes=[Index(type=TEXT, properties=["nickname"])])
company = NodeType(label="Company", properties=[Property(name="name")])
legacy = NodeType(label="Legacy")
works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Company")
'''

V2 = b'''
person = NodeType(label="Person", properties=[
    Property(name="id", type=STRING, required=True, unique=True),
    Property(name="age", type=FLOAT),
    Property(name="email", required=True),
    Property(name="bio"),
], indexes=[Index(type=BTREE, properties=["email"])])
company = NodeType(label="Company", properties=[Property(name="name")])
product = NodeType(label="Product", properties=[Property(name="sku", required=True)])
works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Organisation")
'''


def _prop(name, **kwargs):
    return PropertyInfo(name=name, **kwargs)


class TestCompareProperties(unittest.TestCase):

    def test_required_addition_is_breaking(self):
        changes = compare_properties([], [_prop("email", required=True)])
        self.assertEqual(changes, ['property "email" added (required) [BREAKING: requires data migration]'])

    def test_optional_addition_is_not_breaking(self):
        self.assertEqual(compare_properties([], [_prop("bio")]), ['property "bio" added'])

    def test_removal_is_breaking(self):
        self.assertEqual(compare_properties([_prop("bio")], []),
                         ['property "bio" removed [BREAKING: data loss]'])

    def test_type_change(self):
        changes = compare_properties([_prop("age", type="INTEGER")], [_prop("age", type="FLOAT")])
        self.assertEqual(changes, ['property "age" type changed: INTEGER -> FLOAT [BREAKING]'])

    def test_required_flag_flips(self):
        tightened = compare_properties([_prop("x")], [_prop("x", required=True)])
        relaxed = compare_properties([_prop("x", required=True)], [_prop("x")])
        self.assertIn("[BREAKING", tightened[0])
        self.assertEqual(relaxed, ['property "x" now optional'])

    def test_unique_flag_flips(self):
        gained = compare_properties([_prop("x")], [_prop("x", unique=True)])
        lost = compare_properties([_prop("x", unique=True)], [_prop("x")])
        self.assertNotIn("[BREAKING", gained[0])
        self.assertIn("[BREAKING", lost[0])


class TestDiffResources(unittest.TestCase):

    def setUp(self):
        self.v1 = scan_source(V1, "v1.py")
        self.v2 = scan_source(V2, "v2.py")
        self.result = diff_resources(self.v1, self.v2)

    def _entry(self, result, name):
        return next(e for e in result.entries if e.resource == name)

    def test_entries_sorted_by_action_then_name(self):
        keys = [(e.action, e.resource) for e in self.result.entries]
        self.assertEqual(keys, [
            (ADDED, "Product"),
            (MODIFIED, "Person"),
            (MODIFIED, "WORKS_FOR"),
            (REMOVED, "Legacy"),
        ])

    def test_unchanged_resources_omitted(self):
        self.assertNotIn("Company", [e.resource for e in self.result.entries])

    def test_added_with_required_property_is_breaking(self):
        product = self._entry(self.result, "Product")
        self.assertEqual(product.changes, ["1 properties", ADDED_REQUIRED])
        self.assertTrue(product.breaking)

    def test_removed_is_always_breaking(self):
        legacy = self._entry(self.result, "Legacy")
        self.assertEqual(legacy.changes, [ORPHANED])
        self.assertTrue(legacy.breaking)

    def test_modified_changes_sorted(self):
        person = self._entry(self.result, "Person")
        self.assertEqual(person.changes, sorted(person.changes))
        self.assertEqual(person.changes, [
            "index BTREE(email) added",
            "index TEXT(nickname) removed [performance impact]",
            'property "age" type changed: INTEGER -> FLOAT [BREAKING]',
            'property "bio" added',
            'property "email" added (required) [BREAKING: requires data migration]',
            'property "nickname" removed [BREAKING: data loss]',
        ])

    def test_relationship_endpoint_change(self):
        works_for = self._entry(self.result, "WORKS_FOR")
        self.assertEqual(works_for.changes, ["target changed: Company -> Organisation [BREAKING]"])

    def test_summary(self):
        summary = self.result.summary
        self.assertEqual((summary.added, summary.modified, summary.removed, summary.total), (1, 2, 1, 4))
        self.assertTrue(self.result.has_breaking_changes)

    def test_symmetry(self):
        backwards = diff_resources(self.v2, self.v1)
        forward = {(e.kind, e.resource): e.action for e in self.result.entries}
        reverse = {(e.kind, e.resource): e.action for e in backwards.entries}
        self.assertEqual(set(forward), set(reverse))
        swap = {ADDED: REMOVED, REMOVED: ADDED, MODIFIED: MODIFIED}
        for key, action in forward.items():
            self.assertEqual(reverse[key], swap[action])

    def test_optional_property_and_index_not_breaking(self):
        old = scan_source(b'a = NodeType(label="A", properties=[Property(name="x")])\n')
        new = scan_source(
            b'a = NodeType(label="A", properties=[Property(name="x"), Property(name="y")],'
            b' indexes=[Index(properties=["x"])])\n'
        )
        result = diff_resources(old, new)
        self.assertEqual(len(result.entries), 1)
        self.assertFalse(result.has_breaking_changes)

    def test_constraint_removal_is_breaking(self):
        old = scan_source(b'a = NodeType(label="A", constraints=[Constraint(type=UNIQUE, properties=["x", "y"])])\n')
        new = scan_source(b'a = NodeType(label="A")\n')
        entry = diff_resources(old, new).entries[0]
        self.assertEqual(entry.changes, ["constraint UNIQUE(x, y) removed [BREAKING: requires migration]"])
        reverse = diff_resources(new, old).entries[0]
        self.assertFalse(reverse.breaking)

    def test_identical_snapshots(self):
        result = diff_resources(self.v1, scan_source(V1, "copy.py"))
        self.assertFalse(result.has_changes)
        self.assertEqual(format_text(result), "No differences found")


class TestDiffDocuments(unittest.TestCase):

    def test_structural_sections(self):
        old = {"nodeTypes": [{"label": "Person", "properties": [{"name": "id", "type": "STRING"}]}]}
        new = {"nodeTypes": [{"label": "Person", "properties": [
            {"name": "id", "type": "STRING"},
            {"name": "email", "type": "STRING", "required": True},
        ]}]}
        result = diff_documents(old, new)
        self.assertEqual(len(result.entries), 1)
        entry = result.entries[0]
        self.assertEqual((entry.resource, entry.kind, entry.action), ("Person", "NodeType", MODIFIED))
        self.assertTrue(entry.breaking)

    def test_opaque_sections(self):
        old = {"algorithms": [
            {"name": "pr", "dampingFactor": 0.85, "maxIterations": 20},
            {"name": "gone"},
        ]}
        new = {"algorithms": [
            {"name": "pr", "dampingFactor": 0.9, "tolerance": 0.001},
            {"name": "fresh"},
        ]}
        result = diff_documents(old, new)
        by_name = {e.resource: e for e in result.entries}
        self.assertEqual(by_name["fresh"].action, ADDED)
        self.assertEqual(by_name["fresh"].changes, [])
        self.assertEqual(by_name["gone"].changes, ["[BREAKING]"])
        self.assertEqual(by_name["pr"].changes, ["dampingFactor changed", "maxIterations removed", "tolerance added"])
        self.assertEqual(by_name["pr"].kind, "Algorithm")


class TestSnapshots(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = self.tmpdir.name

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, relative, content, mode="wb"):
        path = os.path.join(self.root, relative)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, mode) as f:
            f.write(content)
        return path

    def test_snapshot_kind(self):
        self.assertEqual(snapshot_kind(self.root), "directory")
        self.assertEqual(snapshot_kind(self._write("a.json", "{}", "w")), "document")
        self.assertEqual(snapshot_kind(self._write("a.py", b"")), "source")
        with self.assertRaises(FileNotFoundError):
            snapshot_kind(os.path.join(self.root, "missing"))

    def test_directories(self):
        self._write("old/schema.py", V1)
        self._write("new/schema.py", V2)
        result = diff(os.path.join(self.root, "old"), os.path.join(self.root, "new"))
        self.assertEqual(result.summary.total, 4)

    def test_single_files(self):
        old = self._write("v1.py", V1)
        new = self._write("v2.py", V2)
        self.assertEqual(diff(old, new).summary.modified, 2)

    def test_documents(self):
        old = self._write("old.json", json.dumps({"nodeTypes": [{"label": "A"}]}), "w")
        new = self._write("new.json", json.dumps({"nodeTypes": [{"label": "B"}]}), "w")
        result = diff(old, new)
        self.assertEqual([(e.action, e.resource) for e in result.entries], [(ADDED, "B"), (REMOVED, "A")])

    def test_mixed_kinds_rejected(self):
        source = self._write("v1.py", V1)
        document = self._write("v2.json", "{}", "w")
        with self.assertRaises(UsageError):
            diff(source, document)


class TestFormatting(unittest.TestCase):

    def setUp(self):
        self.result = diff_resources(scan_source(V1), scan_source(V2))

    def test_text(self):
        lines = format_text(self.result).splitlines()
        self.assertEqual(lines[0], "+ NodeType Product (added)")
        self.assertEqual(lines[1], "    1 properties")
        self.assertIn("- NodeType Legacy (removed)", lines)
        self.assertIn("Summary: 1 added, 2 modified, 1 removed (4 total)", lines)
        self.assertEqual(lines[-1], "Warning: breaking changes detected")

    def test_json(self):
        data = json.loads(format_json(self.result))
        self.assertEqual(data["summary"], {"added": 1, "modified": 2, "removed": 1, "total": 4})
        self.assertEqual(data["entries"][0]["resource"], "Product")
        self.assertEqual(data["entries"][0]["action"], "added")


if __name__ == "__main__":
    unittest.main()
