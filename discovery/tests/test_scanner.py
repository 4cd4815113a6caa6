"""
Unit tests for scanner.py

Tests both declaration forms, metadata extraction, dependency inference and
directory scanning.
"""

import os
import tempfile
import unittest

from core.errors import ScanError, UsageError
from discovery.models import ResourceKind, SymbolRef
from discovery.scanner import (
    discover_source_files,
    find_duplicates,
    scan_directory,
    scan_file,
    scan_path,
    scan_source,
)
from discovery.traversal import resolve_kind


PERSON_AND_WORKS_FOR = b'''
from graphschema import NodeType, RelationshipType

person = NodeType(label="Person")

works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Company")
'''

CLASS_FORM = b'''
from graphschema import NodeType, Property, Index, STRING, INTEGER, VECTOR


class Person(NodeType):
    """A person in the organisation."""

    properties = [
        Property(name="id", type=STRING, required=True, unique=True),
        Property(name="age", type=INTEGER),
        Property("email", STRING, False, True),
    ]
    indexes = [
        Index(type=VECTOR, properties=["embedding"], options={"dimensions": 1536}),
    ]
    manager: "Manager"


class Manager(NodeType):
    pass
'''


class TestLiteralConstruction(unittest.TestCase):
    """Module-level ``x = Alias(...)`` declarations."""

    def test_person_and_works_for(self):
        resources = scan_source(PERSON_AND_WORKS_FOR, "schema.py")

        self.assertEqual([r.name for r in resources], ["Person", "WORKS_FOR"])
        self.assertEqual(resources[0].kind, ResourceKind.NODE_TYPE)
        self.assertEqual(resources[1].kind, ResourceKind.RELATIONSHIP_TYPE)
        self.assertEqual(resources[1].source, "Person")
        self.assertEqual(resources[1].target, "Company")
        self.assertEqual(resources[1].dependencies, [])

    def test_dependencies_found_through_nested_expressions(self):
        source = (
            b'pr = PageRank(\n'
            b'    name="pr",\n'
            b'    graph_name=Graphs[Main].name,\n'
            b'    extra=[{"k": Helper(Inner(-Neg))}],\n'
            b'    h=Cond if Flag else Other,\n'
            b'    s=Seq[1:End],\n'
            b'    key=lambda row: Weight(row),\n'
            b'    rest=[Item(x) for x in Source],\n'
            b')\n'
        )
        resource = scan_source(source)[0]
        self.assertEqual(resource.name, "pr")
        self.assertEqual(resource.dependencies, [
            "Graphs", "Main", "Helper", "Inner", "Neg", "Cond", "Flag", "Other",
            "Seq", "End", "Weight", "Item", "Source",
        ])

    def test_label_not_identifier_is_the_name(self):
        resources = scan_source(b'x_node = NodeType(label="5122Node")\n')
        self.assertEqual(resources[0].name, "5122Node")
        self.assertEqual(resources[0].declared_as, "x_node")

    def test_identifier_used_when_no_label(self):
        resources = scan_source(b"Thing = NodeType()\n")
        self.assertEqual(resources[0].name, "Thing")

    def test_location_and_package(self):
        resources = scan_source(PERSON_AND_WORKS_FOR, "/tmp/schema/nodes.py")
        self.assertEqual(resources[0].line, 4)
        self.assertEqual(resources[0].package, "nodes")
        self.assertEqual(resources[0].location, "/tmp/schema/nodes.py:4")

    def test_qualified_alias(self):
        source = b'import graphschema as gs\nperson = gs.NodeType(label="Person")\n'
        resources = scan_source(source)
        self.assertEqual(len(resources), 1)
        self.assertEqual(resources[0].type_name, "NodeType")

    def test_annotated_and_chained_assignments(self):
        source = (
            b'a: NodeType = NodeType(label="A")\n'
            b'b = c = NodeType(label="B")\n'
            b'd, e = NodeType(label="D"), NodeType(label="E")\n'
        )
        names = [r.name for r in scan_source(source)]
        self.assertEqual(names, ["A", "B", "D", "E"])

    def test_unrelated_calls_ignored(self):
        source = b'config = dict(a=1)\nname = "Person"\nvalue = compute()\n'
        self.assertEqual(scan_source(source), [])

    def test_algorithm_attributes(self):
        source = b'pr = PageRank(name="influence", graph_name="social", damping_factor=0.85, mode=Mode.WRITE)\n'
        resource = scan_source(source)[0]
        self.assertEqual(resource.kind, ResourceKind.ALGORITHM)
        self.assertEqual(resource.name, "influence")
        self.assertEqual(resource.attributes["damping_factor"], 0.85)
        self.assertEqual(resource.attributes["mode"], SymbolRef(name="WRITE", qualified="Mode.WRITE"))

    def test_declarations_inside_if_blocks(self):
        source = b'if True:\n    person = NodeType(label="Person")\n'
        self.assertEqual([r.name for r in scan_source(source)], ["Person"])


class TestStructuralComposition(unittest.TestCase):
    """``class X(Alias): ...`` declarations."""

    def setUp(self):
        self.resources = scan_source(CLASS_FORM, "people.py")
        self.person = self.resources[0]

    def test_class_name_is_the_name(self):
        self.assertEqual([r.name for r in self.resources], ["Person", "Manager"])
        self.assertEqual(self.person.declared_as, "Person")

    def test_properties(self):
        props = self.person.property_map()
        self.assertEqual(list(props), ["id", "age", "email"])
        self.assertEqual(props["id"].type, "STRING")
        self.assertTrue(props["id"].required)
        self.assertTrue(props["id"].unique)
        self.assertEqual(props["age"].type, "INTEGER")
        self.assertFalse(props["age"].required)
        self.assertTrue(props["email"].unique)

    def test_indexes(self):
        self.assertEqual(len(self.person.indexes), 1)
        index = self.person.indexes[0]
        self.assertEqual(index.type, "VECTOR")
        self.assertEqual(index.properties, ["embedding"])
        self.assertEqual(index.options, {"dimensions": 1536})

    def test_docstring_is_description(self):
        self.assertEqual(self.person.description, "A person in the organisation.")

    def test_annotation_forward_reference_is_dependency(self):
        self.assertEqual(self.person.dependencies, ["Manager"])

    def test_optional_annotation_is_dependency(self):
        source = b'class Employee(NodeType):\n    employer: Optional[Company]\n    manager: Employee\n'
        resource = scan_source(source)[0]
        self.assertEqual(resource.dependencies, ["Company"])

    def test_class_label_overrides_class_name(self):
        source = b'class Employment(RelationshipType):\n    label = "WORKS_FOR"\n    source = Person\n    target = "Company"\n'
        resource = scan_source(source)[0]
        self.assertEqual(resource.name, "WORKS_FOR")
        self.assertEqual(resource.source, "Person")
        self.assertEqual(resource.target, "Company")
        self.assertIn("Person", resource.dependencies)

    def test_unknown_constraint_type_kept_verbatim(self):
        source = b'class A(NodeType):\n    constraints = [Constraint(type=BOGUS, properties=["x"])]\n'
        resource = scan_source(source)[0]
        self.assertEqual(resource.constraints[0].type, "BOGUS")

    def test_non_resource_class_ignored(self):
        self.assertEqual(scan_source(b"class Helper(object):\n    pass\n"), [])


class TestResolveKind(unittest.TestCase):

    def test_plain_and_qualified(self):
        self.assertEqual(resolve_kind("NodeType"), ResourceKind.NODE_TYPE)
        self.assertEqual(resolve_kind("graphschema.RelationshipType"), ResourceKind.RELATIONSHIP_TYPE)
        self.assertEqual(resolve_kind("(PageRank)"), ResourceKind.ALGORITHM)

    def test_unknown(self):
        self.assertIsNone(resolve_kind("dict"))
        self.assertIsNone(resolve_kind(""))


class TestErrorsAndDuplicates(unittest.TestCase):

    def test_syntax_error_raises(self):
        with self.assertRaises(ScanError) as ctx:
            scan_source(b"class Broken(NodeType:\n    pass\n", "broken.py")
        self.assertEqual(ctx.exception.file_path, "broken.py")

    def test_duplicates_are_reported_and_later_wins(self):
        source = b'a = NodeType(label="Person")\nb = NodeType(label="Person")\n'
        resources = scan_source(source, "dup.py")
        with self.assertLogs("discovery.scanner", level="WARNING") as logs:
            duplicates = find_duplicates(resources)
        self.assertEqual(len(duplicates), 1)
        self.assertEqual(duplicates[0][1].declared_as, "b")
        self.assertIn("Duplicate", logs.output[0])

    def test_same_name_different_kind_is_not_duplicate(self):
        source = b'a = NodeType(label="OWNS")\nb = RelationshipType(label="OWNS")\n'
        self.assertEqual(find_duplicates(scan_source(source)), [])


class TestFileAndDirectoryScanning(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = self.tmpdir.name

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, relative, content):
        path = os.path.join(self.root, relative)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
        return path

    def test_scan_file(self):
        path = self._write("schema.py", PERSON_AND_WORKS_FOR)
        self.assertEqual(len(scan_file(path)), 2)

    def test_scan_file_missing(self):
        with self.assertRaises(FileNotFoundError):
            scan_file(os.path.join(self.root, "missing.py"))

    def test_scan_file_wrong_extension(self):
        path = self._write("schema.txt", b"")
        with self.assertRaises(UsageError):
            scan_file(path)

    def test_directory_skips_tests_and_vendored_dirs(self):
        self._write("a/nodes.py", b'a = NodeType(label="A")\n')
        self._write("b/rels.py", b'r = RelationshipType(label="R", source="A", target="A")\n')
        self._write("test_nodes.py", b'x = NodeType(label="X")\n')
        self._write("nodes_test.py", b'y = NodeType(label="Y")\n')
        self._write("vendor/lib.py", b'z = NodeType(label="Z")\n')
        self._write(".hidden/lib.py", b'h = NodeType(label="H")\n')

        files = [os.path.relpath(p, self.root) for p in discover_source_files(self.root)]
        self.assertEqual(files, [os.path.join("a", "nodes.py"), os.path.join("b", "rels.py")])

        resources, stats = scan_directory(self.root)
        self.assertEqual([r.name for r in resources], ["A", "R"])
        self.assertEqual(stats.files_processed, 2)

    def test_exclude_dirs(self):
        self._write("a/nodes.py", b'a = NodeType(label="A")\n')
        self._write("generated/nodes.py", b'g = NodeType(label="G")\n')
        resources, _ = scan_directory(self.root, exclude_dirs=["generated"])
        self.assertEqual([r.name for r in resources], ["A"])

    def test_malformed_file_skipped_in_directory_scan(self):
        self._write("good.py", b'a = NodeType(label="A")\n')
        self._write("bad.py", b"class Broken(NodeType:\n")
        with self.assertLogs("discovery.scanner", level="WARNING"):
            resources, stats = scan_directory(self.root)
        self.assertEqual([r.name for r in resources], ["A"])
        self.assertEqual(stats.files_failed, 1)

    def test_malformed_file_raises_when_not_continuing(self):
        self._write("bad.py", b"class Broken(NodeType:\n")
        with self.assertRaises(ScanError):
            scan_directory(self.root, continue_on_error=False)

    def test_scan_is_deterministic(self):
        self._write("b.py", b'b = NodeType(label="B")\n')
        self._write("a.py", b'a = NodeType(label="A")\n')
        first = [r.key for r in scan_path(self.root)]
        second = [r.key for r in scan_path(self.root)]
        self.assertEqual(first, second)
        self.assertEqual(first, [("NodeType", "A"), ("NodeType", "B")])

    def test_scan_path_missing(self):
        with self.assertRaises(FileNotFoundError):
            scan_path(os.path.join(self.root, "nope"))


if __name__ == "__main__":
    unittest.main()
