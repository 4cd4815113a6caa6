"""
Unit tests for builder.py

Tests scan-to-model conversion, dependency-ordered rendering in both output
formats, writing to disk and the runtime loading path.
"""

import json
import os
import tempfile
import unittest

from core.errors import CycleError, UnsupportedConstructError, UsageError
from discovery.scanner import scan_source
from graphschema import Mode, NodeType, PageRank, Schema
from synthesis.builder import (
    SCHEMA_SECTION_HEADER,
    build,
    detect_format,
    load_declarations,
    render,
    render_models,
    resources_to_models,
)


ORG_SCHEMA = b'''
from graphschema import NodeType, RelationshipType, Property, Schema, PageRank, WRITE, STRING

person = NodeType(label="Person", properties=[Property(name="id", type=STRING, unique=True)])
company = NodeType(label="Company", properties=[Property(name="name", required=True)])
works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Company")
influence = PageRank(name="influence", graph_name="social", mode=WRITE, write_property="score")
schema = Schema(name="org", nodes=[person, company], relationships=[works_for])
'''

CYCLIC = b'''
class A(NodeType):
    other: "B"


class B(NodeType):
    other: "A"
'''

RUNTIME_DECLARATIONS = '''
from graphschema import NativeProjection, NodeType, Property

person = NodeType(label="Person", properties=[Property(name="id", unique=True)])
social = NativeProjection(name="social", node_labels=["Person"])


class Company(NodeType):
    properties = [Property(name="name", required=True)]
'''


class TestDetectFormat(unittest.TestCase):

    def test_extensions(self):
        self.assertEqual(detect_format("out.json"), "json")
        self.assertEqual(detect_format("out.CYPHER"), "cypher")
        self.assertEqual(detect_format("out.cql"), "cypher")
        self.assertEqual(detect_format("out.txt"), "cypher")
        self.assertEqual(detect_format(None), "cypher")


class TestResourcesToModels(unittest.TestCase):

    def setUp(self):
        self.resources = scan_source(ORG_SCHEMA, "org.py")

    def test_models_mirror_resources(self):
        models = resources_to_models(self.resources)
        person, company, works_for, influence, schema = models
        self.assertIsInstance(person, NodeType)
        self.assertTrue(person.properties[0].unique)
        self.assertTrue(company.properties[0].required)
        self.assertEqual((works_for.source, works_for.target), ("Person", "Company"))
        self.assertIsInstance(influence, PageRank)
        self.assertEqual(influence.mode, Mode.WRITE)
        self.assertEqual(influence.write_property, "score")
        self.assertIsInstance(schema, Schema)

    def test_schema_members_resolve_to_declared_models(self):
        models = resources_to_models(self.resources)
        schema = models[-1]
        self.assertIs(schema.nodes[0], models[0])
        self.assertIs(schema.nodes[1], models[1])
        self.assertIs(schema.relationships[0], models[2])

    def test_unknown_constraint_type_rejected(self):
        resources = scan_source(b'class A(NodeType):\n    constraints = [Constraint(type=BOGUS, properties=["x"])]\n')
        with self.assertRaises(UnsupportedConstructError):
            resources_to_models(resources)


class TestRender(unittest.TestCase):

    def setUp(self):
        self.resources = scan_source(ORG_SCHEMA, "org.py")

    def test_cypher_sections_in_dependency_order(self):
        text = render(self.resources, "cypher")
        self.assertTrue(text.startswith(SCHEMA_SECTION_HEADER + "\n// Company constraints and indexes"))
        self.assertLess(text.index("company_name_not_null"), text.index("person_id_unique"))
        self.assertLess(text.index("person_id_unique"), text.index("CALL gds.pageRank.write("))
        # schema wrapper members are not rendered twice
        self.assertEqual(text.count("company_name_not_null"), 1)

    def test_relationship_without_constraints_not_rendered(self):
        self.assertNotIn("WORKS_FOR", render(self.resources, "cypher"))

    def test_json_document(self):
        document = json.loads(render(self.resources, "json"))
        self.assertEqual(list(document), ["nodeTypes", "relationshipTypes", "algorithms"])
        self.assertEqual([n["label"] for n in document["nodeTypes"]], ["Company", "Person"])
        self.assertEqual(document["relationshipTypes"][0],
                         {"label": "WORKS_FOR", "source": "Person", "target": "Company"})
        algorithm = document["algorithms"][0]
        self.assertEqual(algorithm["name"], "influence")
        self.assertEqual(algorithm["mode"], "write")
        self.assertEqual(algorithm["algorithmType"], "gds.pageRank")

    def test_output_is_deterministic(self):
        reordered = list(reversed(self.resources))
        self.assertEqual(render(self.resources, "cypher"), render(reordered, "cypher"))

    def test_unsupported_format(self):
        with self.assertRaises(UsageError):
            render(self.resources, "yaml")

    def test_cycle(self):
        with self.assertRaises(CycleError) as ctx:
            render(scan_source(CYCLIC), "cypher")
        self.assertEqual(ctx.exception.remaining, ["A", "B"])

    def test_empty(self):
        self.assertEqual(render([], "cypher"), "")
        self.assertEqual(json.loads(render([], "json")), {})


class TestBuild(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = self.tmpdir.name
        self.schema_dir = os.path.join(self.root, "schema")
        os.makedirs(self.schema_dir)
        with open(os.path.join(self.schema_dir, "org.py"), "wb") as f:
            f.write(ORG_SCHEMA)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_build_writes_file_with_detected_format(self):
        output = os.path.join(self.root, "schema.json")
        text = build(self.schema_dir, output=output)
        with open(output, "r", encoding="utf-8") as f:
            written = f.read()
        self.assertEqual(written, text + "\n")
        self.assertIn("nodeTypes", json.loads(written))

    def test_build_returns_cypher_without_output(self):
        text = build(self.schema_dir)
        self.assertIn("CREATE CONSTRAINT person_id_unique", text)

    def test_explicit_format_wins(self):
        output = os.path.join(self.root, "schema.cypher")
        text = build(self.schema_dir, fmt="json", output=output)
        self.assertTrue(text.startswith("{"))

    def test_bad_format(self):
        with self.assertRaises(UsageError):
            build(self.schema_dir, fmt="yaml")

    def test_missing_path(self):
        with self.assertRaises(FileNotFoundError):
            build(os.path.join(self.root, "nope"))

    def test_empty_directory_logs_warning(self):
        empty = os.path.join(self.root, "empty")
        os.makedirs(empty)
        with self.assertLogs("synthesis.builder", level="WARNING"):
            self.assertEqual(build(empty), "")


class TestLoadDeclarations(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = self.tmpdir.name

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, name, content):
        path = os.path.join(self.root, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_collects_instances_and_subclasses(self):
        path = self._write("decls.py", RUNTIME_DECLARATIONS)
        declarations = load_declarations(path)
        labels = [getattr(d, "label", getattr(d, "name", "")) for d in declarations]
        self.assertEqual(labels, ["Person", "social", "Company"])
        self.assertEqual(declarations[2].properties[0].name, "name")

    def test_render_loaded_declarations(self):
        self._write("decls.py", RUNTIME_DECLARATIONS)
        text = render_models(load_declarations(self.root), "cypher")
        self.assertIn("person_id_unique", text)
        self.assertIn("company_name_not_null", text)
        self.assertIn("CALL gds.graph.project(\n  'social'", text)

    def test_import_failure_is_usage_error(self):
        path = self._write("broken.py", "raise RuntimeError('boom')\n")
        with self.assertRaises(UsageError):
            load_declarations(path)

    def test_missing_path(self):
        with self.assertRaises(FileNotFoundError):
            load_declarations(os.path.join(self.root, "missing.py"))


if __name__ == "__main__":
    unittest.main()
