"""Tests for resource listings and dependency-graph reports."""

import json
import unittest

from core.errors import UsageError
from discovery.models import DiscoveredResource, ResourceKind
from discovery.scanner import scan_source
from synthesis.reports import (
    format_dependencies,
    graph_dot,
    graph_mermaid,
    kind_counts,
    list_resources,
    render_graph,
    sanitize_mermaid_id,
    shorten_path,
)


SOURCE = b'''
person = NodeType(label="Person")
works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Company")
influence = PageRank(name="influence", graph_name="social")
'''


def _resource(name, deps=(), kind=ResourceKind.NODE_TYPE):
    return DiscoveredResource(name=name, kind=kind, file="schema/a.py", line=1, dependencies=list(deps))


class TestListing(unittest.TestCase):

    def setUp(self):
        self.resources = scan_source(SOURCE, "schema/org.py")

    def test_table(self):
        lines = list_resources(self.resources).splitlines()
        self.assertEqual(lines[0].split(), ["TYPE", "NAME", "FILE", "LINE"])
        self.assertEqual(lines[2].split(), ["Algorithm", "influence", "schema/org.py", "4"])
        self.assertEqual(lines[3].split(), ["NodeType", "Person", "schema/org.py", "2"])
        self.assertEqual(lines[4].split(), ["RelationshipType", "WORKS_FOR", "schema/org.py", "3"])
        self.assertIn("Total: 3 definitions", lines)
        self.assertIn("  NodeType: 1", lines)

    def test_table_columns_aligned(self):
        lines = list_resources(self.resources).splitlines()
        rows = [lines[0]] + lines[2:5]
        positions = {row.index(row.split()[1]) for row in rows}
        self.assertEqual(len(positions), 1)

    def test_json(self):
        data = json.loads(list_resources(self.resources, fmt="json"))
        self.assertEqual(list(data), ["Algorithm", "NodeType", "RelationshipType", "_summary"])
        self.assertEqual(data["NodeType"][0]["name"], "Person")
        self.assertEqual(data["NodeType"][0]["package"], "org")
        self.assertEqual(data["_summary"][0]["total"], 3)

    def test_kind_filter(self):
        text = list_resources(self.resources, kind=ResourceKind.RELATIONSHIP_TYPE)
        self.assertIn("WORKS_FOR", text)
        self.assertNotIn("NodeType", text)
        self.assertEqual(list_resources(self.resources, kind=ResourceKind.PIPELINE),
                         "No Pipeline definitions found")

    def test_empty(self):
        self.assertEqual(list_resources([]), "No definitions found")

    def test_bad_format(self):
        with self.assertRaises(UsageError):
            list_resources(self.resources, fmt="yaml")

    def test_kind_counts_sorted(self):
        self.assertEqual(list(kind_counts(self.resources)), ["Algorithm", "NodeType", "RelationshipType"])

    def test_shorten_path(self):
        self.assertEqual(shorten_path("/srv/schema/a.py", base="/srv"), "schema/a.py")
        self.assertEqual(shorten_path("/other/a.py", base="/srv"), "/other/a.py")
        self.assertEqual(shorten_path("/srv", base="/srv"), ".")


class TestDependencyReports(unittest.TestCase):

    def setUp(self):
        self.resources = [
            _resource("Company"),
            _resource("Person", ["Company"]),
            _resource("WORKS_FOR", ["Person", "Company"], ResourceKind.RELATIONSHIP_TYPE),
        ]

    def test_dependencies_and_build_order(self):
        text = format_dependencies(self.resources)
        self.assertEqual(text.splitlines(), [
            "Dependency Graph:",
            "-----------------",
            "Person -> Company",
            "WORKS_FOR -> Company, Person",
            "",
            "Build order:",
            "  1. Company (NodeType)",
            "  2. Person (NodeType)",
            "  3. WORKS_FOR (RelationshipType)",
        ])

    def test_cycle_reported_not_raised(self):
        text = format_dependencies([_resource("A", ["B"]), _resource("B", ["A"])])
        self.assertIn("Warning: Circular dependencies detected!", text)
        self.assertIn("  involved: A, B", text)
        self.assertNotIn("Build order:", text)

    def test_no_resources(self):
        self.assertEqual(format_dependencies([]), "No definitions found")

    def test_dot(self):
        text = graph_dot(self.resources)
        self.assertTrue(text.startswith("digraph dependencies {"))
        self.assertIn('"Person" -> "Company";', text)
        self.assertIn('"WORKS_FOR" -> "Person";', text)
        self.assertIn("fillcolor=lightgreen", text)
        self.assertTrue(text.endswith("}"))

    def test_mermaid(self):
        text = graph_mermaid(self.resources)
        self.assertTrue(text.startswith("graph TD\n"))
        self.assertIn('  Person["Person [NodeType]"]', text)
        self.assertIn("  WORKS_FOR --> Company", text)

    def test_render_graph_formats(self):
        self.assertEqual(render_graph(self.resources, "graphviz"), graph_dot(self.resources))
        self.assertEqual(render_graph(self.resources, "MERMAID"), graph_mermaid(self.resources))
        with self.assertRaises(UsageError):
            render_graph(self.resources, "svg")

    def test_sanitize_mermaid_id(self):
        self.assertEqual(sanitize_mermaid_id("my-node name"), "my_node_name")


if __name__ == "__main__":
    unittest.main()
