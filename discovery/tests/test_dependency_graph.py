"""
Unit tests for graph.py

Tests topological ordering, cycle detection and transitive dependency
queries over discovered resources.
"""

import unittest

from core.errors import CycleError
from discovery.graph import DependencyGraph, build_graph
from discovery.models import DiscoveredResource, ResourceKind
from discovery.scanner import scan_source


def _node(name, deps=(), kind=ResourceKind.NODE_TYPE):
    return DiscoveredResource(name=name, kind=kind, dependencies=list(deps))


class TestTopologicalSort(unittest.TestCase):

    def test_dependencies_precede_dependents(self):
        resources = [
            _node("WORKS_FOR", ["Person", "Company"], ResourceKind.RELATIONSHIP_TYPE),
            _node("Person", ["Company"]),
            _node("Company"),
        ]
        ordered = [r.name for r in DependencyGraph(resources).topological_sort()]
        self.assertEqual(ordered, ["Company", "Person", "WORKS_FOR"])

    def test_ties_broken_by_name(self):
        resources = [_node("Zeta"), _node("Alpha"), _node("Mu")]
        ordered = [r.name for r in DependencyGraph(resources).topological_sort()]
        self.assertEqual(ordered, ["Alpha", "Mu", "Zeta"])

    def test_order_independent_of_input_order(self):
        resources = [_node("C", ["A"]), _node("B", ["A"]), _node("A"), _node("D", ["B", "C"])]
        first = [r.name for r in DependencyGraph(resources).topological_sort()]
        second = [r.name for r in DependencyGraph(list(reversed(resources))).topological_sort()]
        self.assertEqual(first, ["A", "B", "C", "D"])
        self.assertEqual(first, second)

    def test_every_edge_respected(self):
        resources = [
            _node("E", ["D"]), _node("D", ["B", "C"]), _node("C", ["A"]),
            _node("B", ["A"]), _node("A"),
        ]
        graph = DependencyGraph(resources)
        ordered = graph.topological_sort()
        position = {r.name: i for i, r in enumerate(ordered)}
        self.assertEqual(len(ordered), len(resources))
        for dependent, dependency in graph.edges():
            self.assertLess(position[dependency.name], position[dependent.name])

    def test_dangling_references_dropped(self):
        resources = [_node("Person", ["Company", "Missing"])]
        graph = DependencyGraph(resources)
        self.assertEqual([r.name for r in graph.topological_sort()], ["Person"])
        self.assertEqual(graph.dependencies_of("Person"), [])

    def test_self_reference_ignored(self):
        graph = DependencyGraph([_node("Person", ["Person"])])
        self.assertFalse(graph.has_cycle())
        self.assertEqual(graph.dependencies_of("Person"), [])

    def test_person_works_for_scenario(self):
        source = (
            b'person = NodeType(label="Person")\n'
            b'works_for = RelationshipType(label="WORKS_FOR", source="Person", target="Company")\n'
        )
        resources = scan_source(source)
        ordered = DependencyGraph(resources).topological_sort()
        self.assertEqual([r.name for r in ordered], ["Person", "WORKS_FOR"])
        self.assertEqual(DependencyGraph(resources).edges(), [])

    def test_empty(self):
        graph = build_graph([])
        self.assertEqual(graph.topological_sort(), [])
        self.assertFalse(graph.has_cycle())
        self.assertEqual(len(graph), 0)


class TestCycles(unittest.TestCase):

    def test_two_node_cycle(self):
        graph = DependencyGraph([_node("A", ["B"]), _node("B", ["A"])])
        self.assertTrue(graph.has_cycle())
        with self.assertRaises(CycleError) as ctx:
            graph.topological_sort()
        self.assertEqual(ctx.exception.remaining, ["A", "B"])

    def test_cycle_reports_only_involved_resources(self):
        graph = DependencyGraph([
            _node("Root"),
            _node("A", ["B", "Root"]),
            _node("B", ["C"]),
            _node("C", ["A"]),
        ])
        with self.assertRaises(CycleError) as ctx:
            graph.topological_sort()
        self.assertEqual(ctx.exception.remaining, ["A", "B", "C"])

    def test_acyclic(self):
        graph = DependencyGraph([_node("A"), _node("B", ["A"])])
        self.assertFalse(graph.has_cycle())


class TestQueries(unittest.TestCase):

    def setUp(self):
        self.graph = DependencyGraph([
            _node("A"),
            _node("B", ["A"]),
            _node("C", ["B"]),
            _node("D", ["C", "A"]),
        ])

    def test_transitive_dependencies(self):
        self.assertEqual(self.graph.transitive_dependencies("D"), ["A", "B", "C"])
        self.assertEqual(self.graph.transitive_dependencies("B"), ["A"])
        self.assertEqual(self.graph.transitive_dependencies("A"), [])

    def test_transitive_dependencies_unknown_name(self):
        self.assertEqual(self.graph.transitive_dependencies("Nope"), [])

    def test_transitive_dependencies_in_cycle(self):
        graph = DependencyGraph([_node("A", ["B"]), _node("B", ["A"])])
        self.assertEqual(graph.transitive_dependencies("A"), ["B"])

    def test_dependencies_of_sorted(self):
        self.assertEqual(self.graph.dependencies_of("D"), ["A", "C"])

    def test_contains(self):
        self.assertIn("A", self.graph)
        self.assertNotIn("Z", self.graph)

    def test_duplicate_keys_collapse(self):
        graph = DependencyGraph([_node("A"), _node("A", ["B"]), _node("B")])
        self.assertEqual(len(graph), 2)
        self.assertEqual(graph.dependencies_of("A"), ["B"])

    def test_same_name_across_kinds(self):
        graph = DependencyGraph([
            _node("OWNS"),
            _node("OWNS", kind=ResourceKind.RELATIONSHIP_TYPE),
            _node("Audit", ["OWNS"]),
        ])
        ordered = graph.topological_sort()
        self.assertEqual(len(ordered), 3)
        self.assertEqual(ordered[-1].name, "Audit")


if __name__ == "__main__":
    unittest.main()
