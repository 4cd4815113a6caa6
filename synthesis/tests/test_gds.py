"""Tests for GDS algorithm, pipeline and projection rendering."""

import unittest

from core.errors import UnsupportedConstructError
from graphschema import (
    WRITE,
    UNDIRECTED,
    Algorithm,
    CypherProjection,
    DataFrameProjection,
    FastRPStep,
    LinkPredictionPipeline,
    LogisticRegression,
    Louvain,
    NativeProjection,
    NodeClassificationPipeline,
    NodeProjection,
    PageRank,
    Projection,
    RandomForest,
    RelationshipProjection,
    SplitConfig,
)
from synthesis.gds import (
    algorithm_to_cypher,
    algorithms_to_cypher,
    drop_graph,
    format_labels,
    format_value,
    pipeline_to_cypher,
    projection_to_cypher,
)

NC_PREFIX = "gds.beta.pipeline.nodeClassification"


class TestFormatValue(unittest.TestCase):

    def test_scalars(self):
        self.assertEqual(format_value("x"), "'x'")
        self.assertEqual(format_value(True), "true")
        self.assertEqual(format_value(False), "false")
        self.assertEqual(format_value(None), "null")
        self.assertEqual(format_value(0.85), "0.85")
        self.assertEqual(format_value(WRITE), "'write'")

    def test_containers(self):
        self.assertEqual(format_value(["a", 1]), "['a', 1]")
        self.assertEqual(format_value({"k": [1, 2]}), "{k: [1, 2]}")

    def test_labels(self):
        self.assertEqual(format_labels([]), "'*'")
        self.assertEqual(format_labels(["Person"]), "'Person'")
        self.assertEqual(format_labels(["A", "B"]), "['A', 'B']")


class TestAlgorithms(unittest.TestCase):

    def test_pagerank_write(self):
        pr = PageRank(
            name="influence", graph_name="social", mode=WRITE,
            damping_factor=0.85, max_iterations=20, write_property="pagerank",
        )
        self.assertEqual(
            algorithm_to_cypher(pr),
            "CALL gds.pageRank.write(\n"
            "  'social',\n"
            "  {\n"
            "    dampingFactor: 0.85,\n"
            "    maxIterations: 20,\n"
            "    writeProperty: 'pagerank'\n"
            "  }\n"
            ")\n"
            "YIELD nodePropertiesWritten, computeMillis",
        )

    def test_stream_is_default_without_config(self):
        self.assertEqual(
            algorithm_to_cypher(Louvain(name="communities", graph_name="g")),
            "CALL gds.louvain.stream(\n  'g'\n)\nYIELD nodeId, communityId",
        )

    def test_config_keeps_declaration_order(self):
        pr = PageRank(name="p", graph_name="g", write_property="w", damping_factor=0.5)
        statement = algorithm_to_cypher(pr)
        self.assertLess(statement.index("dampingFactor"), statement.index("writeProperty"))

    def test_labels_are_configuration(self):
        pr = PageRank(name="p", graph_name="g", node_labels=["Person"])
        self.assertIn("nodeLabels: ['Person']", algorithm_to_cypher(pr))

    def test_algorithm_without_procedure_rejected(self):
        with self.assertRaises(UnsupportedConstructError):
            algorithm_to_cypher(Algorithm(name="bare", graph_name="g"))

    def test_multiple_algorithms_headed(self):
        text = algorithms_to_cypher([
            PageRank(name="pr", graph_name="g"),
            Louvain(name="lv", graph_name="g"),
        ])
        self.assertTrue(text.startswith("// pr - gds.pageRank\nCALL gds.pageRank.stream("))
        self.assertIn("\n\n// lv - gds.louvain\n", text)


class TestPipelines(unittest.TestCase):

    def setUp(self):
        self.pipeline = NodeClassificationPipeline(
            name="churn",
            graph_name="customers",
            target_property="churned",
            feature_steps=[FastRPStep(property="embedding", embedding_dimension=64)],
            models=[LogisticRegression(penalty=0.1), RandomForest()],
            split_config=SplitConfig(test_fraction=0.3),
        )

    def test_statement_sequence(self):
        statements = pipeline_to_cypher(self.pipeline).split(";\n\n")
        self.assertEqual(len(statements), 6)
        self.assertEqual(statements[0], f"CALL {NC_PREFIX}.create('churn')")
        self.assertEqual(
            statements[1],
            f"CALL {NC_PREFIX}.addNodeProperty(\n"
            "  'churn',\n"
            "  'fastRP',\n"
            "  {\n"
            "    mutateProperty: 'embedding',\n"
            "    embeddingDimension: 64\n"
            "  }\n"
            ")",
        )
        self.assertEqual(
            statements[2],
            f"CALL {NC_PREFIX}.addLogisticRegression(\n  'churn',\n  {{\n    penalty: 0.1\n  }}\n)",
        )
        self.assertEqual(statements[3], f"CALL {NC_PREFIX}.addRandomForest(\n  'churn',\n  {{}}\n)")
        self.assertEqual(
            statements[4],
            f"CALL {NC_PREFIX}.configureSplit(\n"
            "  'churn',\n"
            "  {\n"
            "    testFraction: 0.3,\n"
            "    validationFolds: 5\n"
            "  }\n"
            ")",
        )
        self.assertEqual(
            statements[5],
            f"CALL {NC_PREFIX}.train(\n"
            "  'customers',\n"
            "  {\n"
            "    pipeline: 'churn',\n"
            "    targetProperty: 'churned',\n"
            "    modelName: 'churn-model'\n"
            "  }\n"
            ") YIELD modelInfo\n"
            "RETURN modelInfo;",
        )

    def test_graph_and_model_overrides(self):
        text = pipeline_to_cypher(self.pipeline, graph_name="other", model_name="m1")
        self.assertIn(f"CALL {NC_PREFIX}.train(\n  'other'", text)
        self.assertIn("modelName: 'm1'", text)

    def test_no_split_without_settings(self):
        pipeline = NodeClassificationPipeline(name="p", target_property="t")
        text = pipeline_to_cypher(pipeline)
        self.assertNotIn("configureSplit", text)
        self.assertIn("CALL gds.beta.pipeline.nodeClassification.train(\n  'graph'", text)

    def test_link_prediction_target_is_relationship_type(self):
        pipeline = LinkPredictionPipeline(
            name="friends",
            target_relationship_type="KNOWS",
            source_node_labels=["Person"],
            target_node_labels=["Person"],
        )
        text = pipeline_to_cypher(pipeline)
        self.assertTrue(text.startswith("CALL gds.beta.pipeline.linkPrediction.create('friends')"))
        self.assertIn("targetProperty: 'KNOWS'", text)
        self.assertIn("sourceNodeLabel: 'Person'", text)
        self.assertIn("targetNodeLabel: 'Person'", text)


class TestProjections(unittest.TestCase):

    def test_simple_native(self):
        projection = NativeProjection(name="social", node_labels=["Person"],
                                      relationship_types=["KNOWS", "FOLLOWS"])
        self.assertEqual(
            projection_to_cypher(projection),
            "CALL gds.graph.project(\n"
            "  'social',\n"
            "  'Person',\n"
            "  ['KNOWS', 'FOLLOWS']\n"
            ")\n"
            "YIELD graphName, nodeCount, relationshipCount",
        )

    def test_native_defaults_to_all(self):
        text = projection_to_cypher(NativeProjection(name="everything"))
        self.assertIn("  'everything',\n  '*',\n  '*'\n)", text)

    def test_native_with_configured_projections(self):
        projection = NativeProjection(
            name="social",
            node_projections_config=[NodeProjection(label="Person", properties=["age"])],
            relationship_projections_config=[
                RelationshipProjection(type="KNOWS", orientation=UNDIRECTED),
            ],
            read_concurrency=4,
        )
        text = projection_to_cypher(projection)
        self.assertIn("Person: {\n      label: 'Person',\n      properties: 'age'\n    }", text)
        self.assertIn("KNOWS: {\n      type: 'KNOWS',\n      orientation: 'UNDIRECTED'\n    }", text)
        self.assertIn("readConcurrency: 4", text)

    def test_cypher_projection_escapes_quotes(self):
        projection = CypherProjection(
            name="filtered",
            node_query="MATCH (n) WHERE n.kind = 'a' RETURN id(n) AS id",
            relationship_query="MATCH (a)-->(b) RETURN id(a) AS source, id(b) AS target",
            validate_relationships=True,
        )
        text = projection_to_cypher(projection)
        self.assertTrue(text.startswith("CALL gds.graph.project.cypher(\n  'filtered',"))
        self.assertIn("n.kind = \\'a\\'", text)
        self.assertIn("validateRelationships: true", text)

    def test_dataframe_projection_is_a_comment(self):
        text = projection_to_cypher(DataFrameProjection(name="frames"))
        for line in text.splitlines():
            self.assertTrue(line.startswith("//"))

    def test_unknown_projection_rejected(self):
        with self.assertRaises(UnsupportedConstructError):
            projection_to_cypher(Projection(name="base"))

    def test_graph_helpers(self):
        self.assertEqual(drop_graph("g"), "CALL gds.graph.drop('g') YIELD graphName")


if __name__ == "__main__":
    unittest.main()
