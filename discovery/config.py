"""
Configuration constants for declaration discovery.

Defines the tree-sitter node types the scanner walks, the alias table that
maps declaration type names to resource kinds, and the vocabulary excluded
from dependency inference.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping, Set, Tuple

from discovery.models import ResourceKind

# ---------------------------------------------------------------------------
# Resource-kind alias table (process-wide constant)
# ---------------------------------------------------------------------------
_ALIASES = {
    # Schema
    "Schema": ResourceKind.SCHEMA,
    "NodeType": ResourceKind.NODE_TYPE,
    "RelationshipType": ResourceKind.RELATIONSHIP_TYPE,
    # Algorithms
    "PageRank": ResourceKind.ALGORITHM,
    "ArticleRank": ResourceKind.ALGORITHM,
    "Betweenness": ResourceKind.ALGORITHM,
    "Closeness": ResourceKind.ALGORITHM,
    "Degree": ResourceKind.ALGORITHM,
    "Louvain": ResourceKind.ALGORITHM,
    "Leiden": ResourceKind.ALGORITHM,
    "LabelPropagation": ResourceKind.ALGORITHM,
    "WCC": ResourceKind.ALGORITHM,
    "KCore": ResourceKind.ALGORITHM,
    "TriangleCount": ResourceKind.ALGORITHM,
    "NodeSimilarity": ResourceKind.ALGORITHM,
    "KNN": ResourceKind.ALGORITHM,
    "Dijkstra": ResourceKind.ALGORITHM,
    "AStar": ResourceKind.ALGORITHM,
    "BellmanFord": ResourceKind.ALGORITHM,
    "BFS": ResourceKind.ALGORITHM,
    "DFS": ResourceKind.ALGORITHM,
    "FastRP": ResourceKind.ALGORITHM,
    "GraphSAGE": ResourceKind.ALGORITHM,
    "Node2Vec": ResourceKind.ALGORITHM,
    "HashGNN": ResourceKind.ALGORITHM,
    # ML pipelines
    "NodeClassificationPipeline": ResourceKind.PIPELINE,
    "LinkPredictionPipeline": ResourceKind.PIPELINE,
    "NodeRegressionPipeline": ResourceKind.PIPELINE,
    # GraphRAG retrievers
    "VectorRetriever": ResourceKind.RETRIEVER,
    "VectorCypherRetriever": ResourceKind.RETRIEVER,
    "HybridRetriever": ResourceKind.RETRIEVER,
    "HybridCypherRetriever": ResourceKind.RETRIEVER,
    "Text2CypherRetriever": ResourceKind.RETRIEVER,
    "WeaviateNeo4jRetriever": ResourceKind.RETRIEVER,
    "PineconeNeo4jRetriever": ResourceKind.RETRIEVER,
    "QdrantNeo4jRetriever": ResourceKind.RETRIEVER,
}

RESOURCE_KIND_ALIASES: Mapping[str, ResourceKind] = MappingProxyType(_ALIASES)

# ---------------------------------------------------------------------------
# Dependency-inference exclusions
# ---------------------------------------------------------------------------

# Capitalised Python builtins and typing names that never denote a resource.
BUILTIN_TYPE_NAMES: FrozenSet[str] = frozenset({
    "True", "False", "None", "Ellipsis", "NotImplemented",
    "Any", "Optional", "Union", "List", "Dict", "Set", "FrozenSet", "Tuple",
    "Sequence", "Mapping", "MutableMapping", "Iterable", "Iterator",
    "Callable", "Type", "ClassVar", "Final", "Literal", "Annotated",
    "TypeVar", "Generic", "Protocol", "NamedTuple", "TypedDict",
    "Exception", "BaseException", "ValueError", "TypeError", "KeyError",
    "RuntimeError", "Enum", "IntEnum", "Path", "Decimal",
})

# Declaration vocabulary: helper types, enums and constants from graphschema.
SCHEMA_VOCABULARY: FrozenSet[str] = frozenset({
    "Property", "Constraint", "Index", "PropertyType", "ConstraintType",
    "IndexType", "Cardinality", "Mode", "Category", "PipelineType",
    "ProjectionType", "Orientation", "Aggregation", "RetrieverType",
    "STRING", "INTEGER", "INT", "FLOAT", "BOOLEAN", "BOOL", "DATE", "DATETIME",
    "POINT", "LIST_STRING", "LIST_INTEGER", "LIST_INT", "LIST_FLOAT",
    "ONE_TO_ONE", "ONE_TO_MANY", "MANY_TO_ONE", "MANY_TO_MANY",
    "UNIQUE", "EXISTS", "NODE_KEY", "REL_KEY",
    "BTREE", "RANGE", "TEXT", "FULLTEXT", "POINT_INDEX", "VECTOR",
    "STREAM", "STATS", "MUTATE", "WRITE", "NATURAL", "REVERSE", "UNDIRECTED",
    "FastRPStep", "PageRankStep", "DegreeStep", "Node2VecStep", "ScalerStep",
    "LogisticRegression", "RandomForest", "MLP", "LinearRegression",
    "SplitConfig", "AutoTuningConfig",
    "NodeProjection", "RelationshipProjection", "NodeDataFrame",
    "RelationshipDataFrame", "EmbedderConfig", "CypherExample",
})

# ---------------------------------------------------------------------------
# Literal field names recognised in declarations
# ---------------------------------------------------------------------------
NAME_FIELDS: Tuple[str, ...] = ("label", "name")
PROPERTIES_FIELD: str = "properties"
CONSTRAINTS_FIELD: str = "constraints"
INDEXES_FIELD: str = "indexes"
SOURCE_FIELD: str = "source"
TARGET_FIELD: str = "target"
AGENT_CONTEXT_FIELD: str = "agent_context"
DESCRIPTION_FIELD: str = "description"

# Positional-argument order for helper constructors.
POSITIONAL_FIELDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "Property": ("name", "type", "required", "unique"),
    "Constraint": ("type", "properties", "name"),
    "Index": ("type", "properties", "name", "options"),
})

# ---------------------------------------------------------------------------
# Type-constant aliases
# ---------------------------------------------------------------------------
PROPERTY_TYPE_ALIASES: Mapping[str, str] = MappingProxyType({
    "STRING": "STRING", "StringType": "STRING", "str": "STRING",
    "INTEGER": "INTEGER", "INT": "INTEGER", "IntType": "INTEGER", "int": "INTEGER",
    "FLOAT": "FLOAT", "FloatType": "FLOAT", "float": "FLOAT",
    "BOOLEAN": "BOOLEAN", "BOOL": "BOOLEAN", "BoolType": "BOOLEAN", "bool": "BOOLEAN",
    "DATE": "DATE", "DateType": "DATE",
    "DATETIME": "DATETIME", "DateTimeType": "DATETIME",
    "POINT": "POINT", "PointType": "POINT",
    "LIST_STRING": "LIST_STRING", "ListStringType": "LIST_STRING",
    "LIST_INTEGER": "LIST_INTEGER", "LIST_INT": "LIST_INTEGER", "ListIntType": "LIST_INTEGER",
    "LIST_FLOAT": "LIST_FLOAT", "ListFloatType": "LIST_FLOAT",
})
DEFAULT_PROPERTY_TYPE: str = "STRING"

CONSTRAINT_TYPE_ALIASES: Mapping[str, str] = MappingProxyType({
    "UNIQUE": "UNIQUE", "UNIQUENESS": "UNIQUE",
    "EXISTS": "EXISTS", "EXISTENCE": "EXISTS", "NOT_NULL": "EXISTS",
    "NODE_KEY": "NODE_KEY", "REL_KEY": "REL_KEY", "RELATIONSHIP_KEY": "REL_KEY",
})

INDEX_TYPE_ALIASES: Mapping[str, str] = MappingProxyType({
    "BTREE": "BTREE", "RANGE": "BTREE",
    "TEXT": "TEXT", "FULLTEXT": "FULLTEXT",
    "POINT": "POINT", "POINT_INDEX": "POINT",
    "VECTOR": "VECTOR",
})

# ---------------------------------------------------------------------------
# tree-sitter-python node types
# ---------------------------------------------------------------------------
CLASS_DEFINITION: str = "class_definition"
DECORATED_DEFINITION: str = "decorated_definition"
EXPRESSION_STATEMENT: str = "expression_statement"
ASSIGNMENT: str = "assignment"
CALL: str = "call"
IDENTIFIER: str = "identifier"
ATTRIBUTE: str = "attribute"
KEYWORD_ARGUMENT: str = "keyword_argument"
STRING_NODES: FrozenSet[str] = frozenset({"string", "concatenated_string"})
NUMBER_NODES: FrozenSet[str] = frozenset({"integer", "float"})
SEQUENCE_NODES: FrozenSet[str] = frozenset({"list", "tuple", "set"})
# Wrappers transparently unwrapped when resolving a constructed value.
TRANSPARENT_WRAPPERS: FrozenSet[str] = frozenset({"parenthesized_expression"})
# Module-level statements whose bodies may hold declarations.
CONTAINER_STATEMENTS: FrozenSet[str] = frozenset({
    "if_statement", "else_clause", "elif_clause", "try_statement",
    "except_clause", "finally_clause", "with_statement", "block",
})

# ---------------------------------------------------------------------------
# Directory scanning
# ---------------------------------------------------------------------------
SOURCE_EXTENSIONS: Set[str] = {".py"}

SKIP_DIRS: FrozenSet[str] = frozenset({
    "vendor", "third_party", "thirdparty", "node_modules", "__pycache__",
    "venv", "env", "site-packages", "build", "dist", "testdata",
})

TEST_FILE_PREFIXES: Tuple[str, ...] = ("test_",)
TEST_FILE_SUFFIXES: Tuple[str, ...] = ("_test.py",)
TEST_FILE_NAMES: FrozenSet[str] = frozenset({"conftest.py"})
