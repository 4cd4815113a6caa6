"""Declaration vocabulary for graph schemas, GDS analytics and GraphRAG.

Schema modules import from here::

    from graphschema import NodeType, Property, STRING

    person = NodeType(label="Person", properties=[Property(name="id", unique=True)])
"""

from graphschema.schema import (
    BOOL,
    BOOLEAN,
    BTREE,
    DATE,
    DATETIME,
    EXISTS,
    FLOAT,
    FULLTEXT,
    INT,
    INTEGER,
    LIST_FLOAT,
    LIST_INT,
    LIST_INTEGER,
    LIST_STRING,
    MANY_TO_MANY,
    MANY_TO_ONE,
    NODE_KEY,
    ONE_TO_MANY,
    ONE_TO_ONE,
    POINT,
    POINT_INDEX,
    RANGE,
    REL_KEY,
    STRING,
    TEXT,
    UNIQUE,
    VECTOR,
    Cardinality,
    Constraint,
    ConstraintType,
    Index,
    IndexType,
    NodeType,
    Property,
    PropertyType,
    RelationshipType,
    Schema,
)
from graphschema.algorithms import (
    ALGORITHM_CLASSES,
    AStar,
    Algorithm,
    ArticleRank,
    BFS,
    BellmanFord,
    Betweenness,
    Category,
    Closeness,
    DFS,
    Degree,
    Dijkstra,
    FastRP,
    GraphSAGE,
    HashGNN,
    KCore,
    KNN,
    LabelPropagation,
    Leiden,
    Louvain,
    Mode,
    MUTATE,
    Node2Vec,
    NodeSimilarity,
    PageRank,
    STATS,
    STREAM,
    TriangleCount,
    WCC,
    WRITE,
)
from graphschema.pipelines import (
    PIPELINE_CLASSES,
    AutoTuningConfig,
    DegreeStep,
    FastRPStep,
    LinearRegression,
    LinkPredictionPipeline,
    LogisticRegression,
    MLP,
    Node2VecStep,
    NodeClassificationPipeline,
    NodeRegressionPipeline,
    PageRankStep,
    Pipeline,
    PipelineType,
    RandomForest,
    ScalerStep,
    SplitConfig,
)
from graphschema.projections import (
    NATURAL,
    REVERSE,
    UNDIRECTED,
    Aggregation,
    CypherProjection,
    DataFrameProjection,
    NativeProjection,
    NodeDataFrame,
    NodeProjection,
    Orientation,
    Projection,
    ProjectionType,
    RelationshipDataFrame,
    RelationshipProjection,
)
from graphschema.retrievers import (
    RETRIEVER_CLASSES,
    CypherExample,
    EmbedderConfig,
    HybridCypherRetriever,
    HybridRetriever,
    PineconeNeo4jRetriever,
    QdrantNeo4jRetriever,
    Retriever,
    RetrieverType,
    Text2CypherRetriever,
    VectorCypherRetriever,
    VectorRetriever,
    WeaviateNeo4jRetriever,
)
from graphschema.kg import (
    CustomKGPipeline,
    EntityProperty,
    EntityType,
    ExactMatchResolver,
    FixedSizeSplitter,
    FuzzyMatchResolver,
    KGEmbedderConfig,
    KGPipeline,
    LangChainSplitter,
    LLMConfig,
    RelationProperty,
    RelationType,
    SemanticMatchResolver,
    SimpleKGPipeline,
)

__all__ = [name for name in dir() if not name.startswith("_")]
