"""
Graph Data Science algorithm declarations.

Each class maps to one GDS procedure family; the execution mode picks the
procedure suffix (``gds.pageRank.stream``, ``gds.pageRank.write``, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional

from graphschema.base import MapMixin, apply_class_declarations, is_declaration_subclass


class Mode(str, Enum):
    STREAM = "stream"
    STATS = "stats"
    MUTATE = "mutate"
    WRITE = "write"

    def __str__(self) -> str:
        return self.value


class Category(str, Enum):
    CENTRALITY = "Centrality"
    COMMUNITY = "Community"
    SIMILARITY = "Similarity"
    PATH_FINDING = "PathFinding"
    EMBEDDINGS = "Embeddings"
    LINK_PREDICTION = "LinkPrediction"

    def __str__(self) -> str:
        return self.value


STREAM = Mode.STREAM
STATS = Mode.STATS
MUTATE = Mode.MUTATE
WRITE = Mode.WRITE

# Keys describing the call itself rather than its configuration map.
META_KEYS = frozenset({"name", "graphName", "mode", "algorithmType", "category"})


@dataclass
class Algorithm(MapMixin):
    """Fields shared by every algorithm."""

    procedure: ClassVar[str] = ""
    category: ClassVar[Category] = Category.CENTRALITY

    name: str = ""
    graph_name: str = ""
    mode: Optional[Mode] = None
    concurrency: int = 0
    node_labels: list[str] = field(default_factory=list)
    relationship_types: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        apply_class_declarations(self, Algorithm)
        if not self.name and is_declaration_subclass(self):
            self.name = type(self).__name__

    @property
    def algorithm_type(self) -> str:
        return self.procedure

    def effective_mode(self) -> Mode:
        """Mode to execute in; unset means stream."""
        return Mode(self.mode) if self.mode else Mode.STREAM

    def to_map(self) -> dict[str, Any]:
        result = super().to_map()
        result["algorithmType"] = self.procedure
        result["category"] = self.category.value
        return result

    def config(self) -> dict[str, Any]:
        """Configuration entries passed in the procedure's config map."""
        return {k: v for k, v in self.to_map().items() if k not in META_KEYS}


# ---------------------------------------------------------------------------
# Centrality
# ---------------------------------------------------------------------------


@dataclass
class PageRank(Algorithm):
    procedure: ClassVar[str] = "gds.pageRank"
    category: ClassVar[Category] = Category.CENTRALITY

    damping_factor: float = 0.0
    max_iterations: int = 0
    tolerance: float = 0.0
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class ArticleRank(Algorithm):
    procedure: ClassVar[str] = "gds.articleRank"
    category: ClassVar[Category] = Category.CENTRALITY

    damping_factor: float = 0.0
    max_iterations: int = 0
    tolerance: float = 0.0
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class Betweenness(Algorithm):
    procedure: ClassVar[str] = "gds.betweenness"
    category: ClassVar[Category] = Category.CENTRALITY

    sampling_size: int = 0
    sampling_seed: int = 0
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class Degree(Algorithm):
    procedure: ClassVar[str] = "gds.degree"
    category: ClassVar[Category] = Category.CENTRALITY

    orientation: str = ""
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class Closeness(Algorithm):
    procedure: ClassVar[str] = "gds.closeness"
    category: ClassVar[Category] = Category.CENTRALITY

    use_wasserman_faust: bool = False
    write_property: str = ""
    mutate_property: str = ""


# ---------------------------------------------------------------------------
# Community detection
# ---------------------------------------------------------------------------


@dataclass
class Louvain(Algorithm):
    procedure: ClassVar[str] = "gds.louvain"
    category: ClassVar[Category] = Category.COMMUNITY

    max_levels: int = 0
    max_iterations: int = 0
    tolerance: float = 0.0
    include_intermediate_communities: bool = False
    seed_property: str = ""
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class Leiden(Algorithm):
    procedure: ClassVar[str] = "gds.leiden"
    category: ClassVar[Category] = Category.COMMUNITY

    max_levels: int = 0
    gamma: float = 0.0
    theta: float = 0.0
    tolerance: float = 0.0
    include_intermediate_communities: bool = False
    random_seed: int = 0
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class LabelPropagation(Algorithm):
    procedure: ClassVar[str] = "gds.labelPropagation"
    category: ClassVar[Category] = Category.COMMUNITY

    max_iterations: int = 0
    seed_property: str = ""
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class WCC(Algorithm):
    procedure: ClassVar[str] = "gds.wcc"
    category: ClassVar[Category] = Category.COMMUNITY

    seed_property: str = ""
    relationship_weight_property: str = ""
    threshold: float = 0.0
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class TriangleCount(Algorithm):
    procedure: ClassVar[str] = "gds.triangleCount"
    category: ClassVar[Category] = Category.COMMUNITY

    max_degree: int = 0
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class KCore(Algorithm):
    procedure: ClassVar[str] = "gds.kcore"
    category: ClassVar[Category] = Category.COMMUNITY

    k: int = 0
    write_property: str = ""
    mutate_property: str = ""


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


@dataclass
class NodeSimilarity(Algorithm):
    procedure: ClassVar[str] = "gds.nodeSimilarity"
    category: ClassVar[Category] = Category.SIMILARITY

    similarity_cutoff: float = 0.0
    degree_cutoff: int = 0
    top_k: int = 0
    top_n: int = 0
    similarity_metric: str = ""
    write_relationship_type: str = ""
    write_property: str = ""


@dataclass
class KNN(Algorithm):
    procedure: ClassVar[str] = "gds.knn"
    category: ClassVar[Category] = Category.SIMILARITY

    top_k: int = 0
    similarity_cutoff: float = 0.0
    sample_rate: float = 0.0
    delta_threshold: float = 0.0
    max_iterations: int = 0
    random_joins: int = 0
    node_properties: list[str] = field(default_factory=list)
    write_relationship_type: str = ""
    write_property: str = ""


# ---------------------------------------------------------------------------
# Node embeddings
# ---------------------------------------------------------------------------


@dataclass
class FastRP(Algorithm):
    procedure: ClassVar[str] = "gds.fastRP"
    category: ClassVar[Category] = Category.EMBEDDINGS

    embedding_dimension: int = 0
    iteration_weights: list[float] = field(default_factory=list)
    normalization_strength: float = 0.0
    property_ratio: float = 0.0
    node_self_influence: float = 0.0
    feature_properties: list[str] = field(default_factory=list)
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class Node2Vec(Algorithm):
    procedure: ClassVar[str] = "gds.node2vec"
    category: ClassVar[Category] = Category.EMBEDDINGS

    embedding_dimension: int = 0
    walk_length: int = 0
    walks_per_node: int = 0
    in_out_factor: float = 0.0
    return_factor: float = 0.0
    window_size: int = 0
    negative_sampling_rate: int = 0
    positive_sampling_factor: float = 0.0
    iterations: int = 0
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class GraphSAGE(Algorithm):
    procedure: ClassVar[str] = "gds.beta.graphSage"
    category: ClassVar[Category] = Category.EMBEDDINGS

    embedding_dimension: int = 0
    aggregator: str = ""
    activation_function: str = ""
    sample_sizes: list[int] = field(default_factory=list)
    feature_properties: list[str] = field(default_factory=list)
    epochs: int = 0
    learning_rate: float = 0.0
    batch_size: int = 0
    tolerance: float = 0.0
    relationship_weight_property: str = ""
    model_name: str = ""
    write_property: str = ""
    mutate_property: str = ""


@dataclass
class HashGNN(Algorithm):
    procedure: ClassVar[str] = "gds.hashgnn"
    category: ClassVar[Category] = Category.EMBEDDINGS

    embedding_density: int = 0
    iterations: int = 0
    neighbor_influence: float = 0.0
    feature_properties: list[str] = field(default_factory=list)
    relationship_weight_property: str = ""
    write_property: str = ""
    mutate_property: str = ""


# ---------------------------------------------------------------------------
# Path finding
# ---------------------------------------------------------------------------


@dataclass
class Dijkstra(Algorithm):
    procedure: ClassVar[str] = "gds.shortestPath.dijkstra"
    category: ClassVar[Category] = Category.PATH_FINDING

    source_node: Any = None
    target_node: Any = None
    relationship_weight_property: str = ""
    write_property: str = ""


@dataclass
class AStar(Algorithm):
    procedure: ClassVar[str] = "gds.shortestPath.astar"
    category: ClassVar[Category] = Category.PATH_FINDING

    source_node: Any = None
    target_node: Any = None
    relationship_weight_property: str = ""
    latitude_property: str = ""
    longitude_property: str = ""
    write_property: str = ""


@dataclass
class BellmanFord(Algorithm):
    procedure: ClassVar[str] = "gds.bellmanFord"
    category: ClassVar[Category] = Category.PATH_FINDING

    source_node: Any = None
    relationship_weight_property: str = ""
    write_property: str = ""


@dataclass
class BFS(Algorithm):
    procedure: ClassVar[str] = "gds.bfs"
    category: ClassVar[Category] = Category.PATH_FINDING

    source_node: Any = None
    target_nodes: list[Any] = field(default_factory=list)
    max_depth: int = 0


@dataclass
class DFS(Algorithm):
    procedure: ClassVar[str] = "gds.dfs"
    category: ClassVar[Category] = Category.PATH_FINDING

    source_node: Any = None
    target_nodes: list[Any] = field(default_factory=list)
    max_depth: int = 0


ALGORITHM_CLASSES: dict[str, type[Algorithm]] = {
    cls.__name__: cls
    for cls in (
        PageRank, ArticleRank, Betweenness, Degree, Closeness,
        Louvain, Leiden, LabelPropagation, WCC, TriangleCount, KCore,
        NodeSimilarity, KNN,
        FastRP, Node2Vec, GraphSAGE, HashGNN,
        Dijkstra, AStar, BellmanFord, BFS, DFS,
    )
}
