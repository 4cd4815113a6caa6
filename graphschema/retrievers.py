"""
GraphRAG retriever declarations (neo4j-graphrag retriever families).

Connection credentials are deliberately not part of the serialized form:
``to_map`` only carries retrieval configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from graphschema.base import MapMixin, apply_class_declarations, is_declaration_subclass


class RetrieverType(str, Enum):
    VECTOR = "Vector"
    VECTOR_CYPHER = "VectorCypher"
    HYBRID = "Hybrid"
    HYBRID_CYPHER = "HybridCypher"
    TEXT2CYPHER = "Text2Cypher"
    WEAVIATE = "Weaviate"
    PINECONE = "Pinecone"
    QDRANT = "Qdrant"

    def __str__(self) -> str:
        return self.value


@dataclass
class EmbedderConfig(MapMixin):
    provider: str = ""
    model: str = ""
    api_key: str = ""
    dimensions: int = 0


@dataclass
class CypherExample(MapMixin):
    question: str = ""
    cypher: str = ""


@dataclass
class Retriever(MapMixin):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.VECTOR

    name: str = ""
    neo4j_uri: str = field(default="", metadata={"exclude": True})
    neo4j_user: str = field(default="", metadata={"exclude": True})
    neo4j_password: str = field(default="", metadata={"exclude": True})
    neo4j_database: str = field(default="", metadata={"exclude": True})

    def __post_init__(self) -> None:
        apply_class_declarations(self, Retriever)
        if not self.name and is_declaration_subclass(self):
            self.name = type(self).__name__

    def map_header(self) -> dict[str, Any]:
        return {"name": self.name, "retrieverType": self.retriever_type.value}


@dataclass
class VectorRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.VECTOR

    index_name: str = ""
    embedder_model: str = ""
    embedder_config: EmbedderConfig | None = None
    top_k: int = 0
    return_properties: list[str] = field(default_factory=list)
    score_threshold: float = 0.0


@dataclass
class VectorCypherRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.VECTOR_CYPHER

    index_name: str = ""
    embedder_model: str = ""
    embedder_config: EmbedderConfig | None = None
    retrieval_query: str = ""
    top_k: int = 0
    score_threshold: float = 0.0


@dataclass
class HybridRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.HYBRID

    vector_index_name: str = ""
    fulltext_index_name: str = ""
    embedder_model: str = ""
    embedder_config: EmbedderConfig | None = None
    top_k: int = 0
    return_properties: list[str] = field(default_factory=list)
    vector_weight: float = 0.0
    fulltext_weight: float = 0.0


@dataclass
class HybridCypherRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.HYBRID_CYPHER

    vector_index_name: str = ""
    fulltext_index_name: str = ""
    embedder_model: str = ""
    embedder_config: EmbedderConfig | None = None
    retrieval_query: str = ""
    top_k: int = 0
    vector_weight: float = 0.0
    fulltext_weight: float = 0.0


@dataclass
class Text2CypherRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.TEXT2CYPHER

    llm_model: str = ""
    llm_provider: str = ""
    llm_api_key: str = ""
    schema_description: str = ""
    examples: list[CypherExample] = field(default_factory=list)
    max_retries: int = 0


@dataclass
class WeaviateNeo4jRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.WEAVIATE

    weaviate_url: str = ""
    weaviate_api_key: str = ""
    collection: str = ""
    top_k: int = 0
    retrieval_query: str = ""
    id_property: str = ""


@dataclass
class PineconeNeo4jRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.PINECONE

    pinecone_api_key: str = ""
    pinecone_host: str = ""
    index_name: str = ""
    namespace: str = ""
    top_k: int = 0
    retrieval_query: str = ""
    id_property: str = ""


@dataclass
class QdrantNeo4jRetriever(Retriever):
    retriever_type: ClassVar[RetrieverType] = RetrieverType.QDRANT

    qdrant_url: str = ""
    qdrant_api_key: str = ""
    collection_name: str = ""
    top_k: int = 0
    retrieval_query: str = ""
    id_property: str = ""


RETRIEVER_CLASSES: dict[str, type[Retriever]] = {
    cls.__name__: cls
    for cls in (
        VectorRetriever, VectorCypherRetriever, HybridRetriever,
        HybridCypherRetriever, Text2CypherRetriever, WeaviateNeo4jRetriever,
        PineconeNeo4jRetriever, QdrantNeo4jRetriever,
    )
}

RETRIEVER_PART_CLASSES: dict[str, type] = {
    "EmbedderConfig": EmbedderConfig,
    "CypherExample": CypherExample,
}
