"""
Knowledge-graph construction pipeline declarations (neo4j-graphrag).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional

from graphschema.base import MapMixin, apply_class_declarations, is_declaration_subclass


class KGPipelineType(str, Enum):
    SIMPLE = "SimpleKG"
    CUSTOM = "CustomKG"

    def __str__(self) -> str:
        return self.value


@dataclass
class LLMConfig(MapMixin):
    provider: str = ""
    model: str = ""
    api_key: str = ""
    temperature: float = 0.0
    max_tokens: int = 0
    top_p: float = 0.0


@dataclass
class KGEmbedderConfig(MapMixin):
    provider: str = ""
    model: str = ""
    api_key: str = ""
    dimensions: int = 0


@dataclass
class EntityProperty(MapMixin):
    name: str = field(default="", metadata={"keep": True})
    type: str = ""
    description: str = ""
    required: bool = False


@dataclass
class EntityType(MapMixin):
    name: str = field(default="", metadata={"keep": True})
    description: str = ""
    properties: list[EntityProperty] = field(default_factory=list)


@dataclass
class RelationProperty(MapMixin):
    name: str = field(default="", metadata={"keep": True})
    type: str = ""
    description: str = ""


@dataclass
class RelationType(MapMixin):
    name: str = field(default="", metadata={"keep": True})
    description: str = ""
    source_types: list[str] = field(default_factory=list)
    target_types: list[str] = field(default_factory=list)
    properties: list[RelationProperty] = field(default_factory=list)


@dataclass
class TextSplitter(MapMixin):
    splitter_type: ClassVar[str] = ""

    def map_header(self) -> dict[str, Any]:
        return {"type": self.splitter_type}


@dataclass
class FixedSizeSplitter(TextSplitter):
    splitter_type: ClassVar[str] = "fixed_size"

    chunk_size: int = 0
    chunk_overlap: int = 0


@dataclass
class LangChainSplitter(TextSplitter):
    splitter_type: ClassVar[str] = "langchain"

    splitter_class: str = ""
    chunk_size: int = 0
    chunk_overlap: int = 0
    separators: list[str] = field(default_factory=list)


@dataclass
class EntityResolver(MapMixin):
    resolver_type: ClassVar[str] = ""

    resolve_property: str = ""

    def map_header(self) -> dict[str, Any]:
        return {"type": self.resolver_type}


@dataclass
class ExactMatchResolver(EntityResolver):
    resolver_type: ClassVar[str] = "exact_match"


@dataclass
class FuzzyMatchResolver(EntityResolver):
    resolver_type: ClassVar[str] = "fuzzy_match"

    threshold: float = 0.0


@dataclass
class SemanticMatchResolver(EntityResolver):
    resolver_type: ClassVar[str] = "semantic_match"

    threshold: float = 0.0
    model: str = ""


@dataclass
class KGPipeline(MapMixin):
    pipeline_type: ClassVar[KGPipelineType] = KGPipelineType.SIMPLE

    name: str = ""
    neo4j_uri: str = ""
    neo4j_user: str = ""
    neo4j_password: str = ""
    neo4j_database: str = ""
    llm_config: Optional[LLMConfig] = None
    embedder_config: Optional[KGEmbedderConfig] = None

    def __post_init__(self) -> None:
        apply_class_declarations(self, KGPipeline)
        if not self.name and is_declaration_subclass(self):
            self.name = type(self).__name__

    def map_header(self) -> dict[str, Any]:
        return {"name": self.name, "pipelineType": self.pipeline_type.value}


@dataclass
class SimpleKGPipeline(KGPipeline):
    pipeline_type: ClassVar[KGPipelineType] = KGPipelineType.SIMPLE

    entity_types: list[EntityType] = field(default_factory=list)
    relation_types: list[RelationType] = field(default_factory=list)
    text_splitter: Optional[TextSplitter] = None
    entity_resolver: Optional[EntityResolver] = None
    # None means "library default"; False must survive serialization.
    perform_entity_resolution: Optional[bool] = field(default=None, metadata={"keep": True})
    from_pdf: bool = field(default=False, metadata={"key": "fromPDF"})
    on_error: str = ""

    def to_map(self) -> dict[str, Any]:
        result = super().to_map()
        if self.perform_entity_resolution is None:
            result.pop("performEntityResolution", None)
        return result


@dataclass
class CustomKGPipeline(KGPipeline):
    pipeline_type: ClassVar[KGPipelineType] = KGPipelineType.CUSTOM

    extraction_prompt: str = ""
    schema_prompt: str = ""
    text_splitter: Optional[TextSplitter] = None
    entity_resolver: Optional[EntityResolver] = None
    on_error: str = ""


KG_PIPELINE_CLASSES: dict[str, type[KGPipeline]] = {
    "SimpleKGPipeline": SimpleKGPipeline,
    "CustomKGPipeline": CustomKGPipeline,
}

KG_PART_CLASSES: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        LLMConfig, KGEmbedderConfig, EntityProperty, EntityType, RelationProperty,
        RelationType, FixedSizeSplitter, LangChainSplitter, ExactMatchResolver,
        FuzzyMatchResolver, SemanticMatchResolver,
    )
}
