"""
GDS machine-learning pipeline declarations.

A pipeline bundles feature steps (node properties computed before training),
candidate models, and split settings for one of the three GDS pipeline
families.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from graphschema.base import MapMixin, apply_class_declarations, is_declaration_subclass


class PipelineType(str, Enum):
    NODE_CLASSIFICATION = "NodeClassification"
    LINK_PREDICTION = "LinkPrediction"
    NODE_REGRESSION = "NodeRegression"

    def __str__(self) -> str:
        return self.value


# Procedure namespace per pipeline family.
PROCEDURE_PREFIXES: dict[PipelineType, str] = {
    PipelineType.NODE_CLASSIFICATION: "gds.beta.pipeline.nodeClassification",
    PipelineType.LINK_PREDICTION: "gds.beta.pipeline.linkPrediction",
    PipelineType.NODE_REGRESSION: "gds.alpha.pipeline.nodeRegression",
}


# ---------------------------------------------------------------------------
# Feature steps
# ---------------------------------------------------------------------------


@dataclass
class FeatureStep(MapMixin):
    step_type: ClassVar[str] = ""

    property: str = field(default="", metadata={"exclude": True})

    def map_header(self) -> dict[str, Any]:
        return {"type": self.step_type, "mutateProperty": self.property}

    def params(self) -> dict[str, Any]:
        """Step configuration without the type and mutate property."""
        result = self.to_map()
        result.pop("type", None)
        result.pop("mutateProperty", None)
        return result


@dataclass
class FastRPStep(FeatureStep):
    step_type: ClassVar[str] = "fastRP"

    embedding_dimension: int = 0
    iteration_weights: list[float] = field(default_factory=list)
    normalization_strength: float = 0.0
    relationship_weight_property: str = ""


@dataclass
class PageRankStep(FeatureStep):
    step_type: ClassVar[str] = "pageRank"

    damping_factor: float = 0.0
    max_iterations: int = 0
    tolerance: float = 0.0


@dataclass
class DegreeStep(FeatureStep):
    step_type: ClassVar[str] = "degree"

    orientation: str = ""


@dataclass
class Node2VecStep(FeatureStep):
    step_type: ClassVar[str] = "node2vec"

    embedding_dimension: int = 0
    walk_length: int = 0
    walks_per_node: int = 0
    in_out_factor: float = 0.0
    return_factor: float = 0.0


@dataclass
class ScalerStep(FeatureStep):
    step_type: ClassVar[str] = "scaleProperties"

    scaler: str = ""
    node_properties: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Model candidates
# ---------------------------------------------------------------------------


@dataclass
class Model(MapMixin):
    model_type: ClassVar[str] = ""
    supported: ClassVar[tuple[PipelineType, ...]] = ()

    def map_header(self) -> dict[str, Any]:
        return {"type": self.model_type}

    def params(self) -> dict[str, Any]:
        result = self.to_map()
        result.pop("type", None)
        return result


@dataclass
class LogisticRegression(Model):
    model_type: ClassVar[str] = "LogisticRegression"
    supported: ClassVar[tuple[PipelineType, ...]] = (
        PipelineType.NODE_CLASSIFICATION,
        PipelineType.LINK_PREDICTION,
    )

    penalty: float = 0.0
    max_epochs: int = 0
    tolerance: float = 0.0
    min_epochs: int = 0
    patience: int = 0
    learning_rate: float = 0.0
    batch_size: int = 0


@dataclass
class RandomForest(Model):
    model_type: ClassVar[str] = "RandomForest"
    supported: ClassVar[tuple[PipelineType, ...]] = (
        PipelineType.NODE_CLASSIFICATION,
        PipelineType.LINK_PREDICTION,
        PipelineType.NODE_REGRESSION,
    )

    max_depth: int = 0
    number_of_decision_trees: int = 0
    min_split_size: int = 0
    max_features_ratio: float = 0.0
    min_leaf_size: int = 0
    number_of_samples_ratio: float = 0.0


@dataclass
class MLP(Model):
    model_type: ClassVar[str] = "MLP"
    supported: ClassVar[tuple[PipelineType, ...]] = (
        PipelineType.NODE_CLASSIFICATION,
        PipelineType.LINK_PREDICTION,
    )

    hidden_layer_sizes: list[int] = field(default_factory=list)
    learning_rate: float = 0.0
    max_epochs: int = 0
    batch_size: int = 0
    tolerance: float = 0.0
    patience: int = 0
    min_epochs: int = 0
    penalty: float = 0.0


@dataclass
class LinearRegression(Model):
    model_type: ClassVar[str] = "LinearRegression"
    supported: ClassVar[tuple[PipelineType, ...]] = (PipelineType.NODE_REGRESSION,)

    penalty: float = 0.0
    max_epochs: int = 0
    tolerance: float = 0.0
    learning_rate: float = 0.0
    batch_size: int = 0


@dataclass
class SplitConfig(MapMixin):
    test_fraction: float = 0.0
    validation_folds: int = 0
    random_seed: int = 0


@dataclass
class AutoTuningConfig(MapMixin):
    max_trials: int = 0


# ---------------------------------------------------------------------------
# Pipelines
# ---------------------------------------------------------------------------


@dataclass
class Pipeline(MapMixin):
    """Fields shared by every pipeline family."""

    pipeline_type: ClassVar[PipelineType] = PipelineType.NODE_CLASSIFICATION

    name: str = ""
    graph_name: str = ""
    model_name: str = ""
    node_labels: list[str] = field(default_factory=list)
    relationship_types: list[str] = field(default_factory=list)
    feature_steps: list[FeatureStep] = field(default_factory=list)
    models: list[Model] = field(default_factory=list)
    split_config: SplitConfig = field(default_factory=SplitConfig)
    auto_tuning: AutoTuningConfig = field(default_factory=AutoTuningConfig)

    def __post_init__(self) -> None:
        apply_class_declarations(self, Pipeline)
        if not self.name and is_declaration_subclass(self):
            self.name = type(self).__name__

    @property
    def procedure_prefix(self) -> str:
        return PROCEDURE_PREFIXES[self.pipeline_type]

    def map_header(self) -> dict[str, Any]:
        return {"name": self.name, "pipelineType": self.pipeline_type.value}

    def to_map(self) -> dict[str, Any]:
        result = super().to_map()
        for key in ("splitConfig", "autoTuning"):
            if key in result and not result[key]:
                del result[key]
        return result

    def target(self) -> str:
        """Training target (property or relationship type)."""
        return ""

    def train_config(self) -> dict[str, Any]:
        return {}


@dataclass
class NodeClassificationPipeline(Pipeline):
    pipeline_type: ClassVar[PipelineType] = PipelineType.NODE_CLASSIFICATION

    target_property: str = ""
    target_node_labels: list[str] = field(default_factory=list)
    feature_properties: list[str] = field(default_factory=list)

    def target(self) -> str:
        return self.target_property

    def train_config(self) -> dict[str, Any]:
        if self.target_node_labels:
            return {"targetNodeLabels": list(self.target_node_labels)}
        return {}


@dataclass
class LinkPredictionPipeline(Pipeline):
    pipeline_type: ClassVar[PipelineType] = PipelineType.LINK_PREDICTION

    target_relationship_type: str = ""
    source_node_labels: list[str] = field(default_factory=list)
    target_node_labels: list[str] = field(default_factory=list)
    feature_properties: list[str] = field(default_factory=list)
    negative_sampling_ratio: float = 0.0

    def target(self) -> str:
        return self.target_relationship_type

    def train_config(self) -> dict[str, Any]:
        config: dict[str, Any] = {}
        if self.source_node_labels:
            config["sourceNodeLabel"] = self.source_node_labels[0]
        if self.target_node_labels:
            config["targetNodeLabel"] = self.target_node_labels[0]
        if self.negative_sampling_ratio > 0:
            config["negativeSamplingRatio"] = self.negative_sampling_ratio
        return config


@dataclass
class NodeRegressionPipeline(Pipeline):
    pipeline_type: ClassVar[PipelineType] = PipelineType.NODE_REGRESSION

    target_property: str = ""
    target_node_labels: list[str] = field(default_factory=list)
    feature_properties: list[str] = field(default_factory=list)

    def target(self) -> str:
        return self.target_property

    def train_config(self) -> dict[str, Any]:
        if self.target_node_labels:
            return {"targetNodeLabels": list(self.target_node_labels)}
        return {}


PIPELINE_CLASSES: dict[str, type[Pipeline]] = {
    cls.__name__: cls
    for cls in (NodeClassificationPipeline, LinkPredictionPipeline, NodeRegressionPipeline)
}

PIPELINE_PART_CLASSES: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        FastRPStep, PageRankStep, DegreeStep, Node2VecStep, ScalerStep,
        LogisticRegression, RandomForest, MLP, LinearRegression,
        SplitConfig, AutoTuningConfig,
    )
}
