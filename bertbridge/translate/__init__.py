"""Checkpoint weight translation.

Reconciles a TensorFlow-style checkpoint namespace with a torch model's
parameter namespace: a declarative schema, wildcard expansion over repeated
layers, per-entry tensor combination and shape-checked assignment.

Usage:
    from bertbridge.translate import BERT_SCHEMA, translate
    from bertbridge.translate import ModuleParameterStore, TensorCheckpointStore

    translate(
        BERT_SCHEMA,
        TensorCheckpointStore(state_dict),
        ModuleParameterStore(model.bert),
        layer_count=12,
        prefix="bert",
    )
"""
from __future__ import annotations

from bertbridge.translate.bert import BERT_SCHEMA
from bertbridge.translate.combine import combine
from bertbridge.translate.driver import TranslationSummary, translate
from bertbridge.translate.errors import (
    ArityMismatch,
    ErrorKind,
    InvalidLayerCount,
    InvalidSourceTensor,
    MissingSourceTensor,
    MissingTargetParameter,
    SchemaError,
    ShapeMismatch,
    TranslationError,
    TranslationReport,
)
from bertbridge.translate.expand import expand
from bertbridge.translate.schema import (
    LAYER_PLACEHOLDER,
    ConcreteEntry,
    MappingEntry,
    MappingSchema,
    NameTemplate,
    Op,
)
from bertbridge.translate.store import (
    CheckpointStore,
    ModuleParameterStore,
    ParameterHandle,
    ParameterStore,
    TensorCheckpointStore,
    TensorParameterStore,
)
from bertbridge.translate.tensor import ShapedTensor

__all__ = [
    "ArityMismatch",
    "BERT_SCHEMA",
    "CheckpointStore",
    "ConcreteEntry",
    "ErrorKind",
    "InvalidLayerCount",
    "InvalidSourceTensor",
    "LAYER_PLACEHOLDER",
    "MappingEntry",
    "MappingSchema",
    "MissingSourceTensor",
    "MissingTargetParameter",
    "ModuleParameterStore",
    "NameTemplate",
    "Op",
    "ParameterHandle",
    "ParameterStore",
    "SchemaError",
    "ShapeMismatch",
    "ShapedTensor",
    "TensorCheckpointStore",
    "TensorParameterStore",
    "TranslationError",
    "TranslationReport",
    "TranslationSummary",
    "combine",
    "expand",
    "translate",
]
