"""Manifest: the conversion job description.

A manifest names the checkpoint to read, the model it goes into, the
mapping schema to use and where to write the result. It's loaded from YAML
or JSON; relative paths are resolved against the manifest's directory.

    version: 1
    checkpoint: uncased_L-12_H-768_A-12/bert_model.npz
    bert_config: uncased_L-12_H-768_A-12/bert_config.json
    output: out/bert_classifier.safetensors
    prefix: bert
    num_labels: 2
"""
from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import model_validator

from bertbridge.config import Config, PositiveInt
from bertbridge.config.model import ModelConfig


class ConvertManifest(Config):
    """Everything needed for one checkpoint conversion.

    Exactly one of `bert_config` (a Google bert_config.json) or `model`
    (inline hyperparameters) must be given. `schema` defaults to the
    built-in BERT schema. A top-level `num_labels` overrides the head size
    from either source; without it, inline `model.num_labels` is kept and a
    bert_config.json gets 2.
    """

    version: PositiveInt = 1
    name: str | None = None
    checkpoint: Path
    output: Path
    bert_config: Path | None = None
    model: ModelConfig | None = None
    schema_path: Path | None = None
    prefix: str = "bert"
    num_labels: PositiveInt | None = None

    @model_validator(mode="before")
    @classmethod
    def _schema_alias(cls, data: object) -> object:
        if isinstance(data, dict) and "schema" in data:
            data = dict(data)
            data["schema_path"] = data.pop("schema")
        return data

    @model_validator(mode="after")
    def _one_model_source(self) -> "ConvertManifest":
        if (self.bert_config is None) == (self.model is None):
            raise ValueError("Manifest needs exactly one of 'bert_config' or 'model'")
        return self

    def target_config(self) -> ModelConfig:
        """Resolve the target model's hyperparameters."""
        if self.model is not None:
            if self.num_labels is None:
                return self.model
            return self.model.model_copy(update={"num_labels": self.num_labels})
        assert self.bert_config is not None
        return ModelConfig.from_bert_json(self.bert_config, num_labels=self.num_labels or 2)

    def resolved(self, base: Path) -> "ConvertManifest":
        """Return a copy with relative paths anchored at `base`."""

        def anchor(p: Path | None) -> Path | None:
            if p is None or p.is_absolute():
                return p
            return base / p

        return self.model_copy(
            update={
                "checkpoint": anchor(self.checkpoint),
                "output": anchor(self.output),
                "bert_config": anchor(self.bert_config),
                "schema_path": anchor(self.schema_path),
            }
        )

    @classmethod
    def from_path(cls, path: Path) -> "ConvertManifest":
        """Load and validate a manifest from a JSON or YAML file."""
        path = Path(path)
        text = path.read_text(encoding="utf-8")
        match path.suffix.lower():
            case ".json":
                payload = json.loads(text)
            case ".yml" | ".yaml":
                payload = yaml.safe_load(text)
            case s:
                raise ValueError(f"Unsupported format '{s}'")

        if payload is None:
            raise ValueError("Manifest payload is empty.")
        if not isinstance(payload, dict):
            raise ValueError(f"Manifest payload must be a dict, got {type(payload)!r}")

        return cls.model_validate(payload).resolved(path.parent)
