"""Model configuration: BERT hyperparameters for the target encoder.

Field names follow the torch side. `from_bert_json` reads the
`bert_config.json` shipped with Google's released checkpoints, which uses
its own names (num_hidden_layers, hidden_dropout_prob, ...).
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import model_validator

from bertbridge.config import Config, PositiveFloat, PositiveInt, Probability


class ModelConfig(Config):
    """Hyperparameters for a BERT encoder and its classification head."""

    vocab_size: PositiveInt
    hidden_size: PositiveInt = 768
    num_layers: PositiveInt = 12
    num_heads: PositiveInt = 12
    intermediate_size: PositiveInt = 3072
    max_position_embeddings: PositiveInt = 512
    type_vocab_size: PositiveInt = 2
    hidden_act: Literal["gelu", "relu"] = "gelu"
    layer_norm_eps: PositiveFloat = 1e-12
    dropout: Probability = 0.1
    num_labels: PositiveInt = 2

    @model_validator(mode="after")
    def _heads_divide_hidden(self) -> "ModelConfig":
        if self.hidden_size % self.num_heads != 0:
            raise ValueError(
                f"hidden_size ({self.hidden_size}) must be divisible by "
                f"num_heads ({self.num_heads})"
            )
        return self

    @classmethod
    def from_bert_json(cls, path: Path, *, num_labels: int = 2) -> "ModelConfig":
        """Load a Google-format bert_config.json."""
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"BERT config must be a dict, got {type(payload)!r}")
        try:
            return cls(
                vocab_size=payload["vocab_size"],
                hidden_size=payload["hidden_size"],
                num_layers=payload["num_hidden_layers"],
                num_heads=payload["num_attention_heads"],
                intermediate_size=payload["intermediate_size"],
                max_position_embeddings=payload.get("max_position_embeddings", 512),
                type_vocab_size=payload.get("type_vocab_size", 2),
                hidden_act=payload.get("hidden_act", "gelu"),
                dropout=payload.get("hidden_dropout_prob", 0.1),
                num_labels=num_labels,
            )
        except KeyError as e:
            raise ValueError(f"BERT config {path} is missing {e.args[0]!r}") from e
