"""BERT encoder and classifier built from torch.nn primitives.

Attention and feed-forward math come from nn.TransformerEncoderLayer; this
module only wires embeddings, the encoder stack and the pooler together so
the parameter names line up with `bertbridge.translate.BERT_SCHEMA`:

    embeddings.word_embeddings.weight
    encoder.layers.{i}.self_attn.in_proj_weight
    pooler.weight
    ...
"""
from __future__ import annotations

import torch
from torch import Tensor, nn

from bertbridge.config.model import ModelConfig


class BertEmbeddings(nn.Module):
    """Sum of token, position and segment embeddings, then LayerNorm + dropout."""

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self.word_embeddings = nn.Embedding(config.vocab_size, config.hidden_size)
        self.position_embeddings = nn.Embedding(config.max_position_embeddings, config.hidden_size)
        self.token_type_embeddings = nn.Embedding(config.type_vocab_size, config.hidden_size)
        self.layer_norm = nn.LayerNorm(config.hidden_size, eps=config.layer_norm_eps)
        self.dropout = nn.Dropout(config.dropout)
        self.register_buffer(
            "position_ids",
            torch.arange(config.max_position_embeddings).unsqueeze(0),
            persistent=False,
        )

    def forward(self, input_ids: Tensor, token_type_ids: Tensor | None = None) -> Tensor:
        seq_len = input_ids.size(1)
        if token_type_ids is None:
            token_type_ids = torch.zeros_like(input_ids)
        x = (
            self.word_embeddings(input_ids)
            + self.position_embeddings(self.position_ids[:, :seq_len])
            + self.token_type_embeddings(token_type_ids)
        )
        return self.dropout(self.layer_norm(x))


class BertEncoder(nn.Module):
    """The pretrained part of BERT: embeddings, encoder stack, pooler.

    This is the module a checkpoint is translated into; the classification
    head is not part of the pretrained checkpoint.
    """

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self.config = config
        self.embeddings = BertEmbeddings(config)
        layer = nn.TransformerEncoderLayer(
            d_model=config.hidden_size,
            nhead=config.num_heads,
            dim_feedforward=config.intermediate_size,
            dropout=config.dropout,
            activation=config.hidden_act,
            layer_norm_eps=config.layer_norm_eps,
            batch_first=True,
            norm_first=False,
        )
        self.encoder = nn.TransformerEncoder(
            layer, num_layers=config.num_layers, enable_nested_tensor=False
        )
        self.pooler = nn.Linear(config.hidden_size, config.hidden_size)

    def forward(
        self,
        input_ids: Tensor,
        token_type_ids: Tensor | None = None,
        attention_mask: Tensor | None = None,
    ) -> tuple[Tensor, Tensor]:
        """Return (sequence_output, pooled_output).

        attention_mask follows the BERT convention: 1 for real tokens, 0 for
        padding.
        """
        padding_mask = None if attention_mask is None else attention_mask == 0
        hidden = self.encoder(
            self.embeddings(input_ids, token_type_ids),
            src_key_padding_mask=padding_mask,
        )
        pooled = torch.tanh(self.pooler(hidden[:, 0]))
        return hidden, pooled


class BertClassifier(nn.Module):
    """BertEncoder plus a dropout + linear classification head."""

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self.config = config
        self.bert = BertEncoder(config)
        self.dropout = nn.Dropout(config.dropout)
        self.classifier = nn.Linear(config.hidden_size, config.num_labels)

    def forward(
        self,
        input_ids: Tensor,
        token_type_ids: Tensor | None = None,
        attention_mask: Tensor | None = None,
    ) -> Tensor:
        _, pooled = self.bert(input_ids, token_type_ids, attention_mask)
        return self.classifier(self.dropout(pooled))
