"""The BERT mapping schema.

Maps a Google BERT TensorFlow checkpoint (exported to a flat name → array
dump) onto `bertbridge.model.BertEncoder`. Source names are relative to the
checkpoint prefix ("bert" for the released checkpoints), which the driver
prepends.

Layout differences handled here:
- TF dense kernels are (in, out); torch Linear weights are (out, in).
- TF stores query/key/value as three kernels; nn.MultiheadAttention packs
  them into one in_proj_weight (3*hidden, hidden) and one in_proj_bias.
"""
from __future__ import annotations

from bertbridge.translate.schema import MappingEntry, MappingSchema, Op

BERT_SCHEMA_VERSION = 1

_LAYER = "encoder/layer_#"
_TARGET = "encoder.layers.#"

BERT_SCHEMA = MappingSchema(
    [
        # attention
        MappingEntry.of(
            f"{_TARGET}.self_attn.in_proj_weight",
            [
                f"{_LAYER}/attention/self/query/kernel",
                f"{_LAYER}/attention/self/key/kernel",
                f"{_LAYER}/attention/self/value/kernel",
            ],
            Op.STACK_TRANSPOSED,
        ),
        MappingEntry.of(
            f"{_TARGET}.self_attn.in_proj_bias",
            [
                f"{_LAYER}/attention/self/query/bias",
                f"{_LAYER}/attention/self/key/bias",
                f"{_LAYER}/attention/self/value/bias",
            ],
            Op.CONCAT,
        ),
        MappingEntry.of(f"{_TARGET}.self_attn.out_proj.weight", f"{_LAYER}/attention/output/dense/kernel", Op.TRANSPOSE),
        MappingEntry.of(f"{_TARGET}.self_attn.out_proj.bias", f"{_LAYER}/attention/output/dense/bias", Op.IDENTITY),
        MappingEntry.of(f"{_TARGET}.norm1.weight", f"{_LAYER}/attention/output/LayerNorm/gamma", Op.IDENTITY),
        MappingEntry.of(f"{_TARGET}.norm1.bias", f"{_LAYER}/attention/output/LayerNorm/beta", Op.IDENTITY),
        # feed-forward
        MappingEntry.of(f"{_TARGET}.linear1.weight", f"{_LAYER}/intermediate/dense/kernel", Op.TRANSPOSE),
        MappingEntry.of(f"{_TARGET}.linear1.bias", f"{_LAYER}/intermediate/dense/bias", Op.IDENTITY),
        MappingEntry.of(f"{_TARGET}.linear2.weight", f"{_LAYER}/output/dense/kernel", Op.TRANSPOSE),
        MappingEntry.of(f"{_TARGET}.linear2.bias", f"{_LAYER}/output/dense/bias", Op.IDENTITY),
        MappingEntry.of(f"{_TARGET}.norm2.weight", f"{_LAYER}/output/LayerNorm/gamma", Op.IDENTITY),
        MappingEntry.of(f"{_TARGET}.norm2.bias", f"{_LAYER}/output/LayerNorm/beta", Op.IDENTITY),
        # embeddings
        MappingEntry.of("embeddings.word_embeddings.weight", "embeddings/word_embeddings", Op.IDENTITY),
        MappingEntry.of("embeddings.position_embeddings.weight", "embeddings/position_embeddings", Op.IDENTITY),
        MappingEntry.of("embeddings.token_type_embeddings.weight", "embeddings/token_type_embeddings", Op.IDENTITY),
        MappingEntry.of("embeddings.layer_norm.weight", "embeddings/LayerNorm/gamma", Op.IDENTITY),
        MappingEntry.of("embeddings.layer_norm.bias", "embeddings/LayerNorm/beta", Op.IDENTITY),
        # pooler
        MappingEntry.of("pooler.weight", "pooler/dense/kernel", Op.TRANSPOSE),
        MappingEntry.of("pooler.bias", "pooler/dense/bias", Op.IDENTITY),
    ],
    name="bert",
    version=BERT_SCHEMA_VERSION,
)
