"""On-disk mapping schema format.

A schema file lists (target, sources, op) triples:

    version: 1
    name: bert
    entries:
      - target: encoder.layers.#.self_attn.in_proj_bias
        sources:
          - encoder/layer_#/attention/self/query/bias
          - encoder/layer_#/attention/self/key/bias
          - encoder/layer_#/attention/self/value/bias
        op: concat

`sources` may be a single string. Op names and template consistency are
checked when the file is turned into a MappingSchema.
"""
from __future__ import annotations

from pydantic import field_validator

from bertbridge.config import Config, NonEmptyStr, PositiveInt


class EntryConfig(Config):
    """One (target, sources, op) triple."""

    target: NonEmptyStr
    sources: list[NonEmptyStr]
    op: NonEmptyStr

    @field_validator("sources", mode="before")
    @classmethod
    def _single_source(cls, v: object) -> object:
        if isinstance(v, str):
            return [v]
        return v


class SchemaFile(Config):
    """Top-level schema document."""

    version: PositiveInt = 1
    name: NonEmptyStr = "schema"
    entries: list[EntryConfig]
