"""Translator driver: apply a mapping schema to a model in one pass.

For every concrete entry, in expansion order:

    checkpoint lookups → combine → target lookup → shape check → assign

The first failure aborts the pass. Entries after the failing one are never
touched; entries before it have already been written, so a model whose
translation failed must not be used.
"""
from __future__ import annotations

from dataclasses import dataclass

from bertbridge.translate.combine import combine
from bertbridge.translate.errors import ShapeMismatch, TranslationError
from bertbridge.translate.expand import expand
from bertbridge.translate.schema import ConcreteEntry, MappingSchema
from bertbridge.translate.store import CheckpointStore, ParameterStore
from bertbridge.translate.tensor import ShapedTensor


@dataclass(frozen=True, slots=True)
class TranslationSummary:
    """What a successful translation wrote."""

    schema: str
    layer_count: int
    prefix: str
    entries: int
    parameters: tuple[str, ...]
    elements: int

    def as_dict(self) -> dict[str, object]:
        return {
            "schema": self.schema,
            "layers": self.layer_count,
            "prefix": self.prefix or "(none)",
            "entries": self.entries,
            "parameters": len(self.parameters),
            "elements": f"{self.elements:,}",
        }


def _apply(entry: ConcreteEntry, checkpoint: CheckpointStore, parameters: ParameterStore) -> ShapedTensor:
    sources = [checkpoint.lookup(name) for name in entry.sources]
    value = combine(sources, entry.op)
    handle = parameters.lookup(entry.target)
    if value.shape != handle.shape:
        raise ShapeMismatch.for_target(entry.target, handle.shape, value.shape)
    handle.assign(value)
    return value


def translate(
    schema: MappingSchema,
    checkpoint: CheckpointStore,
    parameters: ParameterStore,
    layer_count: int,
    *,
    prefix: str = "",
) -> TranslationSummary:
    """Write every parameter described by `schema` from `checkpoint`.

    The schema must cover the parameter store exactly; this is checked before
    any tensor is read, so a partially covered model is never reported as
    translated. Raises a TranslationError subclass carrying a
    TranslationReport on the first failure.
    """
    schema.check_coverage(parameters.names(), layer_count)
    entries = expand(schema, layer_count, prefix=prefix)

    written: list[str] = []
    elements = 0
    for entry in entries:
        try:
            value = _apply(entry, checkpoint, parameters)
        except TranslationError as e:
            raise e.at(entry)
        written.append(entry.target)
        elements += value.data.numel()

    return TranslationSummary(
        schema=schema.name,
        layer_count=layer_count,
        prefix=prefix,
        entries=len(entries),
        parameters=tuple(written),
        elements=elements,
    )
