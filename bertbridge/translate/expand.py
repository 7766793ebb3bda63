"""
expand resolves layer placeholders in a schema into concrete entries.
"""
from __future__ import annotations

from bertbridge.translate.errors import InvalidLayerCount, SchemaError
from bertbridge.translate.schema import ConcreteEntry, MappingEntry, MappingSchema


def _join(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


def expand(schema: MappingSchema, layer_count: int, prefix: str = "") -> list[ConcreteEntry]:
    """Expand every entry of `schema` for `layer_count` repeated layers.

    Templated entries come first, each one expanded for layers 0..L-1 in
    ascending order, then fixed entries in schema order. Source names get
    `prefix/` prepended when a prefix is given; target names never do.
    """
    if isinstance(layer_count, bool) or not isinstance(layer_count, int):
        raise InvalidLayerCount(layer_count, "must be an int")
    if layer_count < 0:
        raise InvalidLayerCount(layer_count, "must be >= 0")
    templated = schema.templated
    if layer_count == 0 and templated:
        raise InvalidLayerCount(
            layer_count,
            f"schema {schema.name!r} has {len(templated)} per-layer entries and needs at least one layer",
        )

    out: list[ConcreteEntry] = []

    def emit(entry: MappingEntry, target: str, sources: tuple[str, ...], layer: int | None) -> None:
        out.append(
            ConcreteEntry(
                index=len(out),
                target=target,
                sources=tuple(_join(prefix, s) for s in sources),
                op=entry.op,
                layer=layer,
                template=entry,
            )
        )

    for entry in templated:
        for layer in range(layer_count):
            emit(
                entry,
                entry.target.substitute(layer),
                tuple(s.substitute(layer) for s in entry.sources),
                layer,
            )
    for entry in schema.fixed:
        emit(entry, entry.target.concrete(), tuple(s.concrete() for s in entry.sources), None)

    seen: dict[str, int] = {}
    for concrete in out:
        if concrete.target in seen:
            raise SchemaError(
                f"Target {concrete.target!r} produced by entries {seen[concrete.target]} "
                f"and {concrete.index}"
            )
        seen[concrete.target] = concrete.index
    return out
