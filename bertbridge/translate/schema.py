"""Mapping schema: the declarative correspondence between checkpoint and model.

A schema is data, not code. Each entry names one target parameter, the
checkpoint tensors it is built from, and the closed set of operations that
combines them. Names may contain the layer placeholder `#`; those entries are
expanded once per repeated layer by `bertbridge.translate.expand`.

Templates and concrete names are different types on purpose: a NameTemplate
has to go through the expander before it can be used as a lookup key.
"""
from __future__ import annotations

import enum
import json
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import ValidationError

from bertbridge.config.schema import SchemaFile
from bertbridge.translate.errors import SchemaError

LAYER_PLACEHOLDER = "#"


class Op(str, enum.Enum):
    """How the source tensors of an entry are combined.

    STACK: join along the first axis (fused projections, row-stacked)
    CONCAT: join along the last axis (fused bias vectors)
    TRANSPOSE: swap the two axes of a single 2-D kernel
    IDENTITY: pass a single tensor through
    STACK_TRANSPOSED: transpose each 2-D kernel, then STACK
    """

    STACK = "stack"
    CONCAT = "concat"
    TRANSPOSE = "transpose"
    IDENTITY = "identity"
    STACK_TRANSPOSED = "stack_transposed"

    @property
    def single_input(self) -> bool:
        return self in (Op.TRANSPOSE, Op.IDENTITY)


@dataclass(frozen=True, slots=True)
class NameTemplate:
    """A parameter name that may contain the layer placeholder."""

    text: str

    @property
    def templated(self) -> bool:
        return LAYER_PLACEHOLDER in self.text

    def substitute(self, layer: int) -> str:
        """Replace every placeholder with the decimal layer index."""
        return self.text.replace(LAYER_PLACEHOLDER, str(layer))

    def concrete(self) -> str:
        """Return the name as-is; only valid for non-templated names."""
        if self.templated:
            raise SchemaError(f"Template {self.text!r} used without a layer index")
        return self.text

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class MappingEntry:
    """One target parameter and the checkpoint tensors that produce it."""

    target: NameTemplate
    sources: tuple[NameTemplate, ...]
    op: Op

    @classmethod
    def of(cls, target: str, sources: str | Sequence[str], op: Op | str) -> "MappingEntry":
        """Build an entry from plain strings, as written in schema tables."""
        if isinstance(sources, str):
            sources = (sources,)
        try:
            op = Op(op)
        except ValueError as e:
            raise SchemaError(f"Unknown op {op!r} for target {target!r}") from e
        return cls(
            target=NameTemplate(target),
            sources=tuple(NameTemplate(s) for s in sources),
            op=op,
        )

    @property
    def templated(self) -> bool:
        return self.target.templated

    def validate(self) -> None:
        """Check the entry on its own: names, arity, template consistency."""
        if not self.target.text:
            raise SchemaError("Entry has an empty target name")
        if not self.sources:
            raise SchemaError(f"Entry {self.target} has no source names")
        for source in self.sources:
            if not source.text:
                raise SchemaError(f"Entry {self.target} has an empty source name")
        if self.op.single_input and len(self.sources) != 1:
            raise SchemaError(
                f"Entry {self.target}: op {self.op.value} takes exactly one source, "
                f"got {len(self.sources)}"
            )
        mixed = [s.text for s in self.sources if s.templated != self.templated]
        if mixed:
            kind = "templated" if self.templated else "non-templated"
            raise SchemaError(
                f"Entry {self.target} is {kind} but sources {mixed} are not; "
                f"target and sources must all use '{LAYER_PLACEHOLDER}' or none may"
            )


@dataclass(frozen=True, slots=True)
class ConcreteEntry:
    """A schema entry resolved to real names for one layer (or none).

    Produced only by the expander.
    """

    index: int
    target: str
    sources: tuple[str, ...]
    op: Op
    layer: int | None
    template: MappingEntry


class MappingSchema:
    """An ordered, validated, immutable table of mapping entries."""

    def __init__(self, entries: Iterable[MappingEntry], *, name: str = "schema", version: int = 1) -> None:
        self.name = name
        self.version = version
        self._entries: tuple[MappingEntry, ...] = tuple(entries)
        self._validate()

    @property
    def entries(self) -> tuple[MappingEntry, ...]:
        return self._entries

    @property
    def templated(self) -> tuple[MappingEntry, ...]:
        return tuple(e for e in self._entries if e.templated)

    @property
    def fixed(self) -> tuple[MappingEntry, ...]:
        return tuple(e for e in self._entries if not e.templated)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"MappingSchema(name={self.name!r}, version={self.version}, entries={len(self)})"

    def _validate(self) -> None:
        if not self._entries:
            raise SchemaError(f"Schema {self.name!r} has no entries")
        for entry in self._entries:
            if not isinstance(entry, MappingEntry):
                raise SchemaError(f"Expected MappingEntry, got {type(entry)!r}")
            entry.validate()
        counts = Counter(e.target.text for e in self._entries)
        duplicates = sorted(name for name, n in counts.items() if n > 1)
        if duplicates:
            raise SchemaError(f"Targets mapped more than once: {duplicates}")

    def check_coverage(self, parameter_names: Iterable[str], layer_count: int) -> None:
        """Require the expanded targets to equal the parameter set exactly."""
        from bertbridge.translate.expand import expand

        targets = {entry.target for entry in expand(self, layer_count)}
        names = set(parameter_names)
        unmapped = sorted(names - targets)
        unknown = sorted(targets - names)
        if unmapped or unknown:
            raise SchemaError(
                f"Schema {self.name!r} does not cover the parameter set "
                f"(layers={layer_count}): unmapped={unmapped}, unknown={unknown}"
            )

    @classmethod
    def from_file(cls, data: SchemaFile) -> "MappingSchema":
        return cls(
            (MappingEntry.of(e.target, e.sources, e.op) for e in data.entries),
            name=data.name,
            version=data.version,
        )

    @classmethod
    def from_path(cls, path: Path) -> "MappingSchema":
        """Load and validate a schema from a JSON or YAML file."""
        path = Path(path)
        text = path.read_text(encoding="utf-8")
        match path.suffix.lower():
            case ".json":
                payload = json.loads(text)
            case ".yml" | ".yaml":
                payload = yaml.safe_load(text)
            case s:
                raise SchemaError(f"Unsupported schema format '{s}'")

        if not isinstance(payload, dict):
            raise SchemaError(f"Schema payload must be a dict, got {type(payload)!r}")
        try:
            data = SchemaFile.model_validate(payload)
        except ValidationError as e:
            raise SchemaError(f"Invalid schema file {path}: {e}") from e
        return cls.from_file(data)
