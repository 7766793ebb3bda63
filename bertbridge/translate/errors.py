"""Error taxonomy for checkpoint translation.

Every failure here is structural: the schema, the checkpoint and the model
disagree. None of them are transient, so nothing is retried. Errors subclass
ValueError so the CLI reports them like any other configuration problem, and
each one carries a TranslationReport once the driver knows which entry failed.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bertbridge.translate.schema import ConcreteEntry


class ErrorKind(str, enum.Enum):
    """Which part of the translation went wrong."""

    SCHEMA = "schema"
    INVALID_LAYER_COUNT = "invalid_layer_count"
    MISSING_SOURCE_TENSOR = "missing_source_tensor"
    INVALID_SOURCE_TENSOR = "invalid_source_tensor"
    MISSING_TARGET_PARAMETER = "missing_target_parameter"
    ARITY_MISMATCH = "arity_mismatch"
    SHAPE_MISMATCH = "shape_mismatch"


@dataclass(frozen=True, slots=True)
class TranslationReport:
    """Structured description of a failed translation."""

    kind: ErrorKind
    message: str
    entry_index: int | None = None
    template: str | None = None
    target_name: str | None = None
    sources: tuple[str, ...] = ()
    expected: tuple[int, ...] | None = None
    actual: tuple[int, ...] | None = None

    def as_dict(self) -> dict[str, object]:
        """Flatten into display-friendly key/value pairs, skipping empty fields."""
        out: dict[str, object] = {"kind": self.kind.value}
        if self.entry_index is not None:
            out["entry"] = self.entry_index
        if self.template is not None:
            out["template"] = self.template
        if self.target_name is not None:
            out["target"] = self.target_name
        if self.sources:
            out["sources"] = ", ".join(self.sources)
        if self.expected is not None:
            out["expected"] = self.expected
        if self.actual is not None:
            out["actual"] = self.actual
        out["message"] = self.message
        return out


class TranslationError(ValueError):
    """Base class for all translation failures."""

    kind: ErrorKind = ErrorKind.SCHEMA

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.report: TranslationReport | None = None

    @property
    def expected(self) -> tuple[int, ...] | None:
        return None

    @property
    def actual(self) -> tuple[int, ...] | None:
        return None

    def at(self, entry: "ConcreteEntry") -> "TranslationError":
        """Attach the failing entry's context and return self for re-raising."""
        self.report = TranslationReport(
            kind=self.kind,
            message=self.message,
            entry_index=entry.index,
            template=entry.template.target.text,
            target_name=entry.target,
            sources=entry.sources,
            expected=self.expected,
            actual=self.actual,
        )
        return self

    def describe(self) -> TranslationReport:
        """Return the attached report, or a context-free one."""
        if self.report is not None:
            return self.report
        return TranslationReport(
            kind=self.kind,
            message=self.message,
            expected=self.expected,
            actual=self.actual,
        )


class SchemaError(TranslationError):
    """The mapping schema is malformed or does not cover the model."""

    kind = ErrorKind.SCHEMA


class InvalidLayerCount(TranslationError):
    """The caller asked for a layer count the schema cannot expand to."""

    kind = ErrorKind.INVALID_LAYER_COUNT

    def __init__(self, layer_count: object, reason: str) -> None:
        super().__init__(f"Invalid layer count {layer_count!r}: {reason}")
        self.layer_count = layer_count


class MissingSourceTensor(TranslationError):
    """A source name is absent from the checkpoint."""

    kind = ErrorKind.MISSING_SOURCE_TENSOR

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing source tensor: {name}")
        self.name = name


class InvalidSourceTensor(TranslationError):
    """A source name holds something that is not a tensor."""

    kind = ErrorKind.INVALID_SOURCE_TENSOR

    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"Expected tensor for source {name}, got {type(value)!r}")
        self.name = name


class MissingTargetParameter(TranslationError):
    """A target name is absent from the parameter store."""

    kind = ErrorKind.MISSING_TARGET_PARAMETER

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing target parameter: {name}")
        self.name = name


class ArityMismatch(TranslationError):
    """An op received a number of inputs it cannot combine."""

    kind = ErrorKind.ARITY_MISMATCH

    def __init__(self, op: str, expected: str, actual: int) -> None:
        super().__init__(f"{op} expects {expected} input(s), got {actual}")
        self.op = op
        self.count = actual


class ShapeMismatch(TranslationError):
    """Shapes disagree, either between op inputs or against the target."""

    kind = ErrorKind.SHAPE_MISMATCH

    def __init__(
        self,
        message: str,
        *,
        target_name: str | None = None,
        expected: tuple[int, ...] | None = None,
        actual: tuple[int, ...] | None = None,
    ) -> None:
        super().__init__(message)
        self.target_name = target_name
        self._expected = expected
        self._actual = actual

    @classmethod
    def for_target(
        cls, target_name: str, expected: tuple[int, ...], actual: tuple[int, ...]
    ) -> "ShapeMismatch":
        return cls(
            f"Shape mismatch for {target_name}: expected {expected}, got {actual}",
            target_name=target_name,
            expected=expected,
            actual=actual,
        )

    @property
    def expected(self) -> tuple[int, ...] | None:
        return self._expected

    @property
    def actual(self) -> tuple[int, ...] | None:
        return self._actual
