"""Configuration system: turning YAML into validated Python objects.

Model hyperparameters, conversion manifests and on-disk mapping schemas are
written as YAML or JSON and validated into Pydantic models. This keeps
configuration separate from code while giving clear error messages when
something is wrong.
"""
from __future__ import annotations

import enum
from typing import Annotated, TypeVar

from pydantic import AfterValidator, BaseModel


T = TypeVar("T")


class ValidationType(enum.Enum):
    """Types of value validation we support."""

    SHOULD_BE_POSITIVE = "should_be_positive"
    SHOULD_BE_NON_EMPTY = "should_be_non_empty"


class Config(BaseModel):
    """Base class for all configuration objects.

    Provides validation helpers for enforcing constraints on config values.
    """

    @staticmethod
    def check(left: T, validation_type: ValidationType) -> T:
        """Validate a value against a constraint, raising ValueError on failure."""
        match validation_type:
            case ValidationType.SHOULD_BE_POSITIVE:
                if left <= 0:  # type: ignore[operator]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: {left!r} <= 0"
                    )
                return left
            case ValidationType.SHOULD_BE_NON_EMPTY:
                if len(left) == 0:  # type: ignore[arg-type]
                    raise ValueError(
                        f"Validation failed: {validation_type.name}: {left!r} is empty"
                    )
                return left
            case _:
                raise ValueError(
                    f"Validation failed: unknown validation type {validation_type}"
                )

    @staticmethod
    def check_range(
        value: float,
        *,
        ge: float | None = None,
        le: float | None = None,
    ) -> float:
        """Validate a number is within a closed range."""
        v = float(value)
        if ge is not None and v < ge:
            raise ValueError(f"Validation failed: {v} < {ge} (expected >= {ge})")
        if le is not None and v > le:
            raise ValueError(f"Validation failed: {v} > {le} (expected <= {le})")
        return v


# Validated primitives for config fields
PositiveInt = Annotated[
    int,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_POSITIVE)),
]
PositiveFloat = Annotated[
    float,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_POSITIVE)),
]
Probability = Annotated[
    float,
    AfterValidator(lambda v: Config.check_range(v, ge=0.0, le=1.0)),
]
NonEmptyStr = Annotated[
    str,
    AfterValidator(lambda v: Config.check(v, ValidationType.SHOULD_BE_NON_EMPTY)),
]
