"""
combine merges source tensors into the layout a target parameter expects.
"""
from __future__ import annotations

from collections.abc import Sequence

import torch

from bertbridge.translate.errors import ArityMismatch, ShapeMismatch
from bertbridge.translate.schema import Op
from bertbridge.translate.tensor import ShapedTensor


def _require_rank(op: Op, tensors: Sequence[ShapedTensor], *, exact: int | None = None) -> None:
    for i, t in enumerate(tensors):
        if exact is not None and t.rank != exact:
            raise ShapeMismatch(
                f"{op.value} input {i} must be {exact}-D, got shape {t.shape}",
                actual=t.shape,
            )
        if t.rank == 0:
            raise ShapeMismatch(f"{op.value} input {i} is a scalar", actual=t.shape)


def _agree(op: Op, tensors: Sequence[ShapedTensor], keep: slice) -> None:
    """All inputs must match on the dimensions selected by `keep`."""
    first = tensors[0]
    for i, t in enumerate(tensors[1:], start=1):
        if t.rank != first.rank or t.shape[keep] != first.shape[keep]:
            raise ShapeMismatch(
                f"{op.value} inputs disagree: input 0 has shape {first.shape}, "
                f"input {i} has shape {t.shape}",
                expected=first.shape,
                actual=t.shape,
            )


def _stack(op: Op, tensors: Sequence[ShapedTensor]) -> ShapedTensor:
    _require_rank(op, tensors)
    _agree(op, tensors, slice(1, None))
    return ShapedTensor.from_tensor(torch.cat([t.view() for t in tensors], dim=0))


def _concat(op: Op, tensors: Sequence[ShapedTensor]) -> ShapedTensor:
    _require_rank(op, tensors)
    _agree(op, tensors, slice(None, -1))
    return ShapedTensor.from_tensor(torch.cat([t.view() for t in tensors], dim=-1))


def _transpose(tensor: ShapedTensor) -> ShapedTensor:
    return ShapedTensor.from_tensor(tensor.view().t())


def combine(tensors: Sequence[ShapedTensor], op: Op) -> ShapedTensor:
    """Combine `tensors` according to `op`.

    Raises ArityMismatch for an input count the op cannot take and
    ShapeMismatch when inputs disagree. Nothing is truncated or padded.
    """
    op = Op(op)
    if not tensors:
        raise ArityMismatch(op.value, "1" if op.single_input else "at least 1", 0)
    if op.single_input and len(tensors) != 1:
        raise ArityMismatch(op.value, "exactly 1", len(tensors))

    match op:
        case Op.IDENTITY:
            return tensors[0]
        case Op.TRANSPOSE:
            _require_rank(op, tensors, exact=2)
            return _transpose(tensors[0])
        case Op.STACK:
            return _stack(op, tensors)
        case Op.CONCAT:
            return _concat(op, tensors)
        case Op.STACK_TRANSPOSED:
            _require_rank(op, tensors, exact=2)
            return _stack(op, [_transpose(t) for t in tensors])
        case _:
            raise ValueError(f"Unsupported op {op!r}")
