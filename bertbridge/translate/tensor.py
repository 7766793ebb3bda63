"""
tensor provides ShapedTensor, the immutable value passed between stores and ops.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import torch
from torch import Tensor


@dataclass(frozen=True, slots=True)
class ShapedTensor:
    """Flat row-major float32 data plus its shape.

    Instances own their data: constructors copy, and nothing in the package
    writes to `data` after construction.
    """

    data: Tensor
    shape: tuple[int, ...]

    def __post_init__(self) -> None:
        if self.data.dim() != 1:
            raise ValueError(f"ShapedTensor data must be 1-D, got {self.data.dim()}-D")
        if self.data.dtype != torch.float32:
            raise ValueError(f"ShapedTensor data must be float32, got {self.data.dtype}")
        if any(d < 0 for d in self.shape):
            raise ValueError(f"Negative dimension in shape {self.shape}")
        if math.prod(self.shape) != self.data.numel():
            raise ValueError(
                f"Shape {self.shape} holds {math.prod(self.shape)} elements, "
                f"data has {self.data.numel()}"
            )

    @classmethod
    def from_tensor(cls, tensor: Tensor) -> "ShapedTensor":
        """Copy a tensor of any dtype/device into a ShapedTensor."""
        flat = tensor.detach().to(device="cpu", dtype=torch.float32).reshape(-1).clone()
        return cls(data=flat, shape=tuple(int(d) for d in tensor.shape))

    @classmethod
    def from_values(cls, values: Any) -> "ShapedTensor":
        """Build from (nested) Python sequences of numbers."""
        return cls.from_tensor(torch.tensor(values, dtype=torch.float32))

    @property
    def rank(self) -> int:
        return len(self.shape)

    def view(self) -> Tensor:
        """Return the data reshaped to `shape` (shares storage, do not mutate)."""
        return self.data.view(self.shape)

    def tolist(self) -> Any:
        return self.view().tolist()
